"""
HTTP surface of the bridge (FastAPI).
"""
