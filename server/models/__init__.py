"""
Pydantic models for bridge API requests and responses.
"""
from pydantic import BaseModel, ConfigDict
from typing import Any, Optional


class WebhookPayload(BaseModel):
    """Xero webhook body: {"events": [...], "firstEventSequence": ..., ...}."""
    model_config = ConfigDict(extra="allow")

    events: Optional[Any] = None


class AuthUrlResponse(BaseModel):
    ok: bool
    url: Optional[str] = None
    error: Optional[str] = None
