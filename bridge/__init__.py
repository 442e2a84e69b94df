from .token_manager import XeroSession, TokenState
from .xero_api import XeroAccountingApi
from .order_management import PrintLogicClient, extract_order_number
from .invoice_service import create_invoice_from_payload
from .webhook import process_invoice_webhook

__all__ = [
    "XeroSession", "TokenState", "XeroAccountingApi",
    "PrintLogicClient", "extract_order_number",
    "create_invoice_from_payload", "process_invoice_webhook",
]
