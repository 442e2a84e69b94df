from .invoice import InvoiceModel, Contact, LineItem, TrackingOption
from .order import OrderPayload
from .token import TokenSet, Tenant
from .result import DerivedContext, InvoiceCreationResult, WebhookEventOutcome

__all__ = [
    "InvoiceModel", "Contact", "LineItem", "TrackingOption",
    "OrderPayload",
    "TokenSet", "Tenant",
    "DerivedContext", "InvoiceCreationResult", "WebhookEventOutcome",
]
