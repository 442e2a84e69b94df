from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional


class DerivedContext(BaseModel):
    """
    Per-request values derived from the incoming order payload.
    Immutable once built; never persisted.
    """
    model_config = ConfigDict(frozen=True)

    template: str = ""
    logic_source: str = ""
    is_web_order: bool = False
    customer_category: str = "Default"
    branding_theme_id: Optional[str] = None
    brand_tracking_label: Optional[str] = None
    mark_as_paid: bool = False
    email_customer: bool = False
    clearing_account_code: str = "0002"


class InvoiceCreationResult(BaseModel):
    """Outcome of one create-invoice request, returned to Power Automate."""
    success: bool
    invoice: Optional[dict] = None          # first invoice echoed by Xero
    raw_response: Optional[dict] = None
    error: Optional[str] = None


WebhookOutcome = Literal["updated", "ignored", "skipped", "failed"]


class WebhookEventOutcome(BaseModel):
    """What happened to a single Xero webhook event."""
    resource_id: Optional[str] = None
    outcome: WebhookOutcome
    detail: str = ""
    order_number: Optional[str] = None
    invoice_number: Optional[str] = None
