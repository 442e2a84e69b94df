from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional


class OrderPayload(BaseModel):
    """
    Order document sent by Power Automate on behalf of PrintLogic.

    Nothing is required: every field is optional and defaulted independently,
    and unknown fields are kept so downstream hooks can inspect them.
    The nested pl_order / order_detail blocks stay plain dicts because their
    shape varies between PrintLogic exports.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    order_number: Optional[Any] = None      # PrintLogic job number, e.g. "6789"
    order_po: Optional[Any] = None          # customer PO / job reference, e.g. "WEB-1234"
    template: Optional[str] = None          # branding template hint
    logicSource: Optional[str] = None       # which Power Automate branch built the payload

    pl_order: dict = Field(default_factory=dict)
    order_detail: dict = Field(default_factory=dict)

    markAsPaid: Optional[Any] = None        # bool or "true"/"1"/"yes"
    emailCustomer: Optional[Any] = None

    # Explicit Xero line items; when non-empty they bypass derivation entirely
    lineItems: Optional[Any] = None

    skip_xero: Optional[Any] = Field(default=None, alias="_skipXero")

    @field_validator("pl_order", "order_detail", mode="before")
    @classmethod
    def _default_block(cls, value: Any) -> dict:
        return value if isinstance(value, dict) else {}

    @field_validator("template", "logicSource", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @property
    def po_text(self) -> str:
        return str(self.order_po) if self.order_po not in (None, "") else ""

    @property
    def order_number_text(self) -> str:
        return str(self.order_number) if self.order_number not in (None, "") else ""
