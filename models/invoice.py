from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional


class _XeroModel(BaseModel):
    """Xero's JSON uses PascalCase; fields are populated by their Python names."""
    model_config = ConfigDict(populate_by_name=True)

    def to_xero(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class TrackingOption(_XeroModel):
    name: str = Field(default="Brand", alias="Name")
    option: str = Field(alias="Option")


class LineItem(_XeroModel):
    """
    A single Xero invoice line.

    quantity is always 1: PrintLogic's price is the full line total, so it is
    carried as unit_amount of a single unit.
    """
    description: str = Field(alias="Description")
    quantity: float = Field(default=1, alias="Quantity")
    unit_amount: float = Field(default=0.0, alias="UnitAmount")
    account_code: Optional[str] = Field(default=None, alias="AccountCode")
    tax_type: Optional[str] = Field(default=None, alias="TaxType")
    tracking: Optional[List[TrackingOption]] = Field(default=None, alias="Tracking")


class Contact(_XeroModel):
    name: str = Field(alias="Name")
    email_address: Optional[str] = Field(default=None, alias="EmailAddress")


class InvoiceModel(_XeroModel):
    """
    A receivable invoice ready for Xero's createInvoices call.

    line_items holds LineItem models built from the order, or the caller's
    explicit line item dicts passed through untouched.
    Dates are ISO 8601 strings (YYYY-MM-DD).
    """
    type: str = Field(default="ACCREC", alias="Type")
    contact: Contact = Field(alias="Contact")
    line_items: List[Any] = Field(default_factory=list, alias="LineItems")
    date: str = Field(alias="Date")
    due_date: str = Field(alias="DueDate")
    reference: str = Field(default="", alias="Reference")
    status: str = Field(default="AUTHORISED", alias="Status")         # never DRAFT
    line_amount_types: str = Field(default="Exclusive", alias="LineAmountTypes")
    branding_theme_id: Optional[str] = Field(default=None, alias="BrandingThemeID")

    def to_xero(self) -> dict:
        data = super().to_xero()
        data["LineItems"] = [
            item.to_xero() if isinstance(item, LineItem) else item
            for item in self.line_items
        ]
        return data
