"""
Assemble the Xero invoice document from a PrintLogic payload.

The invoice is created AUTHORISED (never DRAFT), so Xero treats it as final
immediately, and line amounts are declared exclusive of tax.
"""
import logging
from datetime import date, timedelta
from typing import Optional

from config import Config
from models.invoice import Contact, InvoiceModel
from models.order import OrderPayload
from models.result import DerivedContext
from .coercion import first_non_empty, parse_number
from .line_items import build_line_items

logger = logging.getLogger(__name__)

ZERO_DATE = "0000-00-00"        # PrintLogic's "no due date" placeholder
DEFAULT_DUE_DAYS = 10


def compose_reference(po: str, order_number: str) -> str:
    """Join the PO and bracketed order number, e.g. "WEB-1234 [6789]"."""
    parts = []
    if po:
        parts.append(po)
    if order_number:
        parts.append(f"[{order_number}]")
    return " ".join(parts)


def resolve_due_date(due_raw, today: date) -> str:
    if due_raw == ZERO_DATE:
        return today.isoformat()
    if due_raw:
        return str(due_raw)
    return (today + timedelta(days=DEFAULT_DUE_DAYS)).isoformat()


def build_contact(payload: OrderPayload) -> Contact:
    pl_order, detail = payload.pl_order, payload.order_detail

    name = first_non_empty(
        pl_order.get("customer_name"),
        detail.get("customer_name"),
        pl_order.get("order_contact"),
        detail.get("order_contact"),
    )
    if name is None:
        order_number = payload.order_number_text
        name = f"Order {order_number}" if order_number else "Unknown Customer"

    email = first_non_empty(
        pl_order.get("customer_email"),
        pl_order.get("order_contact_email"),
        detail.get("order_contact_email"),
        detail.get("customer_email"),
    )
    return Contact(name=str(name), email_address=str(email) if email is not None else None)


def build_invoice_model(
    payload: OrderPayload,
    context: DerivedContext,
    config: Config,
    today: Optional[date] = None,
) -> InvoiceModel:
    today = today or date.today()

    line_items = build_line_items(payload, context.brand_tracking_label, config.sales_account)
    logger.info("Invoice has %d line items", len(line_items))

    invoice = InvoiceModel(
        contact=build_contact(payload),
        line_items=line_items,
        date=today.isoformat(),
        due_date=resolve_due_date(payload.order_detail.get("order_date_due"), today),
        reference=compose_reference(payload.po_text, payload.order_number_text),
        branding_theme_id=context.branding_theme_id,
    )
    logger.debug("Xero invoice model: %s", invoice.to_xero())
    return invoice


def _pair_total(block: dict) -> Optional[float]:
    total, vat = block.get("order_total"), block.get("order_vat")
    if not (total and vat):
        return None
    return round((parse_number(total) or 0.0) + (parse_number(vat) or 0.0), 2)


def payment_amount(payload: OrderPayload) -> Optional[float]:
    """
    Total including VAT for a mark-as-paid payment.

    Sources, first usable wins: pl_order.order_tot_incvat, then
    pl_order.order_total + order_vat, then the same pair from order_detail.
    Zero or unparsable amounts give None.
    """
    amount = parse_number(payload.pl_order.get("order_tot_incvat") or None)
    if amount is None:
        amount = _pair_total(payload.pl_order)
    if amount is None:
        amount = _pair_total(payload.order_detail)
    return amount or None
