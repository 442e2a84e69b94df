"""
Build Xero line items from PrintLogic's order_detail.items.

PRICING RULE
------------
PrintLogic's item.price is the FULL LINE TOTAL (ex VAT), not a unit price.
Each line is therefore sent to Xero as quantity 1 with unit_amount = price.
The PrintLogic quantity only appears in the description, for display.

Quantity-zero items are never dropped: free shipping and service lines
must still appear on the invoice.
"""
import logging
from typing import Any, Mapping, Optional

from models.invoice import LineItem, TrackingOption
from models.order import OrderPayload
from .coercion import format_quantity, parse_number
from .tax_mapping import map_tax_code

logger = logging.getLogger(__name__)

BRAND_TRACKING_CATEGORY = "Brand"


def _describe(item: Mapping[str, Any]) -> str:
    title = item.get("title") or "Item"
    detail = str(item.get("detail") or "").strip()

    raw_qty = item.get("quantity")
    qty = parse_number("1" if raw_qty is None else raw_qty)
    qty_text = f" (Qty {format_quantity(qty)})" if qty is not None else ""

    return f"{title}{qty_text}" + (f" - {detail}" if detail else "")


def build_line_item(
    item: Mapping[str, Any],
    tracking_label: Optional[str],
    account_code: str,
) -> LineItem:
    line_total = parse_number(item.get("price")) or 0.0

    tracking = None
    if tracking_label:
        tracking = [TrackingOption(name=BRAND_TRACKING_CATEGORY, option=tracking_label)]

    return LineItem(
        description=_describe(item),
        quantity=1,
        unit_amount=line_total,
        account_code=account_code,
        tax_type=map_tax_code(item.get("vat")),
        tracking=tracking,
    )


def build_line_items(
    payload: OrderPayload,
    tracking_label: Optional[str],
    account_code: str = "200",
) -> list:
    """
    Return the invoice lines for *payload*.

    Explicit payload.lineItems (non-empty list) are returned verbatim.
    Otherwise every entry of order_detail.items becomes one LineItem, in the
    mapping's insertion order. A missing or non-mapping items block yields [].
    """
    if isinstance(payload.lineItems, list) and payload.lineItems:
        logger.info("Using %d lineItems from request", len(payload.lineItems))
        return payload.lineItems

    items = payload.order_detail.get("items")
    if not isinstance(items, Mapping):
        logger.info("order_detail.items not present or not an object; no line items built")
        return []

    lines = [
        build_line_item(item if isinstance(item, Mapping) else {}, tracking_label, account_code)
        for item in items.values()
    ]
    logger.info("Built %d line items from order_detail.items (qty=0 included)", len(lines))
    return lines
