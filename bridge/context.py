"""
Derive per-request invoice context from the PrintLogic payload.

Pure: the result depends only on the payload and the Config passed in.
"""
import logging
from typing import NamedTuple

from config import Config
from models.order import OrderPayload
from models.result import DerivedContext
from .coercion import to_bool
from .tax_mapping import select_branding_theme

logger = logging.getLogger(__name__)

WEB_ORDER_PREFIX = "WEB-"
DEFAULT_BUCKET = "Default"


class TemplateRule(NamedTuple):
    brand_key: str          # key into Config.brands
    category: str           # canonical customer category
    tracking_label: str


# Templates with hardwired branding; add entries here as brands are onboarded
TEMPLATE_RULES: dict[str, TemplateRule] = {
    "Edinburgh_Banners": TemplateRule("edinburgh", "Edinburgh_Banners", "Edinburgh Banners"),
}


def derive_context(payload: OrderPayload, config: Config) -> DerivedContext:
    po = payload.po_text
    is_web_order = po.startswith(WEB_ORDER_PREFIX)

    customer_category = payload.pl_order.get("customer_category") or ""
    template = payload.template or customer_category or ""

    rule = TEMPLATE_RULES.get(template)
    if rule is not None:
        branding_theme_id = config.brands.get(rule.brand_key) or None
        customer_category = rule.category
        tracking_label = rule.tracking_label
    else:
        customer_category = customer_category or template or DEFAULT_BUCKET
        tracking_label = template or DEFAULT_BUCKET
        branding_theme_id = select_branding_theme(customer_category, is_web_order, config.brands)

    context = DerivedContext(
        template=template,
        logic_source=payload.logicSource or "",
        is_web_order=is_web_order,
        customer_category=customer_category,
        branding_theme_id=branding_theme_id,
        brand_tracking_label=tracking_label,
        mark_as_paid=to_bool(payload.markAsPaid),
        email_customer=to_bool(payload.emailCustomer),
        clearing_account_code=config.clearing_account_code,
    )
    logger.debug("Derived context: %s", context.model_dump_json(indent=2))
    return context
