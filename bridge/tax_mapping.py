"""
VAT → Xero tax type mapping and brand selection.

Pure lookups with no I/O. Adjust the tax type strings to match the codes
configured in the Xero organisation.
"""
import logging
from typing import Mapping, NamedTuple, Optional

from .coercion import parse_number

logger = logging.getLogger(__name__)

TAX_EXEMPT = "EXEMPTOUTPUT"     # exempt / zero-rated
TAX_STANDARD = "OUTPUT2"        # 20% VAT
TAX_REDUCED = "REDUCED"         # 5% VAT

# Exact rate → tax type. Anything else falls back to TAX_STANDARD.
_RATE_TAX_TYPES: dict[float, str] = {
    0.0: TAX_EXEMPT,
    20.0: TAX_STANDARD,
    5.0: TAX_REDUCED,
}


class BrandRule(NamedTuple):
    match: str          # lower-case substring looked for in the customer category
    label: str          # option name under the "Brand" tracking category
    brand_key: str      # key into Config.brands for the branding theme id


# Evaluated in order; the first rule is also the web-order default
BRAND_RULES: tuple[BrandRule, ...] = (
    BrandRule("edinburgh banners", "Edinburgh Banners", "edinburgh"),
    BrandRule("giclee", "Giclee", "giclee"),
    BrandRule("pro print", "Pro Print Studio", "pps"),
    BrandRule("sdk", "SDK Group", "sdk"),
)


def map_tax_code(rate_text) -> str:
    """
    Map a PrintLogic VAT rate (percent, e.g. "20" or "5.0") to a Xero tax type.

    The comparison is exact: "20.0" maps to the standard code, but 19.99 or
    any other rate silently falls back to it as well.
    """
    rate = parse_number(rate_text)
    if rate is None:
        return TAX_STANDARD
    return _RATE_TAX_TYPES.get(rate, TAX_STANDARD)


def _matching_rule(category_text: Optional[str]) -> Optional[BrandRule]:
    category = (category_text or "").lower()
    for rule in BRAND_RULES:
        if rule.match in category:
            return rule
    return None


def select_branding_theme(
    category_text: Optional[str],
    is_web: bool,
    brands: Mapping[str, Optional[str]],
) -> Optional[str]:
    """
    Pick a Xero branding theme id for the customer category.

    A rule only applies when its theme id is configured. Web orders fall back
    to the first brand. None means Xero's default branding is used.
    """
    category = (category_text or "").lower()
    for rule in BRAND_RULES:
        if rule.match in category and brands.get(rule.brand_key):
            return brands[rule.brand_key]

    default_key = BRAND_RULES[0].brand_key
    if is_web and brands.get(default_key):
        return brands[default_key]
    return None


def select_brand_tracking_label(category_text: Optional[str], is_web: bool) -> Optional[str]:
    """Tracking option for the "Brand" category; does not depend on configuration."""
    rule = _matching_rule(category_text)
    if rule is not None:
        return rule.label
    if is_web:
        return BRAND_RULES[0].label
    return None
