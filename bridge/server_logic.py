"""
Server-side hook applied to every create-invoice body before mapping.

Currently a pass-through that logs the routing hints. Setting "_skipXero"
here (or in the incoming body) makes the route acknowledge the request
without calling Xero.
"""
import logging
from typing import Any

from .coercion import to_bool

logger = logging.getLogger(__name__)

SKIP_FLAG = "_skipXero"


def apply_server_side_logic(raw_payload: Any) -> dict:
    payload = dict(raw_payload) if isinstance(raw_payload, dict) else {}
    logger.info(
        "logicSource: %s | template: %s | markAsPaid: %s | emailCustomer: %s",
        payload.get("logicSource"),
        payload.get("template"),
        payload.get("markAsPaid"),
        payload.get("emailCustomer"),
    )
    return payload


def should_skip_xero(payload: dict) -> bool:
    return to_bool(payload.get(SKIP_FLAG))
