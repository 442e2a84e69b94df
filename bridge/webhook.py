"""
Xero → PrintLogic payment sync.

Xero posts invoice events; for each INVOICE/UPDATE event the invoice is
fetched, and when it is PAID the PrintLogic order named in its reference
is moved to the configured status. One bad event never aborts the batch.
"""
import logging
from typing import Any, Iterable, Optional

from config import Config
from models.result import WebhookEventOutcome
from .errors import MappingSkipped
from .order_management import PrintLogicClient, extract_order_number
from .token_manager import XeroSession
from .xero_api import XeroAccountingApi

logger = logging.getLogger(__name__)

# Xero's sample payload id, sent when the webhook is first registered
PLACEHOLDER_RESOURCE_ID = "PAID_INVOICE_ID_GOES_HERE"


def _resource_id(event: Any) -> Optional[str]:
    value = event.get("resourceId") if isinstance(event, dict) else None
    return str(value) if value else None


def _handle_event(
    event: Any,
    tenant_id: str,
    api: XeroAccountingApi,
    pl_client: PrintLogicClient,
    config: Config,
) -> WebhookEventOutcome:
    if not isinstance(event, dict):
        return WebhookEventOutcome(outcome="ignored", detail="malformed event")

    resource_id = _resource_id(event)
    if event.get("eventCategory") != "INVOICE" or event.get("eventType") != "UPDATE":
        return WebhookEventOutcome(resource_id=resource_id, outcome="ignored", detail="not an invoice update")
    if not resource_id:
        return WebhookEventOutcome(outcome="ignored", detail="missing resourceId")
    if resource_id == PLACEHOLDER_RESOURCE_ID:
        logger.info("Ignoring placeholder resourceId %s", PLACEHOLDER_RESOURCE_ID)
        return WebhookEventOutcome(resource_id=resource_id, outcome="ignored", detail="placeholder id")

    logger.info("Processing invoice event for resourceId: %s", resource_id)
    invoice = api.get_invoice(tenant_id, resource_id)
    if not invoice:
        logger.warning("No invoice returned for resourceId: %s", resource_id)
        return WebhookEventOutcome(resource_id=resource_id, outcome="skipped", detail="invoice not found")

    invoice_number = invoice.get("InvoiceNumber")
    status = invoice.get("Status")
    logger.info("Invoice %s status: %s", invoice_number, status)
    if status != "PAID":
        return WebhookEventOutcome(
            resource_id=resource_id, outcome="ignored",
            detail=f"status {status}", invoice_number=invoice_number,
        )

    reference = invoice.get("Reference")
    order_number = extract_order_number(reference)
    if not order_number:
        raise MappingSkipped(f"Could not extract PL order number from reference: {reference}")

    pl_client.update_order_status(order_number, config.paid_order_status)
    logger.info(
        'Updated PL order %s → "%s" (Xero invoice %s)',
        order_number, config.paid_order_status, invoice_number,
    )
    return WebhookEventOutcome(
        resource_id=resource_id, outcome="updated",
        order_number=order_number, invoice_number=invoice_number,
        detail=config.paid_order_status,
    )


def process_invoice_webhook(
    events: Iterable[Any],
    session: XeroSession,
    api: XeroAccountingApi,
    pl_client: PrintLogicClient,
    config: Config,
) -> list[WebhookEventOutcome]:
    """
    Handle a batch of Xero webhook events.

    Token problems (NotAuthenticated, RefreshFailed, ...) abort the batch;
    anything that goes wrong for a single event is logged and recorded.
    """
    events = list(events or [])
    if not events:
        logger.info("No events in webhook payload")
        return []

    tenant_id = session.ensure_ready()

    outcomes = []
    for event in events:
        resource_id = _resource_id(event)
        try:
            outcomes.append(_handle_event(event, tenant_id, api, pl_client, config))
        except MappingSkipped as e:
            logger.warning("%s", e)
            outcomes.append(WebhookEventOutcome(resource_id=resource_id, outcome="skipped", detail=str(e)))
        except Exception as e:
            logger.error("Webhook event %s failed: %s", resource_id, e)
            outcomes.append(WebhookEventOutcome(resource_id=resource_id, outcome="failed", detail=str(e)))
    return outcomes
