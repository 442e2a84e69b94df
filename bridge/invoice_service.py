"""
Create a Xero invoice from a PrintLogic payload.

Flow:
  1. derive_context       -- web flag, branding, paid/email flags
  2. build_invoice_model  -- contact, dates, reference, line items
  3. XeroSession.ensure_ready -- refresh token, resolve tenant
  4. createInvoices
  5. createPayments   (only when markAsPaid)
  6. emailInvoice     (only when emailCustomer)

Token failures in step 3 propagate to the caller. A Xero rejection in
step 4 is returned as success=False. Steps 5 and 6 are best-effort: their
failures are logged and never change the result.
"""
import logging
from datetime import date
from typing import Optional

from config import Config
from models.order import OrderPayload
from models.result import DerivedContext, InvoiceCreationResult
from .context import derive_context
from .errors import VendorRejected
from .invoice_builder import build_invoice_model, payment_amount
from .token_manager import XeroSession
from .xero_api import XeroAccountingApi

logger = logging.getLogger(__name__)


def _invoice_id(invoice: Optional[dict]) -> Optional[str]:
    return (invoice or {}).get("InvoiceID") or None


def maybe_mark_as_paid(
    api: XeroAccountingApi,
    tenant_id: str,
    payload: OrderPayload,
    context: DerivedContext,
    created_invoice: Optional[dict],
) -> None:
    if not context.mark_as_paid:
        return
    invoice_id = _invoice_id(created_invoice)
    if not invoice_id:
        logger.warning("markAsPaid requested but no InvoiceID returned from Xero")
        return

    amount = payment_amount(payload)
    if amount is None:
        logger.warning("markAsPaid requested but could not determine amount, skipping payment")
        return

    payment = {
        "Invoice": {"InvoiceID": invoice_id},
        "Account": {"Code": context.clearing_account_code},
        "Date": date.today().isoformat(),
        "Amount": amount,
    }
    logger.info("Creating payment of %.2f against invoice %s", amount, invoice_id)
    try:
        api.create_payments(tenant_id, [payment])
    except VendorRejected as e:
        logger.error("Error creating payment: %s", e.detail)


def maybe_email_invoice(
    api: XeroAccountingApi,
    tenant_id: str,
    context: DerivedContext,
    created_invoice: Optional[dict],
) -> None:
    if not context.email_customer:
        return
    invoice_id = _invoice_id(created_invoice)
    if not invoice_id:
        logger.warning("emailCustomer requested but no InvoiceID returned from Xero")
        return

    logger.info("Emailing invoice %s to customer", invoice_id)
    try:
        api.email_invoice(tenant_id, invoice_id)
    except VendorRejected as e:
        logger.error("Error emailing invoice: %s", e.detail)


def create_invoice_from_payload(
    payload: OrderPayload,
    session: XeroSession,
    api: XeroAccountingApi,
    config: Config,
) -> InvoiceCreationResult:
    logger.debug("Incoming payload: %s", payload.model_dump_json(by_alias=True, indent=2))

    context = derive_context(payload, config)
    invoice = build_invoice_model(payload, context, config)

    tenant_id = session.ensure_ready()

    try:
        response = api.create_invoices(tenant_id, [invoice.to_xero()])
    except VendorRejected as e:
        logger.error("createInvoices rejected: %s", e.detail)
        return InvoiceCreationResult(success=False, error=str(e.detail))

    invoices = response.get("Invoices") or []
    created = invoices[0] if invoices else None
    logger.info(
        "Created Xero invoice %s (%s)",
        (created or {}).get("InvoiceNumber"), invoice.reference,
    )

    maybe_mark_as_paid(api, tenant_id, payload, context, created)
    maybe_email_invoice(api, tenant_id, context, created)

    return InvoiceCreationResult(success=True, invoice=created, raw_response=response or None)
