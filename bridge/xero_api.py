"""
Thin client for the Xero Accounting API calls the bridge makes.

Callers obtain tenant_id from XeroSession.ensure_ready() first; this client
only reads the session's current access token.
"""
import logging
import urllib.parse
from typing import Any, Optional

from config import Config
from .errors import VendorRejected
from .http import HttpError, TransportError, request_json
from .token_manager import XeroSession

logger = logging.getLogger(__name__)


class XeroAccountingApi:
    """Create invoices and payments, email invoices, and read invoice status."""

    def __init__(self, session: XeroSession, config: Config):
        self.session = session
        self.config = config

    def _call(
        self,
        operation: str,
        method: str,
        path: str,
        tenant_id: str,
        *,
        params: Optional[dict] = None,
        body: Any = None,
    ) -> dict:
        url = f"{self.config.xero_api_base_url.rstrip('/')}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {self.session.access_token}",
            "xero-tenant-id": tenant_id,
        }
        try:
            data = request_json(
                method, url,
                params=params, json_body=body, headers=headers,
                timeout=self.config.http_timeout,
            )
        except HttpError as exc:
            raise VendorRejected(operation, exc.status_code, exc.body) from exc
        except TransportError as exc:
            raise VendorRejected(operation, None, str(exc)) from exc
        logger.debug("Xero %s response: %s", operation, data)
        return data if isinstance(data, dict) else {}

    def create_invoices(self, tenant_id: str, invoices: list[dict]) -> dict:
        return self._call(
            "createInvoices", "POST", "Invoices", tenant_id,
            params={"summarizeErrors": "true", "unitdp": 2},
            body={"Invoices": invoices},
        )

    def create_payments(self, tenant_id: str, payments: list[dict]) -> dict:
        return self._call(
            "createPayments", "PUT", "Payments", tenant_id,
            params={"summarizeErrors": "true"},
            body={"Payments": payments},
        )

    def email_invoice(self, tenant_id: str, invoice_id: str) -> dict:
        # Xero expects an empty JSON object as the body
        return self._call(
            "emailInvoice", "POST",
            f"Invoices/{urllib.parse.quote(invoice_id, safe='')}/Email",
            tenant_id, body={},
        )

    def get_invoice(self, tenant_id: str, invoice_id: str) -> Optional[dict]:
        data = self._call(
            "getInvoice", "GET",
            f"Invoices/{urllib.parse.quote(invoice_id, safe='')}",
            tenant_id,
        )
        invoices = data.get("Invoices") or []
        return invoices[0] if invoices else None
