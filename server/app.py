"""
PL → Xero bridge — FastAPI backend.

Power Automate posts PrintLogic orders here to be invoiced in Xero, and
Xero posts invoice events here so paid invoices are pushed back to
PrintLogic.

Endpoints
---------
  GET  /                      → plain "alive" message
  GET  /health                → JSON health status incl. Xero token state
  GET  /xero/auth-url         → Xero OAuth consent URL
  GET  /xero/callback         → Xero redirects here after consent; saves token
  POST /create-invoice        → main endpoint Power Automate calls
  POST /xero/invoice-webhook  → Xero → PrintLogic payment sync
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from bridge.errors import BridgeError, VendorRejected
from bridge.invoice_service import create_invoice_from_payload
from bridge.order_management import PrintLogicClient
from bridge.server_logic import SKIP_FLAG, apply_server_side_logic, should_skip_xero
from bridge.token_manager import XeroSession
from bridge.webhook import process_invoice_webhook
from bridge.xero_api import XeroAccountingApi
from config import Config
from models.order import OrderPayload
from server.models import AuthUrlResponse, WebhookPayload

logger = logging.getLogger(__name__)


class BridgeServices:
    """Everything a request needs; one instance per app, owned by app.state."""

    def __init__(self, config: Config):
        self.config = config
        self.session = XeroSession(config)
        self.xero = XeroAccountingApi(self.session, config)
        self.printlogic = PrintLogicClient(config)


def create_app(config: Optional[Config] = None) -> FastAPI:
    services = BridgeServices(config or Config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("pl-xero bridge listening on port %s", services.config.port)
        # Best effort: pick up any token saved by a previous run
        services.session.initialize()
        yield

    app = FastAPI(title="PL Xero Bridge", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.services = services

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(status_code=500, content={"ok": False, "error": "Internal server error"})

    # ── Basic routes ──────────────────────────────────────────────────────

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "pl-xero bridge is running."

    @app.get("/health")
    def health():
        return {
            "ok":     True,
            "status": "up",
            "port":   services.config.port,
            "time":   datetime.now(timezone.utc).isoformat(),
            "xero":   services.session.status(),
        }

    # ── Xero auth routes ─────────────────────────────────────────────────

    @app.get("/xero/auth-url", response_model=AuthUrlResponse, response_model_exclude_none=True)
    def auth_url():
        try:
            return AuthUrlResponse(ok=True, url=services.session.authorization_url())
        except Exception as e:
            logger.error("Error building Xero auth URL: %s", e)
            return JSONResponse(
                status_code=500,
                content={"ok": False, "error": str(e) or "Error building Xero auth URL"},
            )

    @app.get("/xero/callback", response_class=PlainTextResponse)
    def xero_callback(
        code: Optional[str] = Query(default=None),
        error: Optional[str] = Query(default=None),
    ):
        if error or not code:
            logger.error("Xero callback without code (error=%s)", error)
            return PlainTextResponse(
                "Error completing Xero auth. Check server logs for details.", status_code=500
            )
        try:
            services.session.complete_authorization(code)
            tenants = services.session.list_tenants()
            logger.info("Token saved; %d tenant(s) connected", len(tenants))
        except BridgeError as e:
            logger.error("Xero callback failed: %s (%s)", e, getattr(e, "detail", None))
            return PlainTextResponse(
                "Error completing Xero auth. Check server logs for details.", status_code=500
            )
        return "Xero authentication completed. You can close this window and run your Power Automate flow."

    # ── Main invoice endpoint (PrintLogic → Xero) ────────────────────────

    @app.post("/create-invoice")
    def create_invoice(body: Any = Body(default=None)):
        payload_dict = apply_server_side_logic(body)

        if should_skip_xero(payload_dict):
            logger.info("%s flag set, not calling Xero", SKIP_FLAG)
            return {"ok": True, "skipped": True, "reason": f"{SKIP_FLAG} flag set by server-side logic"}

        try:
            payload = OrderPayload.model_validate(payload_dict)
            result = create_invoice_from_payload(
                payload, services.session, services.xero, services.config
            )
        except BridgeError as e:
            logger.error("create-invoice failed: %s", e)
            status = 500
            if isinstance(e, VendorRejected) and e.status_code:
                status = e.status_code
            return JSONResponse(
                status_code=status,
                content={"ok": False, "error": str(e), "xero": getattr(e, "detail", None)},
            )
        return {"ok": True, "result": result.model_dump()}

    # ── Xero → PrintLogic invoice webhook (payment sync) ─────────────────

    @app.post("/xero/invoice-webhook", response_class=PlainTextResponse)
    def invoice_webhook(body: Optional[WebhookPayload] = Body(default=None)):
        events = body.events if body is not None else None
        if not isinstance(events, list) or not events:
            logger.info("No events in webhook payload")
            return "No events"

        try:
            outcomes = process_invoice_webhook(
                events, services.session, services.xero, services.printlogic, services.config
            )
        except BridgeError as e:
            logger.error("Invoice webhook error: %s (%s)", e, getattr(e, "detail", None))
            return PlainTextResponse("Error handling invoice webhook", status_code=500)

        updated = sum(1 for o in outcomes if o.outcome == "updated")
        logger.info("Webhook processed %d event(s), %d order(s) updated", len(outcomes), updated)
        return "OK"

    return app


app = create_app()
