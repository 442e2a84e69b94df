"""
Unit tests for the Xero invoice webhook → PrintLogic status sync.
"""
import pytest

from bridge.errors import NotAuthenticated
from bridge.http import HttpError
from bridge.order_management import PrintLogicClient
from bridge.webhook import PLACEHOLDER_RESOURCE_ID, process_invoice_webhook

PL_URL = "pl.example.com/api.php"


def invoice_event(resource_id="inv-1", category="INVOICE", event_type="UPDATE"):
    return {
        "resourceId": resource_id,
        "eventCategory": category,
        "eventType": event_type,
        "tenantId": "tenant-1",
    }


def xero_invoice(status="PAID", reference="WEB-1532TEST [6662]", number="INV-0100"):
    return {"Invoices": [{"InvoiceID": "inv-1", "InvoiceNumber": number, "Status": status, "Reference": reference}]}


@pytest.fixture
def pl_client(test_config):
    return PrintLogicClient(test_config)


@pytest.fixture
def run(session, xero_api, pl_client, test_config):
    def _run(events):
        return process_invoice_webhook(events, session, xero_api, pl_client, test_config)
    return _run


@pytest.mark.unit
class TestProcessInvoiceWebhook:
    """Tests for process_invoice_webhook."""

    @pytest.mark.parametrize("events", [None, []])
    def test_no_events_does_nothing(self, run, fake_http, events):
        assert run(events) == []
        assert fake_http.calls == []

    def test_paid_invoice_updates_printlogic(self, run, saved_token, xero_ready):
        xero_ready.add("GET", "Invoices/inv-1", xero_invoice())
        xero_ready.add("POST", PL_URL, {"result": "ok"})

        [outcome] = run([invoice_event()])

        assert outcome.outcome == "updated"
        assert outcome.order_number == "6662"
        assert outcome.invoice_number == "INV-0100"
        assert outcome.model_dump() == {
            "resource_id": "inv-1",
            "outcome": "updated",
            "detail": "Pre-Press",
            "order_number": "6662",
            "invoice_number": "INV-0100",
        }
        [pl_call] = xero_ready.calls_to(PL_URL)
        assert pl_call["json_body"] == {
            "action": "update_order_status",
            "order_number": "6662",
            "status": "Pre-Press",
        }

    def test_configured_paid_status(self, run, saved_token, xero_ready, test_config):
        test_config.paid_order_status = "Paid - Awaiting Artwork"
        xero_ready.add("GET", "Invoices/inv-1", xero_invoice())
        xero_ready.add("POST", PL_URL, {"status": "ok"})

        run([invoice_event()])

        assert xero_ready.calls_to(PL_URL)[0]["json_body"]["status"] == "Paid - Awaiting Artwork"

    @pytest.mark.parametrize("event", [
        invoice_event(category="CONTACT"),
        invoice_event(event_type="CREATE"),
        invoice_event(resource_id=None),
        invoice_event(resource_id=PLACEHOLDER_RESOURCE_ID),
        "not-an-event",
    ])
    def test_ignored_events_make_no_calls(self, run, saved_token, xero_ready, event):
        [outcome] = run([event])
        assert outcome.outcome == "ignored"
        assert xero_ready.calls_to("api.xro") == []
        assert xero_ready.calls_to(PL_URL) == []

    @pytest.mark.parametrize("status", ["AUTHORISED", "DRAFT", "VOIDED"])
    def test_unpaid_invoice_is_ignored(self, run, saved_token, xero_ready, status):
        xero_ready.add("GET", "Invoices/inv-1", xero_invoice(status=status))

        [outcome] = run([invoice_event()])

        assert outcome.outcome == "ignored"
        assert xero_ready.calls_to(PL_URL) == []

    def test_invoice_not_found(self, run, saved_token, xero_ready):
        xero_ready.add("GET", "Invoices/inv-1", {"Invoices": []})
        [outcome] = run([invoice_event()])
        assert outcome.outcome == "skipped"

    def test_reference_without_order_number_is_skipped(self, run, saved_token, xero_ready):
        xero_ready.add("GET", "Invoices/inv-1", xero_invoice(reference="WEB-1532"))
        xero_ready.add("GET", "Invoices/inv-2", xero_invoice(reference="[7000]"))
        xero_ready.add("POST", PL_URL, {"result": "ok"})

        skipped, updated = run([invoice_event("inv-1"), invoice_event("inv-2")])

        assert skipped.outcome == "skipped"
        assert skipped.resource_id == "inv-1"
        assert updated.outcome == "updated"
        assert updated.order_number == "7000"
        assert len(xero_ready.calls_to(PL_URL)) == 1

    def test_printlogic_failure_does_not_stop_batch(self, run, saved_token, xero_ready):
        xero_ready.add("GET", "Invoices/inv-1", xero_invoice(reference="[1]"))
        xero_ready.add("GET", "Invoices/inv-2", xero_invoice(reference="[2]"))
        xero_ready.add("POST", PL_URL, lambda call: (
            {"result": "error"} if call["json_body"]["order_number"] == "1" else {"result": "ok"}
        ))

        failed, updated = run([invoice_event("inv-1"), invoice_event("inv-2")])

        assert failed.outcome == "failed"
        assert "update_order_status failed" in failed.detail
        assert updated.outcome == "updated"

    def test_xero_fetch_failure_does_not_stop_batch(self, run, saved_token, xero_ready):
        xero_ready.add("GET", "Invoices/inv-1", error=HttpError(404, "not found"))
        xero_ready.add("GET", "Invoices/inv-2", xero_invoice(status="AUTHORISED"))

        failed, ignored = run([invoice_event("inv-1"), invoice_event("inv-2")])

        assert failed.outcome == "failed"
        assert ignored.outcome == "ignored"

    def test_token_failure_aborts_batch(self, run, fake_http):
        with pytest.raises(NotAuthenticated):
            run([invoice_event()])

    def test_tenant_resolved_once_per_batch(self, run, saved_token, xero_ready):
        xero_ready.add("GET", "Invoices/", xero_invoice(status="AUTHORISED"))

        run([invoice_event("inv-1"), invoice_event("inv-2"), invoice_event("inv-3")])

        assert len(xero_ready.calls_to("identity.xero.com")) == 1
        for call in xero_ready.calls_to("api.xro"):
            assert call["headers"]["xero-tenant-id"] == "tenant-1"
