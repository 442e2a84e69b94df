"""
Unit tests for the create-invoice flow against a faked Xero.
"""
from datetime import date

import pytest

from bridge.errors import NotAuthenticated, RefreshFailed
from bridge.http import HttpError
from bridge.invoice_service import create_invoice_from_payload
from conftest import make_order

INVOICES = "api.xro/2.0/Invoices"
PAYMENTS = "api.xro/2.0/Payments"


@pytest.fixture
def xero_invoices(xero_ready, created_invoice_response):
    xero_ready.add("POST", INVOICES, created_invoice_response)
    return xero_ready


def _create(payload: dict, session, xero_api, test_config):
    return create_invoice_from_payload(make_order(**payload), session, xero_api, test_config)


@pytest.mark.unit
class TestCreateInvoice:
    """Tests for create_invoice_from_payload."""

    def test_happy_path(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        result = _create(sample_payload, session, xero_api, test_config)

        assert result.success is True
        assert result.invoice["InvoiceNumber"] == "INV-0042"
        assert result.raw_response["Invoices"][0]["InvoiceID"].startswith("a1b2c3d4")
        assert result.error is None

        [call] = xero_invoices.calls_to(INVOICES, "POST")
        assert call["headers"] == {"Authorization": "Bearer new-access", "xero-tenant-id": "tenant-1"}
        assert call["params"] == {"summarizeErrors": "true", "unitdp": 2}
        [sent] = call["json_body"]["Invoices"]
        assert sent["Reference"] == "WEB-1234 [6789]"
        assert sent["Status"] == "AUTHORISED"
        assert len(sent["LineItems"]) == 2

        assert xero_invoices.calls_to(PAYMENTS) == []
        assert xero_invoices.calls_to("/Email") == []

    def test_token_refreshed_before_create(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        _create(sample_payload, session, xero_api, test_config)
        urls = [c["url"] for c in xero_invoices.calls]
        assert "identity.xero.com" in urls[0]
        assert "connections" in urls[1]
        assert INVOICES in urls[2]

    def test_vendor_rejection_is_returned(self, session, xero_api, test_config, saved_token, xero_ready, sample_payload):
        detail = {"Message": "A validation exception occurred", "Elements": [{"ValidationErrors": []}]}
        xero_ready.add("POST", INVOICES, error=HttpError(400, detail, INVOICES))

        result = _create(sample_payload, session, xero_api, test_config)

        assert result.success is False
        assert result.invoice is None
        assert "A validation exception occurred" in result.error

    def test_not_authenticated_propagates(self, session, xero_api, test_config, fake_http, sample_payload):
        with pytest.raises(NotAuthenticated):
            _create(sample_payload, session, xero_api, test_config)
        assert fake_http.calls == []

    def test_refresh_failure_propagates(self, session, xero_api, test_config, saved_token, fake_http, sample_payload):
        fake_http.add("POST", "identity.xero.com", error=HttpError(400, {"error": "invalid_grant"}))
        with pytest.raises(RefreshFailed):
            _create(sample_payload, session, xero_api, test_config)
        assert fake_http.calls_to(INVOICES) == []


@pytest.mark.unit
class TestFollowUps:
    """Tests for the mark-as-paid and email follow-up calls."""

    def test_mark_as_paid(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        xero_invoices.add("PUT", PAYMENTS, {"Payments": [{"PaymentID": "p-1"}]})
        test_config.stripe_account = "0999"
        sample_payload["markAsPaid"] = "yes"

        result = _create(sample_payload, session, xero_api, test_config)

        assert result.success is True
        [call] = xero_invoices.calls_to(PAYMENTS, "PUT")
        assert call["json_body"] == {"Payments": [{
            "Invoice": {"InvoiceID": "a1b2c3d4-0000-0000-0000-000000000001"},
            "Account": {"Code": "0999"},
            "Date": date.today().isoformat(),
            "Amount": 120.0,
        }]}

    def test_mark_as_paid_without_amount(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        sample_payload["markAsPaid"] = True
        sample_payload["pl_order"] = {"customer_name": "Test Customer"}

        result = _create(sample_payload, session, xero_api, test_config)

        assert result.success is True
        assert xero_invoices.calls_to(PAYMENTS) == []

    def test_payment_failure_does_not_fail_result(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        xero_invoices.add("PUT", PAYMENTS, error=HttpError(400, {"Message": "Account not enabled for payments"}))
        sample_payload["markAsPaid"] = "true"

        result = _create(sample_payload, session, xero_api, test_config)

        assert result.success is True
        assert result.invoice["InvoiceNumber"] == "INV-0042"

    def test_email_customer(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        xero_invoices.add("POST", "/Email", {})
        sample_payload["emailCustomer"] = "1"

        _create(sample_payload, session, xero_api, test_config)

        [call] = xero_invoices.calls_to("/Email", "POST")
        assert call["url"].endswith("/Invoices/a1b2c3d4-0000-0000-0000-000000000001/Email")
        assert call["json_body"] == {}

    def test_email_failure_does_not_fail_result(self, session, xero_api, test_config, saved_token, xero_invoices, sample_payload):
        xero_invoices.add("POST", "/Email", error=HttpError(400, "no email address"))
        sample_payload["emailCustomer"] = True
        assert _create(sample_payload, session, xero_api, test_config).success is True

    def test_no_invoice_id_skips_follow_ups(self, session, xero_api, test_config, saved_token, xero_ready, sample_payload):
        xero_ready.add("POST", INVOICES, {"Invoices": [{"InvoiceNumber": "INV-0043"}]})
        sample_payload.update(markAsPaid=True, emailCustomer=True)

        result = _create(sample_payload, session, xero_api, test_config)

        assert result.success is True
        assert xero_ready.calls_to(PAYMENTS) == []
        assert xero_ready.calls_to("/Email") == []
