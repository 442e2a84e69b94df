"""
Pytest configuration and shared fixtures for the bridge test suite.
"""
import copy
import json
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
os.chdir(PROJECT_ROOT)


class FakeHttp:
    """
    Stand-in for bridge.http.request_json.

    Routes are matched on method + a substring of the URL; the most recently
    added matching route wins. Every call is recorded.
    """

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self._routes: list[tuple[str, str, Any, Optional[Exception]]] = []

    def add(self, method: str, url_part: str, response: Any = None, error: Optional[Exception] = None) -> None:
        self._routes.append((method.upper(), url_part, response, error))

    def __call__(self, method: str, url: str, **kwargs: Any) -> Any:
        call = {"method": method.upper(), "url": url, **kwargs}
        self.calls.append(call)
        for route_method, url_part, response, error in reversed(self._routes):
            if route_method == call["method"] and url_part in url:
                if error is not None:
                    raise error
                if callable(response):
                    return response(call)
                return copy.deepcopy(response)
        raise AssertionError(f"Unexpected HTTP call: {method} {url}")

    def calls_to(self, url_part: str, method: Optional[str] = None) -> list[dict]:
        return [
            c for c in self.calls
            if url_part in c["url"] and (method is None or c["method"] == method.upper())
        ]


def token_response(access: str = "new-access", refresh: str = "new-refresh", expires_in: Optional[int] = 1800) -> dict:
    data = {
        "access_token": access,
        "refresh_token": refresh,
        "token_type": "Bearer",
        "scope": "offline_access accounting.transactions",
    }
    if expires_in is not None:
        data["expires_in"] = expires_in
    return data


TENANTS = [
    {"tenantId": "tenant-1", "tenantName": "Edinburgh Print Ltd", "tenantType": "ORGANISATION"},
    {"tenantId": "tenant-2", "tenantName": "Demo Company (UK)", "tenantType": "ORGANISATION"},
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for test files."""
    tmp_path = tempfile.mkdtemp(prefix="plxero_test_")
    yield Path(tmp_path)
    shutil.rmtree(tmp_path, ignore_errors=True)


@pytest.fixture
def test_config(temp_dir: Path) -> "Config":
    """Provide a test configuration with isolated paths and no ambient env values."""
    from config import Config

    config = Config()
    config.token_path = temp_dir / "xero-token.json"
    config.config_dir = temp_dir / "config"
    config.config_dir.mkdir(parents=True, exist_ok=True)

    config.port = 4002
    config.xero_client_id = "client-id"
    config.xero_client_secret = "client-secret"
    config.xero_redirect_uri = "https://bridge.example.com/xero/callback"
    config.xero_scopes = "offline_access accounting.transactions"

    config.sales_account = "200"
    config.stripe_account = None
    config.stripe_account_code = None
    config.brand_edinburgh = None
    config.brand_giclee = None
    config.brand_pps = None
    config.brand_sdk = None

    config.pl_api_url = "https://pl.example.com/api.php"
    config.pl_api_key = "pl-key"
    config.paid_order_status = "Pre-Press"
    config.pl_status_template = "pl_status_template.json.j2"
    return config


@pytest.fixture
def saved_token(test_config) -> dict:
    """Write a not-yet-expired token set to the configured token file."""
    token = {
        "access_token": "old-access",
        "refresh_token": "old-refresh",
        "expires_at": int(time.time()) + 1200,
        "id_token": "id-token-from-consent",
        "session_state": "abc123",
    }
    test_config.token_path.write_text(json.dumps(token))
    return token


@pytest.fixture
def fake_http(monkeypatch) -> FakeHttp:
    """Route every outbound call through a FakeHttp recorder."""
    fake = FakeHttp()
    monkeypatch.setattr("bridge.token_manager.request_json", fake)
    monkeypatch.setattr("bridge.xero_api.request_json", fake)
    monkeypatch.setattr("bridge.order_management.request_json", fake)
    return fake


@pytest.fixture
def xero_ready(fake_http: FakeHttp) -> FakeHttp:
    """Identity and connections endpoints answering successfully."""
    fake_http.add("POST", "identity.xero.com/connect/token", token_response())
    fake_http.add("GET", "api.xero.com/connections", TENANTS)
    return fake_http


@pytest.fixture
def session(test_config):
    from bridge.token_manager import XeroSession
    return XeroSession(test_config)


@pytest.fixture
def xero_api(session, test_config):
    from bridge.xero_api import XeroAccountingApi
    return XeroAccountingApi(session, test_config)


@pytest.fixture
def sample_payload() -> dict:
    """A typical Power Automate body for a web order with two PrintLogic items."""
    return {
        "order_number": "6789",
        "order_po": "WEB-1234",
        "logicSource": "pa-web-orders",
        "pl_order": {
            "customer_name": "Test Customer",
            "customer_email": "accounts@testcustomer.co.uk",
            "customer_category": "Edinburgh Banners Trade",
            "order_total": "100.00",
            "order_vat": "20.00",
        },
        "order_detail": {
            "order_date_due": "2024-03-01",
            "items": {
                "1": {"title": "PVC Banner", "detail": "3m x 1m, eyelets", "quantity": "2", "price": "80.00", "vat": "20"},
                "2": {"title": "Delivery", "detail": "", "quantity": "0", "price": "20.00", "vat": "20"},
            },
        },
        "markAsPaid": "false",
        "emailCustomer": "false",
    }


@pytest.fixture
def created_invoice_response() -> dict:
    """Xero's createInvoices echo for a single invoice."""
    return {
        "Invoices": [{
            "InvoiceID": "a1b2c3d4-0000-0000-0000-000000000001",
            "InvoiceNumber": "INV-0042",
            "Reference": "WEB-1234 [6789]",
            "Status": "AUTHORISED",
            "Total": 120.0,
        }]
    }


# Configure pytest markers
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "api: API tests")


def make_order(**fields) -> "OrderPayload":
    from models.order import OrderPayload
    return OrderPayload.model_validate(fields)


def callable_counter(factory: Callable[[int], Any]) -> Callable[[dict], Any]:
    """Response callable that passes a 1-based call count to *factory*."""
    state = {"n": 0}

    def _respond(call: dict) -> Any:
        state["n"] += 1
        return factory(state["n"])

    return _respond
