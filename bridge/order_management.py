"""
PrintLogic order-management client.

Pushes order status changes back into PrintLogic once Xero reports an
invoice as paid. The request body is rendered from a Jinja2 template so
operators can match whatever their PrintLogic API version expects; drop a
pl_status_template.json.j2 into the config directory to override the
built-in one.
"""
import json
import logging
import re
from typing import Any, Optional

from jinja2 import ChoiceLoader, DictLoader, FileSystemLoader
from jinja2.sandbox import SandboxedEnvironment

from config import Config
from .errors import OrderManagementError
from .http import HttpError, TransportError, request_json

logger = logging.getLogger(__name__)

# Matches the bracketed job number written into the Xero invoice reference
_ORDER_NUMBER_RE = re.compile(r"\[(\d+)\]")

DEFAULT_STATUS_TEMPLATE = """\
{
  "action": "update_order_status",
  "order_number": {{ order_number | string | tojson }},
  "status": {{ status | tojson }}
}
"""


def extract_order_number(reference: Any) -> Optional[str]:
    """
    Pull the PrintLogic order number out of a Xero invoice reference.

    "WEB-1532TEST [6662]" → "6662", "[6663]" → "6663", anything without a
    bracketed number → None.
    """
    if not reference or not isinstance(reference, str):
        return None
    match = _ORDER_NUMBER_RE.search(reference)
    return match.group(1) if match else None


class PrintLogicClient:
    """
    Sends update_order_status calls to the PrintLogic API.

    PrintLogic answers {"result": "ok"} or {"status": "ok"} on success.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self.jinja_env = SandboxedEnvironment(
            loader=ChoiceLoader([
                FileSystemLoader(str(config.config_dir)),
                DictLoader({config.pl_status_template: DEFAULT_STATUS_TEMPLATE}),
            ]),
            keep_trailing_newline=True,
        )

    def render_payload(self, order_number: str, status: str) -> dict:
        template = self.jinja_env.get_template(self.config.pl_status_template)
        rendered = template.render(order_number=order_number, status=status)
        try:
            return json.loads(rendered)
        except json.JSONDecodeError as e:
            raise OrderManagementError(
                f"Status template '{self.config.pl_status_template}' did not render valid JSON: {e}"
            ) from e

    def update_order_status(self, order_number: str, status: str) -> dict:
        if not self.config.pl_api_url or not self.config.pl_api_key:
            raise OrderManagementError("PL_API_URL or PL_API_KEY missing in environment")

        payload = self.render_payload(str(order_number), status)
        logger.info("PrintLogic update_order_status payload: %s", payload)

        try:
            data = request_json(
                "POST",
                self.config.pl_api_url,
                params={"api_key": self.config.pl_api_key},
                json_body=payload,
                timeout=self.config.http_timeout,
            )
        except HttpError as e:
            raise OrderManagementError(
                f"PrintLogic update_order_status failed: HTTP {e.status_code} {e.body}"
            ) from e
        except TransportError as e:
            raise OrderManagementError(f"PrintLogic update_order_status failed: {e}") from e

        logger.info("PrintLogic update_order_status response: %s", data)
        data = data if isinstance(data, dict) else {}

        result = data.get("result")
        if result is None:
            result = data.get("status")
        if result != "ok":
            raise OrderManagementError(
                f"PrintLogic update_order_status failed: {json.dumps(data)}"
            )
        return data
