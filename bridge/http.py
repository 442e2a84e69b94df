"""
Minimal JSON-over-HTTP helper for the Xero and PrintLogic calls.

Every call carries a timeout; a timeout or connection failure raises
TransportError, and a non-2xx response raises HttpError with the decoded
body so callers can surface the vendor's error detail.
"""
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from typing import Any, Mapping, Optional

logger = logging.getLogger(__name__)

USER_AGENT = "PL-Xero-Bridge/1.0"


class HttpError(Exception):
    def __init__(self, status_code: int, body: Any, url: str = ""):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"HTTP {status_code} from {url}: {body}")


class TransportError(Exception):
    """Network failure or timeout before any HTTP status was received."""


def _decode(raw: bytes) -> Any:
    text = raw.decode("utf-8", errors="replace")
    if not text.strip():
        return {}
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def request_json(
    method: str,
    url: str,
    *,
    params: Optional[Mapping[str, Any]] = None,
    json_body: Any = None,
    form: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
    timeout: float = 10.0,
) -> Any:
    """
    Send a request and return the decoded response body.

    Pass json_body for application/json or form for
    application/x-www-form-urlencoded; not both.
    """
    if params:
        url = f"{url}{'&' if '?' in url else '?'}{urllib.parse.urlencode(params)}"

    data: Optional[bytes] = None
    req_headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if form is not None:
        data = urllib.parse.urlencode(form).encode("utf-8")
        req_headers["Content-Type"] = "application/x-www-form-urlencoded"
    elif json_body is not None:
        data = json.dumps(json_body).encode("utf-8")
        req_headers["Content-Type"] = "application/json; charset=utf-8"
    req_headers.update(headers or {})

    req = urllib.request.Request(url, data=data, method=method.upper(), headers=req_headers)
    logger.debug("%s %s", method.upper(), url.split("?")[0])

    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return _decode(response.read())
    except urllib.error.HTTPError as e:
        body = _decode(e.read()) if e.fp else str(e)
        raise HttpError(e.code, body, url.split("?")[0]) from e
    except (urllib.error.URLError, TimeoutError, OSError) as e:
        raise TransportError(f"{method.upper()} {url.split('?')[0]} failed: {e}") from e
