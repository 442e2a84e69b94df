"""
Xero OAuth2 token lifecycle and tenant resolution.

XeroSession owns the token set and is passed explicitly to every
vendor-facing operation; there is no module-level token or tenant state.

State machine:

    UNINITIALIZED → LOADED → REFRESHING → READY
                    (any) → INVALID   when the refresh token is missing or rejected

ensure_ready() refreshes UNCONDITIONALLY, even when the access token looks
valid by the local clock, then re-resolves the tenant. Concurrent callers
that arrive during a refresh share the in-flight result instead of issuing
their own refresh.
"""
import enum
import json
import logging
import os
import secrets
import tempfile
import threading
import time
import urllib.parse
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Optional

from config import Config
from models.token import Tenant, TokenSet
from .coercion import parse_number
from .errors import NoTenant, NotAuthenticated, RefreshFailed, TenantLookupFailed, TokenStoreFailed
from .http import HttpError, TransportError, request_json

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 1800       # seconds, used when Xero omits expires_in


class TokenState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    REFRESHING = "refreshing"
    READY = "ready"
    INVALID = "invalid"


def load_token_file(path: Path) -> Optional[TokenSet]:
    if not path.exists():
        return None
    with open(path, encoding="utf-8") as f:
        return TokenSet.model_validate(json.load(f))


def save_token_file(path: Path, token: TokenSet) -> None:
    """Write the full token record, replacing the previous file in one step."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".xero-token-", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(token.model_dump(), f, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    logger.info("Saved Xero token to %s", path)


class XeroSession:
    """
    Credential and tenant holder for one Xero connection.

    Usage:
        session = XeroSession(config)
        session.initialize()
        tenant_id = session.ensure_ready()
    """

    def __init__(self, config: Config):
        self.config = config
        self.token_path = Path(config.token_path)
        self.state = TokenState.UNINITIALIZED
        self.tenant_id: Optional[str] = None
        self._token: Optional[TokenSet] = None
        self._initialized = False
        self._lock = threading.Lock()
        self._inflight: Optional[Future] = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Load any saved token from disk. Safe to call repeatedly."""
        if self._initialized:
            logger.debug("XeroSession already initialized")
            return
        self._initialized = True
        if self._load_from_disk() is None:
            logger.info("No saved Xero token found at %s", self.token_path)
            return
        if self._token.is_expired(time.time()):
            logger.info("Token from disk appears expired, will refresh on next request")

    def _load_from_disk(self) -> Optional[TokenSet]:
        try:
            stored = load_token_file(self.token_path)
        except (OSError, ValueError) as exc:
            logger.error("Failed to load Xero token from %s: %s", self.token_path, exc)
            return None
        if stored is not None:
            self._token = stored
            self.state = TokenState.LOADED
            logger.info("Loaded Xero token set from %s", self.token_path)
        return stored

    @property
    def token(self) -> Optional[TokenSet]:
        return self._token

    @property
    def access_token(self) -> str:
        if self._token is None or not self._token.access_token:
            raise NotAuthenticated()
        return self._token.access_token

    # ------------------------------------------------------------------
    # Ready check
    # ------------------------------------------------------------------

    def ensure_ready(self) -> str:
        """
        Refresh the token and resolve the tenant; returns the tenant id.

        Raises NotAuthenticated, RefreshFailed, TenantLookupFailed or NoTenant.
        """
        with self._lock:
            flight = self._inflight
            leader = flight is None
            if leader:
                flight = self._inflight = Future()

        if not leader:
            logger.debug("Refresh already in flight, waiting for it")
            return flight.result()

        try:
            tenant_id = self._refresh_and_resolve()
        except BaseException as exc:
            flight.set_exception(exc)
            raise
        else:
            flight.set_result(tenant_id)
            return tenant_id
        finally:
            with self._lock:
                self._inflight = None

    def _refresh_and_resolve(self) -> str:
        logger.debug("ensure_ready: tenant before: %s", self.tenant_id)
        self.initialize()

        if self._token is None or not self._token.has_valid_refresh():
            self._load_from_disk()

        if self._token is None or not self._token.has_valid_refresh():
            self.state = TokenState.INVALID
            raise NotAuthenticated()

        self.state = TokenState.REFRESHING
        token = self._refresh_with_disk_fallback(self._token)
        # Keep the rotated token in memory even if saving it fails
        self._token = token
        self._persist(token)
        logger.info("Token refreshed, new expiry (epoch): %s", token.expires_at)

        tenants = self.list_tenants()
        if not tenants:
            self.state = TokenState.LOADED
            raise NoTenant()

        self.tenant_id = tenants[0].tenantId
        self.state = TokenState.READY
        logger.info("Xero ready, tenant: %s", self.tenant_id)
        return self.tenant_id

    def _refresh_failed(self, exc: Exception) -> RefreshFailed:
        self.state = TokenState.INVALID
        detail = exc.body if isinstance(exc, HttpError) else str(exc)
        logger.error("Failed to refresh Xero token: %s", detail)
        return RefreshFailed(detail)

    def _refresh_with_disk_fallback(self, current: TokenSet) -> TokenSet:
        """
        Refresh with the in-memory token; when Xero rejects it, retry once with
        the token file if another process (e.g. `main.py refresh`) rotated it.
        """
        try:
            return self._refresh(current)
        except TransportError as exc:
            raise self._refresh_failed(exc) from exc
        except HttpError as exc:
            rejected = exc

        try:
            stored = load_token_file(self.token_path)
        except (OSError, ValueError) as exc:
            logger.error("Failed to re-read Xero token from %s: %s", self.token_path, exc)
            stored = None
        if (
            stored is None
            or not stored.has_valid_refresh()
            or stored.refresh_token == current.refresh_token
        ):
            raise self._refresh_failed(rejected) from rejected

        logger.info("Refresh token rejected, retrying with the token saved in %s", self.token_path)
        try:
            return self._refresh(stored)
        except (HttpError, TransportError) as exc:
            raise self._refresh_failed(exc) from exc

    def _refresh(self, previous: TokenSet) -> TokenSet:
        logger.info("Refreshing Xero token via identity endpoint")
        data = request_json(
            "POST",
            self.config.xero_identity_url,
            form={
                "grant_type": "refresh_token",
                "refresh_token": previous.refresh_token,
                "client_id": self.config.xero_client_id,
                "client_secret": self.config.xero_client_secret,
            },
            timeout=self.config.http_timeout,
        )
        try:
            return self._merge(previous, data)
        except ValueError as exc:
            self.state = TokenState.INVALID
            logger.error("Unusable token response from Xero: %s", data)
            raise RefreshFailed(data) from exc

    def _persist(self, token: TokenSet) -> None:
        try:
            save_token_file(self.token_path, token)
        except OSError as exc:
            self.state = TokenState.LOADED
            logger.error("Failed to save Xero token to %s: %s", self.token_path, exc)
            raise TokenStoreFailed(str(exc)) from exc

    @staticmethod
    def _merge(previous: Optional[TokenSet], data: Any) -> TokenSet:
        """Previous record overlaid with Xero's response; unknown fields survive."""
        data = data if isinstance(data, dict) else {}
        merged = previous.model_dump() if previous is not None else {}
        merged.update(data)
        expires_in = parse_number(data.get("expires_in")) or DEFAULT_EXPIRES_IN
        merged["expires_at"] = int(time.time()) + int(expires_in)
        return TokenSet.model_validate(merged)

    def list_tenants(self) -> list[Tenant]:
        """Organisations connected to the current access token."""
        try:
            data = request_json(
                "GET",
                self.config.xero_connections_url,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.config.http_timeout,
            )
        except (HttpError, TransportError) as exc:
            detail = exc.body if isinstance(exc, HttpError) else str(exc)
            logger.error("Error updating tenants after refresh: %s", detail)
            raise TenantLookupFailed(detail) from exc
        if not isinstance(data, list):
            return []
        return [Tenant.model_validate(c) for c in data if isinstance(c, dict) and c.get("tenantId")]

    # ------------------------------------------------------------------
    # Consent flow
    # ------------------------------------------------------------------

    def authorization_url(self, state: Optional[str] = None) -> str:
        """Xero consent URL the operator opens in a browser."""
        query = urllib.parse.urlencode({
            "response_type": "code",
            "client_id": self.config.xero_client_id,
            "redirect_uri": self.config.xero_redirect_uri,
            "scope": " ".join(self.config.scopes),
            "state": state or secrets.token_urlsafe(16),
        })
        return f"{self.config.xero_authorize_url}?{query}"

    def complete_authorization(self, code: str) -> TokenSet:
        """Exchange the callback's authorization code for a token set and persist it."""
        try:
            data = request_json(
                "POST",
                self.config.xero_identity_url,
                form={
                    "grant_type": "authorization_code",
                    "code": code,
                    "redirect_uri": self.config.xero_redirect_uri,
                    "client_id": self.config.xero_client_id,
                    "client_secret": self.config.xero_client_secret,
                },
                timeout=self.config.http_timeout,
            )
        except (HttpError, TransportError) as exc:
            detail = exc.body if isinstance(exc, HttpError) else str(exc)
            raise RefreshFailed(detail) from exc

        try:
            token = self._merge(None, data)
        except ValueError as exc:
            raise RefreshFailed(data) from exc

        with self._lock:
            self._token = token
            self._initialized = True
            self.state = TokenState.LOADED
            self._persist(token)
        return token

    def status(self) -> dict:
        token = self._token
        return {
            "state": self.state.value,
            "tenant_id": self.tenant_id,
            "token_file": str(self.token_path),
            "token_file_exists": self.token_path.exists(),
            "has_refresh_token": bool(token and token.has_valid_refresh()),
            "expires_at": token.expires_at if token else None,
        }
