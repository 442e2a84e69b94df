"""
Central configuration for the PL → Xero bridge.

All credentials, account codes, branding ids and endpoints are defined here.
Override via environment variables or by passing a Config instance directly.

Settings priority (highest wins):
  1. Environment variables
  2. config/bridge_settings.json  (admin-editable, persisted)
  3. Hardcoded defaults in this file
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Project root (directory containing this file)
PROJECT_ROOT = Path(__file__).parent

DEFAULT_TOKEN_PATH = PROJECT_ROOT / "xero-token.json"
DEFAULT_CONFIG_DIR = PROJECT_ROOT / "config"

# Used when neither clearing-account setting is present
FALLBACK_CLEARING_ACCOUNT = "0002"


def _env_or_none(name: str) -> Optional[str]:
    value = os.getenv(name)
    return value if value else None


@dataclass
class Config:
    # --- Server ---
    host: str = field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("PORT", "4002")))
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "info").lower())
    # "debug" | "info" | "warn" | "error"

    # --- Xero OAuth ---
    xero_client_id: str = field(default_factory=lambda: os.getenv("XERO_CLIENT_ID", ""))
    xero_client_secret: str = field(default_factory=lambda: os.getenv("XERO_CLIENT_SECRET", ""))
    xero_redirect_uri: str = field(default_factory=lambda: os.getenv("XERO_REDIRECT_URI", ""))
    xero_scopes: str = field(
        default_factory=lambda: os.getenv(
            "XERO_SCOPES",
            "offline_access accounting.transactions accounting.contacts accounting.settings",
        )
    )
    token_path: Path = field(
        default_factory=lambda: Path(os.getenv("XERO_TOKEN_PATH", str(DEFAULT_TOKEN_PATH)))
    )

    # --- Xero endpoints ---
    xero_identity_url: str = "https://identity.xero.com/connect/token"
    xero_authorize_url: str = "https://login.xero.com/identity/connect/authorize"
    xero_connections_url: str = "https://api.xero.com/connections"
    xero_api_base_url: str = "https://api.xero.com/api.xro/2.0"

    # --- Accounting ---
    sales_account: str = field(default_factory=lambda: os.getenv("XERO_SALES_ACCOUNT", "200"))
    # Stripe / online payment clearing account; two names are accepted
    stripe_account: Optional[str] = field(default_factory=lambda: _env_or_none("XERO_STRIPE_ACCOUNT"))
    stripe_account_code: Optional[str] = field(
        default_factory=lambda: _env_or_none("XERO_STRIPE_ACCOUNT_CODE")
    )

    # --- Branding theme ids (Xero → Settings → Invoice Settings → Branding) ---
    brand_edinburgh: Optional[str] = field(default_factory=lambda: _env_or_none("XERO_BRAND_EDINBURGH"))
    brand_giclee:    Optional[str] = field(default_factory=lambda: _env_or_none("XERO_BRAND_GICLEE"))
    brand_pps:       Optional[str] = field(default_factory=lambda: _env_or_none("XERO_BRAND_PPS"))
    brand_sdk:       Optional[str] = field(default_factory=lambda: _env_or_none("XERO_BRAND_SDK"))

    # --- PrintLogic (order management) ---
    pl_api_url: Optional[str] = field(default_factory=lambda: _env_or_none("PL_API_URL"))
    pl_api_key: Optional[str] = field(default_factory=lambda: _env_or_none("PL_API_KEY"))
    paid_order_status: str = field(default_factory=lambda: os.getenv("PL_PAID_STATUS", "Pre-Press"))
    # Must exactly match the PrintLogic status text
    pl_status_template: str = field(
        default_factory=lambda: os.getenv("PL_STATUS_TEMPLATE", "pl_status_template.json.j2")
    )

    # --- Outbound HTTP ---
    http_timeout: float = field(default_factory=lambda: float(os.getenv("HTTP_TIMEOUT", "10")))

    config_dir: Path = field(
        default_factory=lambda: Path(os.getenv("CONFIG_DIR", str(DEFAULT_CONFIG_DIR)))
    )

    def __post_init__(self) -> None:
        """Overlay runtime-tunable settings from bridge_settings.json if present."""
        settings_file = self.config_dir / "bridge_settings.json"
        if not settings_file.exists():
            return
        _type_map: dict[str, type] = {
            "sales_account":        str,
            "stripe_account":       str,
            "stripe_account_code":  str,
            "brand_edinburgh":      str,
            "brand_giclee":         str,
            "brand_pps":            str,
            "brand_sdk":            str,
            "paid_order_status":    str,
            "pl_status_template":   str,
            "http_timeout":         float,
        }
        try:
            with open(settings_file, encoding="utf-8") as f:
                overrides = {k: v for k, v in json.load(f).items() if not k.startswith("_")}
            for key, val in overrides.items():
                if key in _type_map and hasattr(self, key):
                    setattr(self, key, _type_map[key](val) if val is not None else None)
        except Exception as exc:
            logger.warning("Failed to load bridge_settings.json: %s", exc)

    @property
    def brands(self) -> dict[str, Optional[str]]:
        """Configured branding theme ids keyed by brand slug."""
        return {
            "edinburgh": self.brand_edinburgh,
            "giclee":    self.brand_giclee,
            "pps":       self.brand_pps,
            "sdk":       self.brand_sdk,
        }

    @property
    def clearing_account_code(self) -> str:
        return self.stripe_account or self.stripe_account_code or FALLBACK_CLEARING_ACCOUNT

    @property
    def scopes(self) -> list[str]:
        return [s for s in self.xero_scopes.split(" ") if s]
