from pydantic import BaseModel, ConfigDict
from typing import Optional


class TokenSet(BaseModel):
    """
    OAuth2 token record for the Xero identity service.

    Vendor fields we do not model (id_token, scope, token_type, expires_in,
    session_state, ...) are kept as extras so a refresh never drops them and
    the persisted file is the full record.
    """
    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None        # epoch seconds

    def has_valid_refresh(self) -> bool:
        return isinstance(self.refresh_token, str) and len(self.refresh_token) > 0

    def is_expired(self, now: float) -> bool:
        # Unknown expiry counts as still valid
        if not self.expires_at:
            return False
        return now >= self.expires_at


class Tenant(BaseModel):
    """One organisation connected to the current credential."""
    model_config = ConfigDict(extra="allow")

    tenantId: str
    tenantName: Optional[str] = None
    tenantType: Optional[str] = None
