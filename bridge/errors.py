"""
Error taxonomy for the bridge.

Token failures abort the request that triggered them; vendor and
order-management failures are either surfaced in the result or logged,
depending on whether the call was the main operation or a follow-up.
"""
from typing import Any, Optional


class BridgeError(Exception):
    """Base class for all bridge failures."""


class NotAuthenticated(BridgeError):
    """No usable refresh token in memory or on disk."""

    def __init__(self, message: str = (
        "No Xero refresh token available. Re-authenticate Xero via the connect endpoint."
    )):
        super().__init__(message)


class RefreshFailed(BridgeError):
    """Xero's identity service rejected the refresh token."""

    def __init__(self, detail: Any = None):
        self.detail = detail
        super().__init__(
            "Failed to refresh Xero token. You may need to re-connect Xero via the browser auth flow."
        )


class NoTenant(BridgeError):
    """The credential is valid but no Xero organisation is connected."""

    def __init__(self, message: str = "No Xero tenants available. Check the Xero org connection."):
        super().__init__(message)


class TenantLookupFailed(BridgeError):
    """The connections endpoint could not be reached after a refresh."""

    def __init__(self, detail: Any = None):
        self.detail = detail
        super().__init__("Failed to fetch Xero tenants after token refresh.")


class VendorRejected(BridgeError):
    """A Xero Accounting API call returned an error body."""

    def __init__(self, operation: str, status_code: Optional[int] = None, detail: Any = None):
        self.operation = operation
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Xero {operation} failed (HTTP {status_code}): {detail}")


class MappingSkipped(BridgeError):
    """A webhook event could not be mapped back to a PrintLogic order."""


class OrderManagementError(BridgeError):
    """PrintLogic refused or could not receive a status update."""


class TokenStoreFailed(BridgeError):
    """A token set was obtained from Xero but could not be written to the token file."""

    def __init__(self, detail: Any = None):
        self.detail = detail
        super().__init__("Failed to save the Xero token file. Check XERO_TOKEN_PATH is writable.")
