"""Exception hierarchy for the relay client.

Errors are surfaced as-is: the client never retries, and never interprets
the relay's error payloads. Transport errors carry whatever status code and
body the HTTP layer provided.
"""

from typing import Optional


class DexRelayError(Exception):
    """Base exception for all client errors."""

    pass


class ApiTransportError(DexRelayError):
    """An HTTP call to the relay did not complete successfully.

    Attributes:
        status_code: HTTP status, or None when no response was received
        body: Raw response text, or None when no response was received
        url: Request URL
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        url: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url


class ApiTimeoutError(ApiTransportError):
    """The relay did not respond within the configured timeout."""

    pass


class ApiConnectionError(ApiTransportError):
    """The relay could not be reached (DNS, refused connection, TLS, ...)."""

    pass


class ApiResponseError(ApiTransportError):
    """The relay answered with a non-2xx status."""

    pass


class SigningError(DexRelayError):
    """An order or cancellation could not be signed."""

    pass


class PermissionRevertError(DexRelayError):
    """A permission registry call reverted; no state was changed."""

    pass
