"""Error taxonomy for the iControl REST client.

Two families:
- Synchronous misuse errors raised before any network activity
  (ConfigurationError, OperationError).
- Request failures raised from a dispatch (TransportFailure when no
  HTTP response was obtained, ApiFailure when the device answered with a
  non-success status).

Request failures keep a weak reference to the client that issued them,
for diagnostics only.
"""

from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from .client import IControlRestClient


class IControlRestError(Exception):
    """Base class for every error raised by this package."""

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(IControlRestError):
    """Invalid connection parameters (missing/malformed url or credentials)."""

    pass


class OperationError(IControlRestError):
    """Transaction lifecycle misuse on a client."""

    pass


class RequestError(IControlRestError):
    """A dispatch that did not produce a successful response."""

    def __init__(self, message: str = "", client: IControlRestClient | None = None) -> None:
        super().__init__(message)
        self._client_ref = weakref.ref(client) if client is not None else None

    @property
    def client(self) -> IControlRestClient | None:
        """The issuing client, or None if it is gone."""
        if self._client_ref is None:
            return None
        return self._client_ref()


class TransportFailure(RequestError):
    """No usable HTTP response (connect error, timeout, undecodable body, ...)."""

    pass


class ApiFailure(RequestError):
    """The device answered with a status other than 200."""

    def __init__(
        self,
        message: str = "",
        http_status: int = 0,
        body: Any = None,
        client: IControlRestClient | None = None,
    ) -> None:
        super().__init__(message, client)
        self.http_status = http_status
        self.body = body

    def __str__(self) -> str:
        if self.message:
            return f"HTTP {self.http_status}: {self.message}"
        return f"HTTP {self.http_status}"


# =============================================================================
# Classification
# =============================================================================


def error_from_exception(exc: Exception, client: IControlRestClient | None = None) -> TransportFailure:
    """Build a TransportFailure from an httpx.RequestError."""
    message = str(exc) or exc.__class__.__name__
    return TransportFailure(message, client=client)


def error_from_response(
    response: httpx.Response,
    body: Any,
    client: IControlRestClient | None = None,
) -> ApiFailure:
    """Build an ApiFailure from a non-200 response.

    The message comes from the body's ``message`` field. Bodies without
    one (or that are not JSON objects) give an empty message.
    """
    message = ""
    if isinstance(body, dict):
        raw = body.get("message")
        if raw is not None:
            message = str(raw)
    return ApiFailure(message, http_status=response.status_code, body=body, client=client)
