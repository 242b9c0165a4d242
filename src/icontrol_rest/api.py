"""Entry point: validated factory for device clients."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .client import IControlRestClient
from .config import ConnectionConfig


class IControlRest:
    """Holds validated connection parameters and hands out clients.

    Each client owns its own transaction state, so a transaction on one
    client never scopes requests made through another.
    """

    def __init__(self, config: ConnectionConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    def client(self, options: dict[str, Any] | None = None) -> IControlRestClient:
        """New client, not in transaction mode.

        Args:
            options: Unchecked request option overlay (see IControlRestClient)
        """
        return IControlRestClient(self.config, options=options, transport=self._transport)

    async def transaction(self, options: dict[str, Any] | None = None) -> IControlRestClient:
        """New client already scoped to a freshly begun transaction."""
        return await self.client(options).begin_transaction()


def create_api(
    url: str | None = None,
    user: str | None = None,
    password: str | None = None,
    strict: bool = False,
    logger: logging.Logger | logging.LoggerAdapter | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> IControlRest:
    """Validate connection parameters and return an IControlRest.

    Args:
        url: Device base URL, e.g. https://10.0.0.1 (no trailing /)
        user: Basic auth user
        password: Basic auth password
        strict: Verify TLS certificates
        logger: Logger for request tracing (defaults to this package's)
        transport: Optional httpx transport for every request

    Raises:
        ConfigurationError: If url or credentials are missing or invalid
    """
    params: dict[str, Any] = {"strict": strict, "logger": logger}
    if url is not None:
        params["url"] = url
    if user is not None:
        params["user"] = user
    if password is not None:
        params["password"] = password
    return IControlRest(ConnectionConfig.create(**params), transport=transport)
