"""Response envelope and client-side reference expansion.

iControl REST returns related resources as link-only summaries:

    "poolReference": {"link": "https://localhost/mgmt/tm/ltm/pool/~Common~p1?ver=13.1.1.2"}

The server-side ``expandSubcollections`` query parameter only works on
GET requests, so IControlResponse.expand() resolves these links itself.
"""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

import httpx

from .errors import OperationError

if TYPE_CHECKING:
    from .client import IControlRestClient

logger = logging.getLogger(__name__)

REFERENCE_SUFFIX = "Reference"


def is_reference_field(key: str, value: Any) -> bool:
    """True for ``<name>Reference`` fields holding a ``link`` object.

    A field named just ``Reference`` matches too and expands into ``""``.
    """
    return (
        key.endswith(REFERENCE_SUFFIX)
        and isinstance(value, dict)
        and "link" in value
    )


def reference_uri(link: str) -> str:
    """Relative request URI (path plus query) for an absolute link."""
    parts = urlsplit(link)
    if parts.query:
        return f"{parts.path}?{parts.query}"
    return parts.path


class IControlResponse:
    """A successful (HTTP 200) response.

    Attributes:
        response: The underlying httpx response
        data: Parsed JSON body
    """

    def __init__(self, response: httpx.Response, data: Any, client: IControlRestClient | None = None) -> None:
        self.response = response
        self.data = data
        self._client_ref = weakref.ref(client) if client is not None else None

    @property
    def client(self) -> IControlRestClient | None:
        """The issuing client, or None if it is gone."""
        if self._client_ref is None:
            return None
        return self._client_ref()

    @property
    def status_code(self) -> int:
        return self.response.status_code

    async def expand(self, data: dict[str, Any] | None = None) -> None:
        """Fetch every top-level reference field into its stripped name.

        ``poolReference`` is resolved into a new ``pool`` key; the
        reference itself is kept. Fetches run one at a time in field
        order and bypass any active transaction. Failures propagate.

        Only a weak reference to the issuing client is held, so keep the
        client alive until expansion is done:

            client = api.client()
            response = await client.ltm.get_virtual("vs1")
            await response.expand()

        Args:
            data: Mapping to expand in place (defaults to self.data)

        Raises:
            OperationError: If the issuing client no longer exists
            RequestError: If a fetch fails
        """
        payload = self.data if data is None else data
        if not isinstance(payload, dict):
            return

        # Snapshot: new keys are inserted while iterating
        references = [(key, value) for key, value in payload.items() if is_reference_field(key, value)]
        if not references:
            return

        client = self.client
        if client is None:
            raise OperationError("Bad operation, the client that issued this response is gone")

        for key, value in references:
            uri = reference_uri(value["link"])
            logger.debug(f"Expanding {key} from {uri}")
            expanded = await client.request("GET", uri, ignore_transaction=True)
            payload[key[: -len(REFERENCE_SUFFIX)]] = expanded.data

    def __repr__(self) -> str:
        return f"IControlResponse(status={self.status_code}, data={self.data!r})"
