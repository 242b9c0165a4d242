"""iControl REST client.

Every call goes through dispatch(), which builds one authenticated
request against the device and classifies the outcome:

- no usable HTTP response (connect error, timeout, bad encoding) -> TransportFailure
- any status other than 200                                     -> ApiFailure
- 200                                                           -> IControlResponse

The client also carries transaction state. While a transaction is
active every request is scoped into it with the coordination header,
unless the request opts out with ``ignore_transaction``.

Transaction calls are not locked: callers must not overlap
begin/commit on the same client. Server transactions expire after an
idle window; the client does not track that.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from .config import COORDINATION_HEADER, REQUEST_TIMEOUT, TRANSACTION_PATH, ConnectionConfig
from .errors import OperationError, error_from_exception, error_from_response
from .resources import GtmAPI, LtmAPI
from .response import IControlResponse
from .types import INACTIVE, Active, TransactionInfo, TransactionState, TransactionStatus

logger = logging.getLogger(__name__)

SUCCESS_STATUS = 200


@dataclass(frozen=True)
class RequestDescriptor:
    """A single request, relative to the device base URL.

    ``uri`` is appended to the base URL as-is: it must start with / and
    carry its own query string.
    """

    method: str
    uri: str
    data: Any = None
    ignore_transaction: bool = False


class IControlRestClient:
    """Client bound to one device.

    Args:
        config: Validated connection parameters
        options: Request option overlay applied on top of the computed
            options, last write wins. Keys are httpx request arguments
            (method, url, auth, headers, json, timeout, ...) plus
            ``verify``. This is unchecked: overriding ``headers`` drops
            the coordination header, overriding ``url`` or ``method``
            redirects every call.
        transport: Optional httpx transport used for every call
    """

    def __init__(
        self,
        config: ConnectionConfig,
        options: dict[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.options: dict[str, Any] = dict(options or {})
        self.transaction_state: TransactionState = INACTIVE
        self._transport = transport
        self._auto_expand_collections = False
        self._log = config.logger or logger

    @property
    def ltm(self) -> LtmAPI:
        """Local traffic manager operations."""
        return LtmAPI(_client=self)

    @property
    def gtm(self) -> GtmAPI:
        """Global traffic manager operations."""
        return GtmAPI(_client=self)

    # =========================================================================
    # Transaction state
    # =========================================================================

    def is_in_transaction_mode(self) -> bool:
        return isinstance(self.transaction_state, Active)

    def get_transaction_id(self) -> str:
        """Active transaction id.

        Raises:
            OperationError: If the client is not in transaction mode
        """
        state = self.transaction_state
        if not isinstance(state, Active):
            raise OperationError("Bad operation, client is not in transaction mode")
        return state.transaction_id

    def set_transaction_id(self, transaction_id: str | int | None) -> IControlRestClient:
        """Manually scope this client into a transaction (None to leave it).

        Only use this to resume a transaction begun elsewhere; nothing
        checks that the id exists on the device.
        """
        if transaction_id is None or transaction_id == "":
            self.transaction_state = INACTIVE
        else:
            self.transaction_state = Active(str(transaction_id))
        return self

    def auto_expand(self, enabled: bool) -> IControlRestClient:
        """Toggle server-side ``expandSubcollections`` on resource GETs."""
        self._auto_expand_collections = bool(enabled)
        return self

    @property
    def expand_subcollections(self) -> bool:
        return self._auto_expand_collections

    # =========================================================================
    # Dispatch
    # =========================================================================

    def build_options(self, descriptor: RequestDescriptor) -> dict[str, Any]:
        """Computed request options with the overlay merged on top."""
        headers = {"Accept": "application/json"}
        state = self.transaction_state
        if isinstance(state, Active) and not descriptor.ignore_transaction:
            headers[COORDINATION_HEADER] = state.transaction_id

        options: dict[str, Any] = {
            "method": descriptor.method,
            "url": f"{self.config.url}{descriptor.uri}",
            "auth": httpx.BasicAuth(self.config.user, self.config.password),
            "headers": headers,
            "timeout": REQUEST_TIMEOUT,
            "verify": self.config.strict,
        }
        if descriptor.data is not None:
            options["json"] = descriptor.data

        return {**options, **self.options}

    async def dispatch(self, descriptor: RequestDescriptor) -> IControlResponse:
        """Execute one request.

        Raises:
            TransportFailure: If no usable HTTP response was obtained
            ApiFailure: If the status code is not 200
        """
        options = self.build_options(descriptor)
        verify = options.pop("verify", True)
        coordination_id = options.get("headers", {}).get(COORDINATION_HEADER)
        self._log.debug(
            f"{options.get('method')} {options.get('url')}"
            + (f" (transaction {coordination_id})" if coordination_id else "")
        )

        try:
            async with httpx.AsyncClient(verify=verify, transport=self._transport) as http:
                response = await http.request(**options)
        except httpx.RequestError as e:
            self._log.warning(f"{options.get('method')} {options.get('url')} failed: {e!r}")
            raise error_from_exception(e, client=self) from e

        body = _parse_body(response)
        if response.status_code != SUCCESS_STATUS:
            error = error_from_response(response, body, client=self)
            self._log.warning(f"{options.get('method')} {options.get('url')} returned {error}")
            raise error

        return IControlResponse(response=response, data=body, client=self)

    async def request(
        self,
        method: str,
        uri: str,
        data: Any = None,
        ignore_transaction: bool = False,
    ) -> IControlResponse:
        """Dispatch ``method uri`` with an optional JSON body."""
        return await self.dispatch(
            RequestDescriptor(method=method, uri=uri, data=data, ignore_transaction=ignore_transaction)
        )

    # =========================================================================
    # Transaction lifecycle
    # =========================================================================

    async def begin_transaction(self) -> IControlRestClient:
        """Create a transaction and switch this client into it.

        Returns:
            This client, now scoped to the new transaction

        Raises:
            OperationError: If already in transaction mode
        """
        if self.is_in_transaction_mode():
            raise OperationError("Bad operation, client is already in transaction mode")

        response = await self.request("POST", TRANSACTION_PATH, data={})
        info = _transaction_info(response)
        self.transaction_state = Active(info.trans_id)
        self._log.info(f"Began transaction {info.trans_id}")
        return self

    async def commit_transaction(self) -> IControlResponse:
        """Ask the device to validate and apply the active transaction.

        The client leaves transaction mode before the request is sent,
        so the commit call itself is not scoped. Whether the device
        completed or failed the transaction is only in the response.

        Raises:
            OperationError: If not in transaction mode
        """
        transaction_id = self.get_transaction_id()
        self.transaction_state = INACTIVE
        self._log.info(f"Committing transaction {transaction_id}")
        return await self.request(
            "PATCH",
            f"{TRANSACTION_PATH}/{transaction_id}",
            data={"state": TransactionStatus.VALIDATING.value},
        )

    async def rollback_transaction(self, transaction_id: str | int) -> IControlResponse:
        """Delete the transaction ``transaction_id`` on the device.

        The client itself must not be in transaction mode.

        Raises:
            OperationError: If in transaction mode
        """
        if self.is_in_transaction_mode():
            raise OperationError("Bad operation, client is in transaction mode")
        self._log.info(f"Rolling back transaction {transaction_id}")
        return await self.request("DELETE", f"{TRANSACTION_PATH}/{transaction_id}")

    async def get_transaction_commands(self) -> IControlResponse:
        """List the commands queued in the active transaction.

        Raises:
            OperationError: If not in transaction mode
        """
        transaction_id = self.get_transaction_id()
        return await self.request("GET", f"{TRANSACTION_PATH}/{transaction_id}/commands")

    async def get_transaction_state(self, transaction_id: str | int | None = None) -> TransactionStatus:
        """Current device-side state of a transaction.

        Args:
            transaction_id: Transaction to query (defaults to the active one)

        Raises:
            OperationError: If no id is given and not in transaction mode,
                or the device reports a state outside TransactionStatus
        """
        if transaction_id is None:
            transaction_id = self.get_transaction_id()
        response = await self.request("GET", f"{TRANSACTION_PATH}/{transaction_id}", ignore_transaction=True)
        info = _transaction_info(response)
        try:
            return TransactionStatus(info.state)
        except ValueError:
            raise OperationError(f"Transaction {transaction_id} has unknown state {info.state!r}") from None

    def __repr__(self) -> str:
        return f"IControlRestClient(url={self.config.url!r}, transaction_state={self.transaction_state!r})"


def _parse_body(response: httpx.Response) -> Any:
    """JSON body, or None when the body is empty or not JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _transaction_info(response: IControlResponse) -> TransactionInfo:
    try:
        return TransactionInfo.model_validate(response.data)
    except ValidationError as e:
        raise OperationError(f"Unexpected transaction payload: {response.data!r}") from e
