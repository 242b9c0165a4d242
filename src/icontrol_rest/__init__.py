"""iControl REST client - device management over HTTP+JSON.

Usage:
    api = create_api("https://10.0.0.1", "admin", "secret")
    client = await api.transaction()
    await client.ltm.create_pool({"name": "p1"})
    await client.commit_transaction()
"""

from .api import IControlRest, create_api
from .client import IControlRestClient, RequestDescriptor
from .config import COORDINATION_HEADER, REQUEST_TIMEOUT, TRANSACTION_PATH, ConnectionConfig
from .errors import (
    ApiFailure,
    ConfigurationError,
    IControlRestError,
    OperationError,
    RequestError,
    TransportFailure,
    error_from_exception,
    error_from_response,
)
from .resources import GtmAPI, LtmAPI, escape_resource_path, resource_path_to_name
from .response import REFERENCE_SUFFIX, IControlResponse, is_reference_field, reference_uri
from .types import INACTIVE, Active, Inactive, TransactionInfo, TransactionState, TransactionStatus

__all__ = [
    # Entry point
    "IControlRest",
    "create_api",
    "ConnectionConfig",
    # Client
    "IControlRestClient",
    "RequestDescriptor",
    "IControlResponse",
    "LtmAPI",
    "GtmAPI",
    # Transaction state
    "TransactionState",
    "Inactive",
    "Active",
    "INACTIVE",
    "TransactionStatus",
    "TransactionInfo",
    # Errors
    "IControlRestError",
    "ConfigurationError",
    "OperationError",
    "RequestError",
    "TransportFailure",
    "ApiFailure",
    "error_from_exception",
    "error_from_response",
    # Helpers
    "REFERENCE_SUFFIX",
    "is_reference_field",
    "reference_uri",
    "escape_resource_path",
    "resource_path_to_name",
    "COORDINATION_HEADER",
    "REQUEST_TIMEOUT",
    "TRANSACTION_PATH",
]
