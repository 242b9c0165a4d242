"""Connection configuration.

Settings can be passed explicitly or read from the environment:
- ICONTROL_URL: device base URL, e.g. https://10.0.0.1 (no trailing /)
- ICONTROL_USER / ICONTROL_PASS: basic auth credentials
- ICONTROL_STRICT: "1"/"true"/"yes" to verify TLS certificates
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, TypeAdapter, ValidationError, field_validator

from .errors import ConfigurationError

# Fixed per-request timeout in seconds
REQUEST_TIMEOUT = 2.0

COORDINATION_HEADER = "X-F5-REST-Coordination-Id"

TRANSACTION_PATH = "/mgmt/tm/transaction"

_HTTP_URL = TypeAdapter(HttpUrl)


class ConnectionConfig(BaseModel):
    """Validated connection parameters shared by every client of a device."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    url: str
    user: str = Field(min_length=1)
    password: str = Field(min_length=1, repr=False)
    strict: bool = False
    logger: logging.Logger | logging.LoggerAdapter | None = None

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        try:
            _HTTP_URL.validate_python(value)
        except ValidationError:
            raise ValueError("url is invalid") from None
        if value.endswith("/"):
            raise ValueError("url can not end with a /")
        # Keep the caller's string: HttpUrl normalizes (adds a trailing /)
        return value

    @classmethod
    def create(cls, **params: Any) -> ConnectionConfig:
        """Validate params, raising ConfigurationError on the first problem."""
        try:
            return cls(**params)
        except ValidationError as e:
            raise ConfigurationError(_describe(e)) from e

    @classmethod
    def from_env(cls, **overrides: Any) -> ConnectionConfig:
        """Build a config from ICONTROL_* variables; explicit overrides win."""
        params: dict[str, Any] = {}
        if url := os.getenv("ICONTROL_URL"):
            params["url"] = url
        if user := os.getenv("ICONTROL_USER"):
            params["user"] = user
        if password := os.getenv("ICONTROL_PASS"):
            params["password"] = password
        params["strict"] = os.getenv("ICONTROL_STRICT", "").lower() in ("1", "true", "yes")
        params.update({k: v for k, v in overrides.items() if v is not None})
        return cls.create(**params)


def _describe(error: ValidationError) -> str:
    """Turn the first pydantic error into a short message."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "params"
    if first.get("type") == "missing":
        return f"Bad params, {field} is missing"
    msg = first.get("msg", "invalid")
    # Custom validators are reported as "Value error, <text>"
    msg = msg.removeprefix("Value error, ")
    if msg.startswith(field):
        return f"Bad params, {msg}"
    return f"Bad params, {field}: {msg}"
