"""Type definitions: transaction state and transaction payloads."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


@dataclass(frozen=True)
class Inactive:
    """Client is not scoped to a transaction."""


@dataclass(frozen=True)
class Active:
    """Client is scoped to the server transaction ``transaction_id``."""

    transaction_id: str

    def __post_init__(self) -> None:
        if not self.transaction_id:
            raise ValueError("transaction_id cannot be empty")


TransactionState = Inactive | Active

INACTIVE = Inactive()


class TransactionStatus(str, Enum):
    """Server-side transaction states."""

    STARTED = "STARTED"
    UPDATING = "UPDATING"
    VALIDATING = "VALIDATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TransactionInfo(BaseModel):
    """Transaction resource as returned by /mgmt/tm/transaction."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    trans_id: str = Field(alias="transId")
    # Raw device string; see TransactionStatus for the known values
    state: str | None = None
    timeout_seconds: int | None = Field(default=None, alias="timeoutSeconds")
    failure_reason: str | None = Field(default=None, alias="failureReason")
    self_link: str | None = Field(default=None, alias="selfLink")

    @field_validator("trans_id", mode="before")
    @classmethod
    def _coerce_trans_id(cls, value: object) -> object:
        # Device returns transId as a JSON number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value
