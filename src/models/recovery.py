"""Result types for structured output recovery."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RecoveryStatus(str, Enum):  # noqa: UP042
    """How much of the generation output could be trusted.

    PARSED
        A JSON block was found and parsed; every typed field was present
        and valid (generated ids do not count as defaults).
    PARTIALLY_PARSED
        Records were produced but some fields were defaulted, elements
        were dropped, or the line-scan fallback was used.
    EMPTY
        Nothing usable was found.
    """

    PARSED = "parsed"
    PARTIALLY_PARSED = "partially_parsed"
    EMPTY = "empty"


class RecoveryResult(BaseModel):
    """Outcome of one recovery call.

    For ``shape="array"`` ``records`` holds the normalized elements; for
    ``shape="object"`` it holds exactly one element (the normalized object)
    unless the status is EMPTY.
    """

    model_config = ConfigDict(frozen=True)

    status: RecoveryStatus
    records: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.status is RecoveryStatus.EMPTY or not self.records

    @property
    def first(self) -> dict[str, Any] | None:
        return self.records[0] if self.records else None

    @classmethod
    def empty(cls, *warnings: str) -> RecoveryResult:
        return cls(status=RecoveryStatus.EMPTY, records=[], warnings=list(warnings))
