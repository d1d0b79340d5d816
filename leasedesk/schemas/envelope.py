"""Request/response envelope exchanged with the stored-procedure API."""

from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field

_TABLE_KEY = re.compile(r"^table(\d+)$")


class EnvelopeRequest(BaseModel):
    """``{mode, parameters}`` payload posted to a resource endpoint."""

    mode: int
    parameters: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body, dropping parameters that were not supplied."""

        return {
            "mode": self.mode,
            "parameters": {
                key: value for key, value in self.parameters.items() if value is not None
            },
        }


class EnvelopeResponse(BaseModel):
    """Unwrapped response with positional tables collected in order."""

    success: bool
    message: str | None = None
    data: Any = None
    tables: list[list[dict[str, Any]]] = Field(default_factory=list)
    extras: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "EnvelopeResponse":
        indexed: dict[int, list[dict[str, Any]]] = {}
        extras: dict[str, Any] = {}
        for key, value in payload.items():
            if key in {"success", "message", "data"}:
                continue
            match = _TABLE_KEY.match(key)
            if match:
                indexed[int(match.group(1))] = list(value or [])
            else:
                extras[key] = value

        tables = [indexed.get(index, []) for index in range(1, max(indexed, default=0) + 1)]
        return cls(
            success=bool(payload.get("success")),
            message=payload.get("message"),
            data=payload.get("data"),
            tables=tables,
            extras=extras,
        )

    def table(self, number: int) -> list[dict[str, Any]]:
        """Return ``table<number>`` (1-based) or an empty list."""

        if 1 <= number <= len(self.tables):
            return self.tables[number - 1]
        return []

    def first_row(self, number: int = 1) -> dict[str, Any] | None:
        rows = self.table(number)
        return rows[0] if rows else None

    def rows(self) -> list[dict[str, Any]]:
        """Return list data from ``data`` or, failing that, ``table1``."""

        if isinstance(self.data, list):
            return self.data
        return self.table(1)

    def new_id(self, entity: str) -> Any:
        """Return the ``New<entity>ID`` value reported by an insert."""

        return self.extras.get(f"New{entity}ID")


__all__ = ["EnvelopeRequest", "EnvelopeResponse"]
