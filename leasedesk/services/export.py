"""CSV rendering for list screens."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from io import StringIO
from typing import Any

from pydantic import BaseModel

Column = tuple[str, str]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def _lookup(record: BaseModel | Mapping[str, Any], field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def export_csv(
    records: Iterable[BaseModel | Mapping[str, Any]],
    columns: Sequence[Column],
) -> str:
    """Render ``records`` as CSV text.

    ``columns`` is a sequence of ``(header, field)`` pairs. Fields are read as
    attributes from pydantic models or as keys from mappings.
    """

    buffer = StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for record in records:
        writer.writerow([_cell(_lookup(record, field)) for _, field in columns])
    return buffer.getvalue()


__all__ = ["Column", "export_csv"]
