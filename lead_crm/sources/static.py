"""Reader serving intake rows held in memory."""
from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Union

from ..models import SourceRecord
from .base import check_origin, default_name


class StaticSource:
    """Simple reader that returns rows supplied at construction time."""

    def __init__(
        self,
        origin: str,
        rows: Iterable[Union[SourceRecord, Mapping[str, Any]]] = (),
        name: Optional[str] = None,
    ) -> None:
        self.origin = check_origin(origin)
        self.name = default_name(origin, name, "static")
        self._rows = list(rows)

    def fetch(self) -> List[SourceRecord]:
        return [
            row if isinstance(row, SourceRecord) else SourceRecord.from_row(self.origin, row)
            for row in self._rows
        ]
