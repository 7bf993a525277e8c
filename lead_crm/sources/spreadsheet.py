"""Reader for intake records exported to spreadsheets or JSON files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Union

from ..ingestion.loaders import load_source_records
from ..models import SourceRecord
from .base import SourceReadError, check_origin, default_name

LOGGER = logging.getLogger(__name__)


class SpreadsheetSource:
    """Reads one intake channel from a CSV, TSV, Excel or JSON export."""

    def __init__(
        self,
        origin: str,
        path: Union[str, Path],
        column_mapping: Optional[Mapping[str, str]] = None,
        sheet_name: Union[str, int, None] = 0,
        name: Optional[str] = None,
    ) -> None:
        self.origin = check_origin(origin)
        self.path = Path(path)
        self.name = default_name(origin, name, self.path.name)
        self._column_mapping = dict(column_mapping or {})
        self._sheet_name = sheet_name

    def fetch(self) -> List[SourceRecord]:
        if not self.path.exists():
            raise SourceReadError(f"Export file '{self.path}' was not found")
        try:
            records = load_source_records(
                self.path,
                self.origin,
                column_mapping=self._column_mapping,
                sheet_name=self._sheet_name,
            )
        except Exception as exc:
            raise SourceReadError(f"Unable to read {self.origin} records from '{self.path}'") from exc
        LOGGER.info("Loaded %s %s records from %s", len(records), self.origin, self.path)
        return records
