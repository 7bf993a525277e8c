"""Reader for intake tables hosted in Supabase."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Sequence

from supabase import Client, create_client

from ..models import ORIGIN_CONSULTATION, ORIGIN_USER, ORIGIN_WAITLIST, SourceRecord
from .base import SourceReadError, check_origin, default_name

LOGGER = logging.getLogger(__name__)

DEFAULT_TABLES: Mapping[str, str] = {
    ORIGIN_USER: "user_profiles",
    ORIGIN_WAITLIST: "waitlist_entries",
    ORIGIN_CONSULTATION: "consultation_forms",
}

DEFAULT_COLUMNS: Mapping[str, Sequence[str]] = {
    ORIGIN_USER: ("id", "email", "full_name", "phone", "created_at"),
    ORIGIN_WAITLIST: ("id", "email", "full_name", "phone", "portfolio_type", "capital_available", "status", "created_at"),
    ORIGIN_CONSULTATION: ("id", "email", "full_name", "phone", "consultation_type", "capital_available", "status", "created_at"),
}


def _resolve_key(key: Optional[str]) -> Optional[str]:
    return key or os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_KEY")


class SupabaseTableSource:
    """Reads every row of an intake table through the Supabase client.

    Rows are fetched in pages of ``page_size`` because PostgREST caps the
    number of rows returned by a single request.
    """

    def __init__(
        self,
        origin: str,
        table: Optional[str] = None,
        columns: Optional[Sequence[str]] = None,
        url: Optional[str] = None,
        key: Optional[str] = None,
        client: Optional[Client] = None,
        page_size: int = 1000,
        name: Optional[str] = None,
    ) -> None:
        self.origin = check_origin(origin)
        self.table = table or DEFAULT_TABLES[origin]
        self.name = default_name(origin, name, self.table)
        self.columns = list(columns or DEFAULT_COLUMNS[origin])
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._page_size = page_size
        self._url = url or os.getenv("SUPABASE_URL")
        self._key = _resolve_key(key)
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            if not self._url or not self._key:
                raise SourceReadError(
                    "Supabase credentials missing: set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
                )
            self._client = create_client(self._url, self._key)
        return self._client

    def fetch(self) -> List[SourceRecord]:
        client = self._get_client()
        rows: List[Dict[str, Any]] = []
        start = 0
        try:
            while True:
                response = (
                    client.table(self.table)
                    .select(", ".join(self.columns))
                    .range(start, start + self._page_size - 1)
                    .execute()
                )
                page = list(response.data or [])
                rows.extend(page)
                if len(page) < self._page_size:
                    break
                start += self._page_size
        except Exception as exc:
            raise SourceReadError(f"Unable to read Supabase table '{self.table}'") from exc

        LOGGER.info("Fetched %s rows from %s", len(rows), self.table)
        return [SourceRecord.from_row(self.origin, row) for row in rows]


__all__ = ["DEFAULT_COLUMNS", "DEFAULT_TABLES", "SupabaseTableSource"]
