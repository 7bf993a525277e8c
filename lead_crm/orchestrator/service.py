"""Aggregation service that reads every intake channel and merges the results."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from ..lifecycle import LeadLifecycleStore
from ..merge import aggregate
from ..models import ORIGIN_CONSULTATION, ORIGIN_USER, ORIGIN_WAITLIST, ORIGINS, Lead, SourceRecord
from ..sources.base import SourceReader

LOGGER = logging.getLogger(__name__)

AggregateFunction = Callable[..., List[Lead]]


@dataclass
class SourceReadResult:
    """Outcome of reading one collaborator: either records or an error."""

    origin: str
    name: str
    records: List[SourceRecord] = field(default_factory=list)
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AggregationResult:
    """Leads produced by a load together with any reads that failed."""

    leads: List[Lead]
    failures: List[SourceReadResult] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures


class AggregationError(RuntimeError):
    """Raised when one or more intake reads fail and partial loads are disabled."""

    def __init__(self, failures: Sequence[SourceReadResult]) -> None:
        self.failures = list(failures)
        names = ", ".join(failure.name for failure in self.failures)
        super().__init__(f"Failed to load leads ({names})" if names else "Failed to load leads")


class LeadAggregationService:
    """Reads the configured intake channels and produces the deduplicated lead list."""

    def __init__(
        self,
        sources: Mapping[str, Iterable[SourceReader]],
        *,
        store: Optional[LeadLifecycleStore] = None,
        allow_partial: bool = False,
        aggregate_function: AggregateFunction = aggregate,
    ) -> None:
        unknown = set(sources) - set(ORIGINS)
        if unknown:
            raise ValueError(f"Unknown lead origins: {sorted(unknown)}")
        self._sources: Dict[str, List[SourceReader]] = {origin: list(sources.get(origin, ())) for origin in ORIGINS}
        self._store = store
        self._allow_partial = allow_partial
        self._aggregate = aggregate_function

    @property
    def store(self) -> Optional[LeadLifecycleStore]:
        return self._store

    def read_sources(self) -> List[SourceReadResult]:
        """Read every configured reader sequentially, capturing failures per reader."""

        results: List[SourceReadResult] = []
        for origin in ORIGINS:
            for reader in self._sources[origin]:
                results.append(self._read(origin, reader))
        return results

    def _read(self, origin: str, reader: SourceReader) -> SourceReadResult:
        name = getattr(reader, "name", reader.__class__.__name__)
        try:
            LOGGER.debug("Reading %s records from %s", origin, name)
            return SourceReadResult(origin=origin, name=name, records=list(reader.fetch()))
        except Exception as exc:
            LOGGER.exception("Reading %s records from %s failed", origin, name)
            return SourceReadResult(origin=origin, name=name, error=exc)

    def load(self) -> AggregationResult:
        """Aggregate all channels, failing closed unless partial loads are allowed."""

        results = self.read_sources()
        failures = [result for result in results if not result.ok]
        if failures and not self._allow_partial:
            raise AggregationError(failures)
        for failure in failures:
            LOGGER.warning("Continuing without %s records from %s", failure.origin, failure.name)

        collected: Dict[str, List[SourceRecord]] = {origin: [] for origin in ORIGINS}
        for result in results:
            if result.ok:
                collected[result.origin].extend(result.records)

        leads = self._aggregate(
            collected[ORIGIN_USER],
            collected[ORIGIN_WAITLIST],
            collected[ORIGIN_CONSULTATION],
            store=self._store,
        )
        return AggregationResult(leads=leads, failures=failures)
