"""Identity resolution for leads arriving from the three intake channels."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .models import (
    ORIGIN_CONSULTATION,
    ORIGIN_USER,
    ORIGIN_WAITLIST,
    Lead,
    SourceRecord,
    parse_timestamp,
)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .lifecycle import LeadLifecycleStore

LOGGER = logging.getLogger(__name__)

RecordLike = Union[SourceRecord, Mapping[str, Any]]

_UNDATED = datetime.max.replace(tzinfo=timezone.utc)


def _tag_records(origin: str, items: Optional[Iterable[RecordLike]]) -> List[SourceRecord]:
    records: List[SourceRecord] = []
    for item in items or ():
        if isinstance(item, SourceRecord):
            record = item if item.origin == origin else _retag(item, origin)
            created_at = parse_timestamp(record.created_at)
            if created_at is not record.created_at:
                record = replace(record, created_at=created_at)
        else:
            record = SourceRecord.from_row(origin, item)
        if record.contact_key is None:
            LOGGER.debug("Dropping %s record %s without a contact email", origin, record.record_id)
            continue
        records.append(record)
    return records


def _retag(record: SourceRecord, origin: str) -> SourceRecord:
    LOGGER.debug("Re-tagging %s record %s as %s", record.origin, record.record_id, origin)
    return SourceRecord(
        origin=origin,
        email=record.email,
        created_at=record.created_at,
        record_id=record.record_id,
        full_name=record.full_name,
        phone=record.phone,
        portfolio_type=record.portfolio_type if origin == ORIGIN_WAITLIST else None,
        consultation_type=record.consultation_type if origin == ORIGIN_CONSULTATION else None,
        intake_status=record.intake_status if origin != ORIGIN_USER else None,
        capital_available=record.capital_available if origin != ORIGIN_USER else None,
        metadata=dict(record.metadata),
    )


def _chronological_key(record: SourceRecord) -> Tuple[int, datetime]:
    if record.created_at is None:
        return (1, _UNDATED)
    return (0, record.created_at)


def _record_to_lead(key: str, record: SourceRecord) -> Lead:
    return Lead(
        contact_key=key,
        email=record.email or key,
        origin=record.origin,
        display_name=record.full_name,
        phone=record.phone,
        first_seen_at=record.created_at,
        source_id=record.record_id,
        offering_interest=record.portfolio_type,
        consultation_type=record.consultation_type,
        intake_status=record.intake_status,
        capital_available=record.capital_available,
    )


def aggregate(
    users: Optional[Iterable[RecordLike]] = None,
    waitlist_signups: Optional[Iterable[RecordLike]] = None,
    consultation_requests: Optional[Iterable[RecordLike]] = None,
    *,
    store: Optional["LeadLifecycleStore"] = None,
) -> List[Lead]:
    """Merge the three intake collections into leads unique by contact key.

    Records are ordered oldest first and the earliest record for each key
    supplies the lead's identity and origin. Later records sharing the key are
    discarded without merging their offering or consultation tags. Records
    without a usable email are skipped. When ``store`` is supplied the
    operator-managed status, notes and last contact are overlaid on each lead.
    """

    records = (
        _tag_records(ORIGIN_USER, users)
        + _tag_records(ORIGIN_WAITLIST, waitlist_signups)
        + _tag_records(ORIGIN_CONSULTATION, consultation_requests)
    )
    # sorted() is stable so equal timestamps keep user/waitlist/consultation order.
    records = sorted(records, key=_chronological_key)

    leads: Dict[str, Lead] = {}
    for record in records:
        key = record.contact_key
        if key in leads:
            LOGGER.debug("Discarding later %s record for %s", record.origin, key)
            continue
        leads[key] = _record_to_lead(key, record)

    merged = list(leads.values())
    if store is not None:
        store.overlay(merged)

    LOGGER.info("Aggregated %s source records into %s unique leads", len(records), len(merged))
    return merged
