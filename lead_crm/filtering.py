"""Filtering and ordering helpers for aggregated leads."""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .models import ALL, Lead, LeadFilter

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _matches_search(lead: Lead, term: str) -> bool:
    needle = term.lower()
    if lead.display_name and needle in lead.display_name.lower():
        return True
    if needle in lead.contact_key:
        return True
    # Phone numbers are matched against the raw, unnormalised value.
    return bool(lead.phone) and term in lead.phone


def filter_leads(
    leads: Iterable[Lead],
    criteria: Optional[LeadFilter] = None,
    *,
    source: Optional[str] = None,
    status: Optional[str] = None,
    search_term: Optional[str] = None,
) -> List[Lead]:
    """Return the leads matching every supplied criterion, preserving input order."""

    criteria = criteria or LeadFilter()
    overrides = {
        key: value
        for key, value in {"source": source, "status": status, "search_term": search_term}.items()
        if value is not None
    }
    if overrides:
        criteria = replace(criteria, **overrides)

    term = criteria.search_term
    filtered: List[Lead] = []
    for lead in leads:
        if criteria.source != ALL and lead.origin != criteria.source:
            continue
        if criteria.status != ALL and lead.lifecycle_status != criteria.status:
            continue
        if term and not _matches_search(lead, term):
            continue
        filtered.append(lead)
    return filtered


def sort_leads(leads: Iterable[Lead], *, newest_first: bool = True) -> List[Lead]:
    """Order leads by first contact; undated leads always sort last."""

    items = list(leads)
    dated = [lead for lead in items if lead.first_seen_at is not None]
    undated = [lead for lead in items if lead.first_seen_at is None]
    dated.sort(key=lambda lead: lead.first_seen_at or _EPOCH, reverse=newest_first)
    return dated + undated
