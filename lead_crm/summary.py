"""Headline counts for the lead dashboard."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional

from .models import LIFECYCLE_STATUSES, ORIGINS, Lead


@dataclass
class LeadSummary:
    total: int = 0
    by_origin: Dict[str, int] = field(default_factory=lambda: {origin: 0 for origin in ORIGINS})
    by_status: Dict[str, int] = field(default_factory=lambda: {status: 0 for status in LIFECYCLE_STATUSES})
    this_month: int = 0

    def origin_share(self, origin: str) -> float:
        """Percentage of leads from ``origin``, rounded to one decimal place."""
        if not self.total:
            return 0.0
        return round(self.by_origin.get(origin, 0) * 100.0 / self.total, 1)


def summarize_leads(leads: Iterable[Lead], *, now: Optional[datetime] = None) -> LeadSummary:
    now = now or datetime.now(timezone.utc)
    summary = LeadSummary()
    for lead in leads:
        summary.total += 1
        summary.by_origin[lead.origin] = summary.by_origin.get(lead.origin, 0) + 1
        summary.by_status[lead.lifecycle_status] = summary.by_status.get(lead.lifecycle_status, 0) + 1
        seen = lead.first_seen_at
        if seen is not None and seen.year == now.year and seen.month == now.month:
            summary.this_month += 1
    return summary
