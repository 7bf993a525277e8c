from __future__ import annotations

from datetime import datetime, timezone

from lead_crm.models import Lead
from lead_crm.summary import summarize_leads


def _lead(key: str, origin: str, seen: datetime | None, status: str = "new") -> Lead:
    return Lead(contact_key=key, email=key, origin=origin, first_seen_at=seen, lifecycle_status=status)


def test_summarize_leads_counts_origins_statuses_and_current_month() -> None:
    now = datetime(2024, 5, 20, tzinfo=timezone.utc)
    leads = [
        _lead("a@x.com", "user", datetime(2024, 5, 1, tzinfo=timezone.utc)),
        _lead("b@x.com", "waitlist", datetime(2024, 5, 19, tzinfo=timezone.utc), "contacted"),
        _lead("c@x.com", "waitlist", datetime(2023, 5, 19, tzinfo=timezone.utc)),
        _lead("d@x.com", "consultation", None, "converted"),
    ]

    summary = summarize_leads(leads, now=now)

    assert summary.total == 4
    assert summary.by_origin == {"user": 1, "waitlist": 2, "consultation": 1}
    assert summary.by_status["new"] == 2
    assert summary.by_status["contacted"] == 1
    assert summary.by_status["converted"] == 1
    assert summary.by_status["lost"] == 0
    assert summary.this_month == 2
    assert summary.origin_share("waitlist") == 50.0
    assert summary.origin_share("user") == 25.0


def test_summary_of_no_leads() -> None:
    summary = summarize_leads([])

    assert summary.total == 0
    assert summary.origin_share("user") == 0.0
