"""Tests for :class:`lead_crm.orchestrator.LeadAggregationService`."""
from __future__ import annotations

import pytest

from lead_crm.lifecycle import LeadLifecycleStore
from lead_crm.models import SourceRecord
from lead_crm.orchestrator import AggregationError, LeadAggregationService
from lead_crm.sources import SourceReadError, StaticSource


class FailingSource:
    name = "broken-waitlist"
    origin = "waitlist"

    def __init__(self) -> None:
        self.calls = 0

    def fetch(self) -> list[SourceRecord]:
        self.calls += 1
        raise SourceReadError("connection reset")


def _sources(waitlist_reader=None) -> dict:
    return {
        "user": [StaticSource("user", [{"email": "ana@x.com", "full_name": "Ana", "created_at": "2024-01-02"}])],
        "waitlist": [waitlist_reader or StaticSource("waitlist", [{"email": "bob@x.com", "created_at": "2024-01-03"}])],
        "consultation": [
            StaticSource("consultation", [{"email": "ANA@x.com", "full_name": "Ana C.", "created_at": "2024-01-01"}])
        ],
    }


def test_load_aggregates_every_channel() -> None:
    result = LeadAggregationService(_sources()).load()

    assert result.complete
    leads = {lead.contact_key: lead for lead in result.leads}
    assert set(leads) == {"ana@x.com", "bob@x.com"}
    assert leads["ana@x.com"].origin == "consultation"


def test_missing_origins_are_treated_as_empty() -> None:
    service = LeadAggregationService({"waitlist": [StaticSource("waitlist", [{"email": "c@x.com"}])]})

    assert [lead.contact_key for lead in service.load().leads] == ["c@x.com"]


def test_any_failed_read_fails_the_whole_load() -> None:
    failing = FailingSource()
    service = LeadAggregationService(_sources(failing))

    with pytest.raises(AggregationError) as excinfo:
        service.load()

    assert str(excinfo.value).startswith("Failed to load leads")
    assert [failure.name for failure in excinfo.value.failures] == ["broken-waitlist"]
    assert isinstance(excinfo.value.failures[0].error, SourceReadError)
    assert failing.calls == 1


def test_partial_load_skips_failed_reads() -> None:
    service = LeadAggregationService(_sources(FailingSource()), allow_partial=True)

    result = service.load()

    assert not result.complete
    assert [failure.origin for failure in result.failures] == ["waitlist"]
    assert sorted(lead.contact_key for lead in result.leads) == ["ana@x.com"]


def test_read_sources_reports_each_reader() -> None:
    results = LeadAggregationService(_sources(FailingSource())).read_sources()

    assert [(result.origin, result.ok) for result in results] == [
        ("user", True),
        ("waitlist", False),
        ("consultation", True),
    ]


def test_load_overlays_store() -> None:
    store = LeadLifecycleStore()
    store.set_status("bob@x.com", "lost", "Not interested")

    result = LeadAggregationService(_sources(), store=store).load()

    bob = next(lead for lead in result.leads if lead.contact_key == "bob@x.com")
    assert bob.lifecycle_status == "lost"
    assert bob.notes == "Not interested"


def test_unknown_origin_is_rejected() -> None:
    with pytest.raises(ValueError):
        LeadAggregationService({"newsletter": []})
