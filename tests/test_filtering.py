from __future__ import annotations

from datetime import datetime, timezone

import pytest

from lead_crm.filtering import filter_leads, sort_leads
from lead_crm.models import Lead, LeadFilter


@pytest.fixture()
def leads() -> list[Lead]:
    return [
        Lead(contact_key="ana@x.com", email="Ana@x.com", origin="waitlist", display_name="Ana Souza",
             phone="(11) 98888-7777", first_seen_at=datetime(2024, 1, 1, tzinfo=timezone.utc)),
        Lead(contact_key="bruno@x.com", email="bruno@x.com", origin="waitlist", display_name="Bruno",
             lifecycle_status="contacted", first_seen_at=datetime(2024, 3, 1, tzinfo=timezone.utc)),
        Lead(contact_key="carla@x.com", email="carla@x.com", origin="user", display_name=None,
             phone="11977776666", first_seen_at=datetime(2024, 2, 1, tzinfo=timezone.utc)),
        Lead(contact_key="davi@x.com", email="davi@x.com", origin="consultation", display_name="Davi"),
    ]


def test_source_and_status_filters_intersect(leads) -> None:
    result = filter_leads(leads, LeadFilter(source="waitlist", status="new", search_term=""))

    expected = [lead for lead in leads if lead.origin == "waitlist" and lead.lifecycle_status == "new"]
    assert result == expected
    assert [lead.contact_key for lead in result] == ["ana@x.com"]


def test_filter_application_order_does_not_matter(leads) -> None:
    by_source_first = filter_leads(filter_leads(leads, source="waitlist"), status="new")
    by_status_first = filter_leads(filter_leads(leads, status="new"), source="waitlist")

    assert by_source_first == by_status_first == filter_leads(leads, source="waitlist", status="new")


def test_all_passes_everything_through(leads) -> None:
    assert filter_leads(leads) == leads
    assert filter_leads(leads, source="all", status="all", search_term="") == leads


@pytest.mark.parametrize(
    "term, expected",
    [
        ("SOUZA", ["ana@x.com"]),
        ("bruno@", ["bruno@x.com"]),
        ("98888", ["ana@x.com"]),
        ("(11)", ["ana@x.com"]),
        ("x.com", ["ana@x.com", "bruno@x.com", "carla@x.com", "davi@x.com"]),
        ("nobody", []),
    ],
)
def test_search_matches_name_email_or_raw_phone(leads, term, expected) -> None:
    assert [lead.contact_key for lead in filter_leads(leads, search_term=term)] == expected


def test_phone_search_is_not_normalised(leads) -> None:
    assert filter_leads(leads, search_term="11988887777") == []


def test_keyword_arguments_override_criteria(leads) -> None:
    result = filter_leads(leads, LeadFilter(source="user"), source="consultation")

    assert [lead.contact_key for lead in result] == ["davi@x.com"]


def test_unknown_filter_values_are_rejected() -> None:
    with pytest.raises(ValueError):
        LeadFilter(source="newsletter")
    with pytest.raises(ValueError):
        LeadFilter(status="pending")


def test_sort_leads_newest_first_with_undated_last(leads) -> None:
    ordered = sort_leads(leads)

    assert [lead.contact_key for lead in ordered] == ["bruno@x.com", "carla@x.com", "ana@x.com", "davi@x.com"]
    oldest = sort_leads(iter(leads), newest_first=False)
    assert [lead.contact_key for lead in oldest][:3] == ["ana@x.com", "carla@x.com", "bruno@x.com"]


def test_search_term_is_matched_without_trimming(leads) -> None:
    assert [lead.contact_key for lead in filter_leads(leads, search_term="Ana ")] == ["ana@x.com"]
    assert filter_leads(leads, search_term="Bruno ") == []
    assert filter_leads(leads, search_term="  ") == []
