from __future__ import annotations

from datetime import date, datetime, timezone

import pandas as pd
import pytest

from lead_crm.models import LeadStatusRecord, SourceRecord, normalise_contact_key, parse_timestamp


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-05", datetime(2024, 1, 5, tzinfo=timezone.utc)),
        ("2024-01-05T10:30:00Z", datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc)),
        ("2024-01-05T10:30:00.123456+00:00", datetime(2024, 1, 5, 10, 30, 0, 123456, tzinfo=timezone.utc)),
        (date(2024, 1, 5), datetime(2024, 1, 5, tzinfo=timezone.utc)),
        (pd.Timestamp("2024-01-05 08:00"), datetime(2024, 1, 5, 8, tzinfo=timezone.utc)),
        (pd.NaT, None),
        (float("nan"), None),
        ("", None),
        ("last tuesday", None),
        (None, None),
    ],
)
def test_parse_timestamp(value, expected) -> None:
    assert parse_timestamp(value) == expected


def test_normalise_contact_key() -> None:
    assert normalise_contact_key("  Ana@Example.COM ") == "ana@example.com"
    assert normalise_contact_key("Email não informado") is None
    assert normalise_contact_key("") is None
    assert normalise_contact_key(None) is None


def test_from_row_keeps_only_variant_fields() -> None:
    row = {
        "id": 42,
        "email": "ana@x.com",
        "full_name": " Ana ",
        "phone": "",
        "consultation_type": "individual",
        "status": "new",
        "created_at": "2024-01-01",
    }

    waitlist = SourceRecord.from_row("waitlist", row)
    consultation = SourceRecord.from_row("consultation", row)

    assert waitlist.record_id == "42"
    assert waitlist.full_name == "Ana"
    assert waitlist.phone is None
    assert waitlist.consultation_type is None
    assert waitlist.intake_status == "new"
    assert waitlist.metadata == {"consultation_type": "individual"}
    assert consultation.consultation_type == "individual"
    assert consultation.contact_key == "ana@x.com"

    with pytest.raises(ValueError):
        SourceRecord.from_row("newsletter", row)


def test_status_record_round_trips_through_json_names() -> None:
    record = LeadStatusRecord(
        lifecycle_status="qualified",
        notes="Hot",
        last_contact_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        version=3,
    )

    payload = record.as_dict()

    assert payload["lifecycleStatus"] == "qualified"
    assert payload["lastContactAt"] == "2024-01-01T00:00:00+00:00"
    assert LeadStatusRecord.from_dict(payload) == record
    assert LeadStatusRecord().as_dict() == {
        "lifecycleStatus": "new",
        "notes": "",
        "lastContactAt": None,
        "updatedAt": None,
        "version": 0,
    }
