from __future__ import annotations

import pytest

from lead_crm.sources import SourceReadError, SpreadsheetSource, StaticSource


def test_spreadsheet_source_reads_export(tmp_path) -> None:
    path = tmp_path / "consultations.csv"
    path.write_text(
        "email,full_name,consultation_type,status,created_at\n"
        "ana@x.com,Ana,individual,new,2024-03-01\n",
        encoding="utf-8",
    )

    (record,) = SpreadsheetSource("consultation", path).fetch()

    assert record.origin == "consultation"
    assert record.consultation_type == "individual"
    assert record.intake_status == "new"


def test_spreadsheet_source_missing_file(tmp_path) -> None:
    with pytest.raises(SourceReadError):
        SpreadsheetSource("user", tmp_path / "missing.csv").fetch()


def test_spreadsheet_source_wraps_loader_errors(tmp_path) -> None:
    path = tmp_path / "users.txt"
    path.write_text("email\n", encoding="utf-8")

    with pytest.raises(SourceReadError):
        SpreadsheetSource("user", path).fetch()


def test_static_source_converts_rows() -> None:
    source = StaticSource("user", [{"email": "a@x.com", "portfolio_type": "ignored"}], name="fixture")

    (record,) = source.fetch()

    assert source.name == "fixture"
    assert record.portfolio_type is None
    assert record.metadata == {"portfolio_type": "ignored"}
