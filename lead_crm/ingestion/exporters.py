"""Export utilities for aggregated lead lists."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, MutableMapping, Optional, Union

import pandas as pd

from ..models import Lead

PathLike = Union[str, Path]

LEAD_COLUMNS = [
    "contact_key",
    "email",
    "display_name",
    "phone",
    "origin",
    "first_seen_at",
    "source_id",
    "offering_interest",
    "consultation_type",
    "intake_status",
    "capital_available",
    "lifecycle_status",
    "notes",
    "last_contact_at",
]


def export_leads(
    leads: Iterable[Lead],
    path: PathLike,
    *,
    sheet_name: str = "Leads",
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write leads to a CSV, TSV or Excel file."""

    dataframe = leads_to_dataframe(leads)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    _write_dataframe(dataframe, output_path, sheet_name=sheet_name, exporter_kwargs=exporter_kwargs)
    return output_path


def leads_to_dataframe(leads: Iterable[Lead]) -> pd.DataFrame:
    """Convert leads into a :class:`pandas.DataFrame` with a stable column order."""

    return pd.DataFrame([lead.as_row() for lead in leads], columns=LEAD_COLUMNS)


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


__all__ = ["LEAD_COLUMNS", "export_leads", "leads_to_dataframe"]
