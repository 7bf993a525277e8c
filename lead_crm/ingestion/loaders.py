"""Utilities for loading intake records from spreadsheet and JSON exports."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import SourceRecord

PathLike = Union[str, Path]

_FIELD_SYNONYMS: Mapping[str, Sequence[str]] = {
    "id": ("id", "record_id", "lead_id", "source_id"),
    "email": ("email", "email_address", "e-mail", "primary_email"),
    "full_name": ("full_name", "name", "nome", "nome_completo"),
    "phone": ("phone", "phone_number", "telefone", "whatsapp"),
    "created_at": ("created_at", "created", "data_registro", "date"),
    "portfolio_type": ("portfolio_type", "portfolio", "plan"),
    "consultation_type": ("consultation_type", "consultation"),
    "status": ("status", "intake_status"),
    "capital_available": ("capital_available", "capital"),
}


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


def load_source_records(
    path: PathLike,
    origin: str,
    *,
    column_mapping: Optional[Mapping[str, str]] = None,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> List[SourceRecord]:
    """Load intake records for one origin from an exported table.

    Parameters
    ----------
    path:
        Path to the CSV/TSV/XLSX/JSON file to be loaded.
    origin:
        Intake channel the rows belong to (``user``, ``waitlist`` or
        ``consultation``).
    column_mapping:
        Optional mapping of collaborator field names (``email``,
        ``full_name``, ``created_at``...) to column names in the file.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel` when loading an Excel
        file. Ignored for other formats.
    loader_kwargs:
        Extra keyword arguments forwarded to the pandas reader.
    """

    dataframe = _read_dataframe(path, sheet_name=sheet_name, loader_kwargs=loader_kwargs)
    mapping = dict(column_mapping or {})
    resolved = {name: _resolve_column(name, dataframe.columns, mapping) for name in _FIELD_SYNONYMS}

    records: List[SourceRecord] = []
    for _, row in dataframe.iterrows():
        if _row_is_empty(row):
            continue
        records.append(SourceRecord.from_row(origin, _row_to_mapping(row, resolved)))
    return records


def _read_dataframe(
    path: PathLike,
    *,
    sheet_name: Union[str, int, None] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> pd.DataFrame:
    loader_kwargs = dict(loader_kwargs or {})
    path_obj = Path(path)
    suffix = path_obj.suffix.lower()

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            loader_kwargs.setdefault("sep", "\t")
        loader_kwargs.setdefault("dtype", str)
        return pd.read_csv(path_obj, **loader_kwargs)

    if suffix in {".xls", ".xlsx", ".xlsm", ".xlsb"}:
        loader_kwargs.setdefault("dtype", str)
        return pd.read_excel(path_obj, sheet_name=sheet_name, engine=loader_kwargs.pop("engine", None) or "openpyxl", **loader_kwargs)

    if suffix == ".json":
        loader_kwargs.setdefault("orient", "records")
        loader_kwargs.setdefault("dtype", False)
        loader_kwargs.setdefault("convert_dates", False)
        return pd.read_json(path_obj, **loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _row_is_empty(row: pd.Series) -> bool:
    return all(pd.isna(value) or (isinstance(value, str) and not value.strip()) for value in row.values)


def _resolve_column(field: str, available_columns: Iterable[str], mapping: Mapping[str, str]) -> Optional[str]:
    if field in mapping:
        return mapping[field]

    synonyms = tuple(name.lower() for name in _FIELD_SYNONYMS.get(field, (field,)))
    by_name = {str(column).strip().lower(): column for column in available_columns}
    for synonym in synonyms:
        if synonym in by_name:
            return by_name[synonym]
    return None


def _row_to_mapping(row: pd.Series, resolved: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    claimed = {column for column in resolved.values() if column is not None}
    mapped: Dict[str, Any] = {
        str(column): _clean_value(value) for column, value in row.items() if column not in claimed
    }
    for field, column in resolved.items():
        if column is None or column not in row:
            continue
        mapped[field] = _clean_value(row[column])
    return mapped


def _clean_value(value: Any) -> Any:
    if value is None:
        return None
    if not isinstance(value, (list, dict)) and pd.isna(value):
        return None
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


__all__ = ["load_source_records", "UnsupportedFileTypeError"]
