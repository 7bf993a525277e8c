"""Utilities for importing intake exports and exporting aggregated leads."""

from .exporters import export_leads, leads_to_dataframe
from .loaders import UnsupportedFileTypeError, load_source_records

__all__ = [
    "UnsupportedFileTypeError",
    "export_leads",
    "leads_to_dataframe",
    "load_source_records",
]
