"""Readers for the user, waitlist and consultation intake channels."""

from .base import SourceReadError, SourceReader  # noqa: F401
from .spreadsheet import SpreadsheetSource  # noqa: F401
from .static import StaticSource  # noqa: F401

__all__ = [
    "SourceReadError",
    "SourceReader",
    "SpreadsheetSource",
    "StaticSource",
]
