"""Common interface shared by intake record readers."""
from __future__ import annotations

from typing import List, Optional, Protocol

from ..models import ORIGINS, SourceRecord


class SourceReadError(RuntimeError):
    """Raised when a collaborator read fails."""


class SourceReader(Protocol):
    """Protocol defining the interface that intake readers must follow."""

    name: str
    origin: str

    def fetch(self) -> List[SourceRecord]:  # pragma: no cover - runtime protocol
        """Return every record held by the collaborator."""


def check_origin(origin: str) -> str:
    if origin not in ORIGINS:
        raise ValueError(f"Unknown lead origin '{origin}'. Expected one of {ORIGINS}")
    return origin


def default_name(origin: str, name: Optional[str], kind: str) -> str:
    return name or f"{kind}:{origin}"
