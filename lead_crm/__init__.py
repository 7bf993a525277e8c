"""Lead aggregation and lifecycle tracking for the intake channels."""

from . import models  # noqa: F401
from .filtering import filter_leads, sort_leads
from .lifecycle import JsonFileStorage, LeadLifecycleStore, MemoryStorage
from .merge import aggregate
from .models import (
    Lead,
    LeadFilter,
    LeadStatusRecord,
    SourceRecord,
    normalise_contact_key,
)

__all__ = [
    "JsonFileStorage",
    "Lead",
    "LeadFilter",
    "LeadLifecycleStore",
    "LeadStatusRecord",
    "MemoryStorage",
    "SourceRecord",
    "aggregate",
    "filter_leads",
    "normalise_contact_key",
    "sort_leads",
    "ingestion",
    "sources",
    "orchestrator",
]
