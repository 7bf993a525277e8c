"""Unified data models for intake records, aggregated leads, and lifecycle state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, Mapping, Optional


# --- Constants ---

ALL = "all"

ORIGIN_USER = "user"
ORIGIN_WAITLIST = "waitlist"
ORIGIN_CONSULTATION = "consultation"
ORIGINS = (ORIGIN_USER, ORIGIN_WAITLIST, ORIGIN_CONSULTATION)

STATUS_NEW = "new"
STATUS_CONTACTED = "contacted"
STATUS_QUALIFIED = "qualified"
STATUS_CONVERTED = "converted"
STATUS_LOST = "lost"
STATUS_NO_CONTACT = "no_contact"
LIFECYCLE_STATUSES = (
    STATUS_NEW,
    STATUS_CONTACTED,
    STATUS_QUALIFIED,
    STATUS_CONVERTED,
    STATUS_LOST,
    STATUS_NO_CONTACT,
)

# Literal written by the intake forms when no email was supplied.
MISSING_EMAIL_PLACEHOLDER = "Email não informado"

_IDENTITY_FIELDS = {"id", "email", "full_name", "phone", "created_at"}
_VARIANT_FIELDS: Mapping[str, tuple] = {
    ORIGIN_USER: (),
    ORIGIN_WAITLIST: ("portfolio_type", "status", "capital_available"),
    ORIGIN_CONSULTATION: ("consultation_type", "status", "capital_available"),
}


def normalise_contact_key(email: Any) -> Optional[str]:
    """Return the deduplication key for ``email`` or ``None`` when it is unusable."""

    if email is None:
        return None
    text = str(email).strip()
    if not text or text == MISSING_EMAIL_PLACEHOLDER:
        return None
    return text.lower()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of collaborator timestamps into aware UTC datetimes."""

    if value is None or value != value:  # NaN and NaT never equal themselves
        return None
    to_pydatetime = getattr(value, "to_pydatetime", None)
    if callable(to_pydatetime):
        value = to_pydatetime()
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value != value:  # NaN from spreadsheets
        return None
    text = str(value).strip()
    return text or None


def _format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


# --- Intake Models ---

@dataclass(slots=True)
class SourceRecord:
    """A raw record from one intake channel, prior to deduplication.

    The ``origin`` tag selects the variant: registered users carry identity
    fields only, waitlist signups add the requested portfolio tier, and
    consultation requests add the consultation type.
    """

    origin: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    record_id: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    portfolio_type: Optional[str] = None
    consultation_type: Optional[str] = None
    intake_status: Optional[str] = None
    capital_available: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def contact_key(self) -> Optional[str]:
        return normalise_contact_key(self.email)

    @classmethod
    def from_row(cls, origin: str, row: Mapping[str, Any]) -> "SourceRecord":
        """Build a record from a collaborator row such as ``{id, email, full_name, ...}``.

        Columns that do not belong to the origin's variant are kept in
        ``metadata`` rather than promoted onto the record.
        """

        if origin not in _VARIANT_FIELDS:
            raise ValueError(f"Unknown lead origin '{origin}'. Expected one of {ORIGINS}")

        variant = _VARIANT_FIELDS[origin]
        known = _IDENTITY_FIELDS.union(variant)
        metadata = {key: value for key, value in row.items() if key not in known}

        def pick(name: str) -> Optional[str]:
            return _clean(row.get(name)) if name in variant else None

        return cls(
            origin=origin,
            email=_clean(row.get("email")),
            created_at=parse_timestamp(row.get("created_at")),
            record_id=_clean(row.get("id")),
            full_name=_clean(row.get("full_name")),
            phone=_clean(row.get("phone")),
            portfolio_type=pick("portfolio_type"),
            consultation_type=pick("consultation_type"),
            intake_status=pick("status"),
            capital_available=pick("capital_available"),
            metadata=metadata,
        )


# --- Lifecycle Models ---

@dataclass
class LeadStatusRecord:
    """Operator-entered lifecycle state for a single contact key."""

    lifecycle_status: str = STATUS_NEW
    notes: str = ""
    last_contact_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    version: int = 0

    def as_dict(self) -> Dict[str, Any]:
        return {
            "lifecycleStatus": self.lifecycle_status,
            "notes": self.notes,
            "lastContactAt": _format_timestamp(self.last_contact_at),
            "updatedAt": _format_timestamp(self.updated_at),
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LeadStatusRecord":
        """Decode a stored payload, raising ``ValueError``/``TypeError`` when malformed."""

        if not isinstance(payload, Mapping):
            raise TypeError(f"Expected a mapping, got {type(payload).__name__}")
        status = payload.get("lifecycleStatus", STATUS_NEW)
        if status not in LIFECYCLE_STATUSES:
            raise ValueError(f"Unknown lifecycle status '{status}'")
        notes = payload.get("notes") or ""
        if not isinstance(notes, str):
            raise TypeError("notes must be a string")
        version = payload.get("version", 0)
        if not isinstance(version, int) or isinstance(version, bool):
            raise TypeError("version must be an integer")
        return cls(
            lifecycle_status=status,
            notes=notes,
            last_contact_at=_decode_timestamp(payload.get("lastContactAt")),
            updated_at=_decode_timestamp(payload.get("updatedAt")),
            version=version,
        )


def _decode_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValueError(f"Invalid timestamp '{value}'")
    return parsed


# --- Aggregated Lead ---

@dataclass
class Lead:
    """A deduplicated prospect merged from the intake channels."""

    contact_key: str
    email: str
    origin: str
    display_name: Optional[str] = None
    phone: Optional[str] = None
    first_seen_at: Optional[datetime] = None
    source_id: Optional[str] = None
    offering_interest: Optional[str] = None
    consultation_type: Optional[str] = None
    intake_status: Optional[str] = None
    capital_available: Optional[str] = None
    lifecycle_status: str = STATUS_NEW
    notes: str = ""
    last_contact_at: Optional[datetime] = None

    def label(self) -> str:
        """Return a readable name for tables and logs."""
        return self.display_name or self.email

    def apply_status(self, record: LeadStatusRecord) -> None:
        self.lifecycle_status = record.lifecycle_status
        self.notes = record.notes
        self.last_contact_at = record.last_contact_at

    def as_row(self) -> Dict[str, Any]:
        return {
            "contact_key": self.contact_key,
            "email": self.email,
            "display_name": self.display_name or "",
            "phone": self.phone or "",
            "origin": self.origin,
            "first_seen_at": _format_timestamp(self.first_seen_at) or "",
            "source_id": self.source_id or "",
            "offering_interest": self.offering_interest or "",
            "consultation_type": self.consultation_type or "",
            "intake_status": self.intake_status or "",
            "capital_available": self.capital_available or "",
            "lifecycle_status": self.lifecycle_status,
            "notes": self.notes,
            "last_contact_at": _format_timestamp(self.last_contact_at) or "",
        }


@dataclass(frozen=True)
class LeadFilter:
    """Criteria accepted by :func:`lead_crm.filtering.filter_leads`."""

    source: str = ALL
    status: str = ALL
    search_term: str = ""

    def __post_init__(self) -> None:
        if self.source != ALL and self.source not in ORIGINS:
            raise ValueError(f"Unknown source filter '{self.source}'")
        if self.status != ALL and self.status not in LIFECYCLE_STATUSES:
            raise ValueError(f"Unknown status filter '{self.status}'")
