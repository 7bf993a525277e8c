"""Outbound contact helpers: WhatsApp/email links and personalised messages."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional
from urllib.parse import quote, urlencode

from .lifecycle import LeadLifecycleStore
from .models import Lead, LeadStatusRecord

LOGGER = logging.getLogger(__name__)

NAME_PLACEHOLDER = "{nome}"
DEFAULT_NAME = "Cliente"
CHANNEL_WHATSAPP = "whatsapp"
CHANNEL_EMAIL = "email"
CHANNELS = (CHANNEL_WHATSAPP, CHANNEL_EMAIL)

_NON_DIGITS = re.compile(r"\D")


@dataclass(frozen=True)
class ContactAction:
    """An opened outreach link and the lifecycle record it produced."""

    url: str
    channel: str
    status: LeadStatusRecord


@dataclass(frozen=True)
class EmailDraft:
    to: str
    subject: str
    body: str


def personalize_message(template: str, lead: Lead) -> str:
    return template.replace(NAME_PLACEHOLDER, lead.display_name or DEFAULT_NAME)


def whatsapp_url(lead: Lead, message: Optional[str] = None, *, country_code: str = "55") -> str:
    """Build a ``wa.me`` link for the lead's phone, optionally pre-filling a message."""

    digits = _NON_DIGITS.sub("", lead.phone or "")
    if not digits:
        raise ValueError(f"Lead {lead.contact_key} has no phone number")
    url = f"https://wa.me/{country_code}{digits}"
    if message:
        url += f"?text={quote(message)}"
    return url


def mailto_url(lead: Lead, subject: Optional[str] = None, body: Optional[str] = None) -> str:
    params = {key: value for key, value in {"subject": subject, "body": body}.items() if value}
    url = f"mailto:{lead.email}"
    if params:
        url += "?" + urlencode(params, quote_via=quote)
    return url


def open_contact(
    lead: Lead,
    channel: str,
    store: LeadLifecycleStore,
    *,
    message: Optional[str] = None,
    reason: Optional[str] = None,
) -> ContactAction:
    """Prepare an outreach link and mark the lead as contacted.

    Opening a contact action always moves the lead to ``contacted``, whatever
    its previous status was.
    """

    if channel == CHANNEL_WHATSAPP:
        url = whatsapp_url(lead, personalize_message(message, lead) if message else None)
    elif channel == CHANNEL_EMAIL:
        url = mailto_url(lead, body=personalize_message(message, lead) if message else None)
    else:
        raise ValueError(f"Unknown contact channel '{channel}'. Expected one of {CHANNELS}")

    record = store.mark_contacted(lead.contact_key, reason or f"{channel} outreach")
    lead.apply_status(record)
    LOGGER.info("Opened %s contact for %s", channel, lead.contact_key)
    return ContactAction(url=url, channel=channel, status=record)


def prepare_bulk_email(leads: Iterable[Lead], subject: str, template: str) -> List[EmailDraft]:
    """Personalise ``template`` for every lead. Delivery is left to the caller."""

    if not subject.strip() or not template.strip():
        raise ValueError("Subject and message are required")
    return [EmailDraft(to=lead.email, subject=subject, body=personalize_message(template, lead)) for lead in leads]


__all__ = [
    "CHANNELS",
    "ContactAction",
    "EmailDraft",
    "mailto_url",
    "open_contact",
    "personalize_message",
    "prepare_bulk_email",
    "whatsapp_url",
]
