"""Command line interface for the lead aggregation service."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ConfigurationError, load_configuration
from .contact import CHANNELS, open_contact
from .factory import allow_partial, build_sources, build_store
from .filtering import filter_leads, sort_leads
from .ingestion.exporters import export_leads
from .lifecycle import LeadLifecycleStore, LifecycleStoreError
from .models import ALL, LIFECYCLE_STATUSES, ORIGINS, Lead, normalise_contact_key
from .orchestrator import AggregationError, LeadAggregationService
from .summary import summarize_leads

LOGGER = logging.getLogger(__name__)


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        required=True,
        help="Path to the service configuration file (YAML or JSON)",
    )
    common.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )

    loading = argparse.ArgumentParser(add_help=False)
    loading.add_argument(
        "--allow-partial",
        action="store_true",
        help="Aggregate whatever intake channels could be read instead of failing",
    )

    parser = argparse.ArgumentParser(prog=prog, description="Deduplicated lead list built from every intake channel")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", parents=[common, loading], help="List unique leads")
    list_parser.add_argument("--source", choices=(ALL,) + ORIGINS, default=ALL)
    list_parser.add_argument("--status", choices=(ALL,) + LIFECYCLE_STATUSES, default=ALL)
    list_parser.add_argument("--search", default="", help="Match name, email or phone")
    list_parser.add_argument("--output", help="Write the filtered leads to CSV/TSV/XLSX instead of printing")

    subparsers.add_parser("summary", parents=[common, loading], help="Show lead totals by origin and status")

    show_parser = subparsers.add_parser("show-status", parents=[common], help="Show the stored status of a lead")
    show_parser.add_argument("contact_key")

    set_parser = subparsers.add_parser("set-status", parents=[common], help="Update the status of a lead")
    set_parser.add_argument("contact_key")
    set_parser.add_argument("status", choices=LIFECYCLE_STATUSES)
    set_parser.add_argument("--notes", default="")

    mark_parser = subparsers.add_parser("mark-contacted", parents=[common], help="Record an outbound contact")
    mark_parser.add_argument("contact_key")
    mark_parser.add_argument("--reason", default="")

    contact_parser = subparsers.add_parser(
        "contact", parents=[common, loading], help="Print an outreach link and mark the lead contacted"
    )
    contact_parser.add_argument("contact_key")
    contact_parser.add_argument("--channel", choices=CHANNELS, default=CHANNELS[0])
    contact_parser.add_argument("--message", help="Message template; {nome} is replaced with the lead's name")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def _load_leads(config: dict, base_dir: Path, store: LeadLifecycleStore, args: argparse.Namespace) -> List[Lead]:
    service = LeadAggregationService(
        build_sources(config, base_dir),
        store=store,
        allow_partial=args.allow_partial or allow_partial(config),
    )
    result = service.load()
    for failure in result.failures:
        print(f"warning: could not read {failure.name}", file=sys.stderr)
    return result.leads


def _format_lead(lead: Lead) -> str:
    seen = lead.first_seen_at.date().isoformat() if lead.first_seen_at else "-"
    return "\t".join([lead.contact_key, lead.display_name or "-", lead.origin, lead.lifecycle_status, seen])


def _print_status(contact_key: str, store: LeadLifecycleStore) -> None:
    print(json.dumps({"contactKey": contact_key, **store.get_status(contact_key).as_dict()}, ensure_ascii=False))


def _run(args: argparse.Namespace) -> int:
    config_path = Path(args.config)
    config = load_configuration(config_path)
    base_dir = config_path.resolve().parent
    store = build_store(config, base_dir)

    if args.command == "show-status":
        _print_status(args.contact_key, store)
        return 0
    if args.command == "set-status":
        store.set_status(args.contact_key, args.status, args.notes)
        _print_status(args.contact_key, store)
        return 0
    if args.command == "mark-contacted":
        store.mark_contacted(args.contact_key, args.reason)
        _print_status(args.contact_key, store)
        return 0

    leads = _load_leads(config, base_dir, store, args)

    if args.command == "summary":
        summary = summarize_leads(leads)
        print(f"Total unique leads: {summary.total}")
        for origin in ORIGINS:
            print(f"  {origin}: {summary.by_origin[origin]} ({summary.origin_share(origin)}%)")
        for status in LIFECYCLE_STATUSES:
            print(f"  {status}: {summary.by_status[status]}")
        print(f"Leads this month: {summary.this_month}")
        return 0

    if args.command == "contact":
        key = normalise_contact_key(args.contact_key)
        lead = next((item for item in leads if item.contact_key == key), None)
        if lead is None:
            print(f"Lead '{args.contact_key}' was not found", file=sys.stderr)
            return 1
        action = open_contact(lead, args.channel, store, message=args.message)
        print(action.url)
        return 0

    filtered = sort_leads(filter_leads(leads, source=args.source, status=args.status, search_term=args.search))
    if args.output:
        destination = export_leads(filtered, args.output)
        LOGGER.info("Wrote %s of %s leads to %s", len(filtered), len(leads), destination.resolve())
        return 0
    for lead in filtered:
        print(_format_lead(lead))
    LOGGER.info("Listed %s of %s leads", len(filtered), len(leads))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        return _run(args)
    except AggregationError as exc:
        LOGGER.debug("Aggregation failed: %s", exc)
        print("Failed to load leads", file=sys.stderr)
        return 1
    except LifecycleStoreError as exc:
        LOGGER.error("%s", exc)
        return 1
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
