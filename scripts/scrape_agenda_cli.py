#!/usr/bin/env python3
# scripts/scrape_agenda_cli.py
"""
Run one agenda scrape pass by hand (same work as the cron endpoint).

Usage:
    python -m scripts.scrape_agenda_cli
    python -m scripts.scrape_agenda_cli --organizer-id <uuid> --max-per-config 5
    python -m scripts.scrape_agenda_cli --json

Exits non-zero when any source reported an error.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Optional

from agenda_scraper.quota import RunLimits


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Discover event URLs from agenda pages")
    owner = p.add_mutually_exclusive_group()
    owner.add_argument("--organizer-id", default=None, help="Only this organizer's configs")
    owner.add_argument("--location-id", default=None, help="Only this venue's configs")
    p.add_argument("--max-total", type=int, default=None, help="Global cap for this run")
    p.add_argument("--max-per-config", type=int, default=None, help="Per-source cap for this run")
    p.add_argument("--json", action="store_true", help="Print the JSON response body")
    p.add_argument("--progress", action="store_true", help="Print progress events as they happen")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def resolve_limits(max_total: Optional[int], max_per_config: Optional[int]) -> RunLimits:
    base = RunLimits.from_env()
    return RunLimits(
        max_total=base.max_total if max_total is None else max(0, max_total),
        max_per_config=base.max_per_config if max_per_config is None else max(0, max_per_config),
    )


def _print_progress(event: dict[str, Any]) -> None:
    if event.get("type") == "done":
        return
    print(json.dumps(event, ensure_ascii=False))


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    from agenda_scraper.db.db_sources import SupabaseAgendaConfigStore
    from agenda_scraper.db.requests_store import SupabaseRequestStore
    from agenda_scraper.db.supabase_client import get_supabase_client
    from agenda_scraper.extractor import make_page_extractor
    from agenda_scraper.pipeline import run_agenda_scrape

    supabase = get_supabase_client()
    result = run_agenda_scrape(
        config_store=SupabaseAgendaConfigStore(supabase),
        request_store=SupabaseRequestStore(supabase),
        extractor=make_page_extractor(supabase),
        limits=resolve_limits(args.max_total, args.max_per_config),
        organizer_id=args.organizer_id,
        location_id=args.location_id,
        on_progress=_print_progress if args.progress else None,
    )

    if args.json:
        print(json.dumps(result.to_response(), indent=2, ensure_ascii=False))
    else:
        for msg in result.error_details:
            print(f"ERROR {msg}")
        print(result.summary_line())

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
