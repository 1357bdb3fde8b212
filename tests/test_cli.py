# tests/test_cli.py
from __future__ import annotations

import pytest

from agenda_scraper.quota import RunLimits
from scripts.scrape_agenda_cli import build_parser, resolve_limits


def test_limits_default_to_env(monkeypatch):
    monkeypatch.setenv("SCRAPE_EVENTS_MAX_TOTAL", "40")
    monkeypatch.delenv("SCRAPE_EVENTS_MAX_PER_CONFIG", raising=False)
    assert resolve_limits(None, None) == RunLimits(max_total=40, max_per_config=50)


def test_flags_override_env(monkeypatch):
    monkeypatch.setenv("SCRAPE_EVENTS_MAX_TOTAL", "40")
    assert resolve_limits(5, -2) == RunLimits(max_total=5, max_per_config=0)


def test_owner_flags_are_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["--organizer-id", "a", "--location-id", "b"])


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.organizer_id is None
    assert args.json is False
