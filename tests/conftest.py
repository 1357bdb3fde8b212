"""Shared in-memory fakes: no network, no database."""
from __future__ import annotations

import itertools
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import requests

from agenda_scraper.errors import StoreError
from agenda_scraper.models import ExtractionResult, PendingRequest
from agenda_scraper.sources.http import HttpResult
from agenda_scraper.sources.types import AgendaSourceConfig


class FakeSite:
    """url -> html. Unknown URLs behave like a 404."""

    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages: Dict[str, str] = dict(pages or {})
        self.down: set[str] = set()
        self.fetched: List[str] = []

    def __call__(self, url: str) -> HttpResult:
        self.fetched.append(url)
        if url in self.down:
            raise requests.ConnectionError(f"connection refused: {url}")
        if url not in self.pages:
            raise requests.HTTPError(f"404 Client Error: Not Found for url: {url}")
        return HttpResult(url=url, status_code=200, text=self.pages[url])


class FakeConfigStore:
    def __init__(self, configs: List[AgendaSourceConfig]) -> None:
        self.configs = configs

    def load_enabled_configs(self, *, organizer_id=None, location_id=None):
        out = [c for c in self.configs if c.enabled]
        if organizer_id:
            out = [c for c in out if c.organizer_id == organizer_id]
        elif location_id:
            out = [c for c in out if c.location_id == location_id]
        return out


class InMemoryRequestStore:
    def __init__(self) -> None:
        self.rows: Dict[str, PendingRequest] = {}
        self._ids = itertools.count(1)
        self.fail_insert_for: set[str] = set()
        self.fail_update = False
        self.scans = 0

    def seed(self, *, source_url: str, event_data: Optional[dict] = None, status: str = "pending") -> PendingRequest:
        req = PendingRequest(
            id=f"req-{next(self._ids)}",
            source_url=source_url,
            status=status,
            event_data=dict(event_data or {}),
        )
        self.rows[req.id] = req
        return req

    def find_by_source_url(self, url: str) -> Optional[PendingRequest]:
        for r in self.rows.values():
            if r.source_url == url:
                return r
        return None

    def list_event_url_requests(self) -> List[PendingRequest]:
        self.scans += 1
        return list(self.rows.values())

    def insert_pending(self, *, source_url: str, location_id: Optional[str], event_data: Dict[str, Any]):
        if source_url in self.fail_insert_for:
            raise StoreError(f"insert failed for {source_url}")
        req = PendingRequest(
            id=f"req-{next(self._ids)}",
            source_url=source_url,
            location_id=location_id,
            event_data=dict(event_data),
        )
        self.rows[req.id] = req
        return req

    def get_event_data(self, request_id: str) -> Dict[str, Any]:
        return dict(self.rows[request_id].event_data)

    def update_event_data(self, request_id: str, event_data: Dict[str, Any]) -> None:
        if self.fail_update:
            raise StoreError(f"update failed id={request_id}")
        self.rows[request_id].event_data = dict(event_data)

    def urls(self) -> List[str]:
        return [r.source_url for r in self.rows.values()]


class FakeExtractor:
    def __init__(self, fn: Optional[Callable[[str], ExtractionResult]] = None) -> None:
        self.fn = fn
        self.calls: List[tuple] = []

    def __call__(self, url, organizer_id=None, location_id=None) -> ExtractionResult:
        self.calls.append((url, organizer_id, location_id))
        if self.fn is not None:
            return self.fn(url)
        return ExtractionResult(ok=True, data={"title": f"Event at {url}"})


def listing_html(links: List[str], next_href: Optional[str] = None, link_class: str = "event-card") -> str:
    cards = "\n".join(f'<a class="{link_class}" href="{h}">Event</a>' for h in links)
    nxt = f'<a class="next" href="{next_href}">Next</a>' if next_href else ""
    return f"<html><body><div class='agenda'>{cards}</div>{nxt}</body></html>"


def make_config(**overrides) -> AgendaSourceConfig:
    defaults: Dict[str, Any] = {
        "id": "cfg-1",
        "organizer_id": "org-1",
        "location_id": None,
        "agenda_url": "https://venue.example/events",
        "event_link_selector": "a.event-card",
        "next_page_selector": "a.next",
        "max_pages": 3,
    }
    defaults.update(overrides)
    return AgendaSourceConfig(**defaults)


def mock_builder(data: Any = None) -> MagicMock:
    """Chainable PostgREST query builder mock."""
    builder = MagicMock()
    for method in [
        "select", "eq", "neq", "in_", "order", "limit",
        "update", "insert", "upsert", "maybe_single", "range",
    ]:
        getattr(builder, method).return_value = builder
    result = MagicMock()
    result.data = data if data is not None else []
    builder.execute.return_value = result
    return builder


@pytest.fixture
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture
def request_store() -> InMemoryRequestStore:
    return InMemoryRequestStore()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()
