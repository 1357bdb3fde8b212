"""
Collaborator interfaces for the agenda pipeline.

The Supabase implementations live in agenda_scraper/db/; tests use
in-memory fakes with the same shape.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from .models import ExtractionResult, PendingRequest
from .sources.types import AgendaSourceConfig


class SourceConfigStore(Protocol):
    def load_enabled_configs(
        self,
        *,
        organizer_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> List[AgendaSourceConfig]:
        ...


class RequestStore(Protocol):
    def find_by_source_url(self, url: str) -> Optional[PendingRequest]:
        ...

    def list_event_url_requests(self) -> List[PendingRequest]:
        ...

    def insert_pending(
        self,
        *,
        source_url: str,
        location_id: Optional[str],
        event_data: Dict[str, Any],
    ) -> Optional[PendingRequest]:
        ...

    def get_event_data(self, request_id: str) -> Dict[str, Any]:
        ...

    def update_event_data(self, request_id: str, event_data: Dict[str, Any]) -> None:
        ...


class PageExtractor(Protocol):
    def __call__(
        self,
        url: str,
        organizer_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> ExtractionResult:
        ...
