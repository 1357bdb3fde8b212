from __future__ import annotations

import logging
from typing import Dict, Optional

from .models import PendingRequest
from .sources.urls import normalize_url
from .stores import RequestStore

logger = logging.getLogger(__name__)


class DeduplicationIndex:
    """
    Decides whether an event URL already has a request.

    A URL is known when it equals a request's source_url, or when it was
    only recorded inside event_data (scraping_url / external_url) by an
    earlier ingestion. The embedded-URL scan is loaded once per run and
    kept in memory; create a new index for every run.
    """

    def __init__(self, store: RequestStore) -> None:
        self.store = store
        self._embedded: Optional[Dict[str, PendingRequest]] = None
        self._created: Dict[str, PendingRequest] = {}

    def _embedded_index(self) -> Dict[str, PendingRequest]:
        if self._embedded is None:
            index: Dict[str, PendingRequest] = {}
            for req in self.store.list_event_url_requests():
                for u in req.embedded_urls:
                    index.setdefault(u, req)
                    # rows written before URLs were canonicalized
                    index.setdefault(normalize_url(u, u) or u, req)
            self._embedded = index
            logger.info("[dedupe] embedded-url index loaded: %d url(s)", len(index))
        return self._embedded

    def find_existing(self, url: str) -> Optional[PendingRequest]:
        hit = self._created.get(url)
        if hit is not None:
            return hit

        hit = self.store.find_by_source_url(url)
        if hit is not None:
            return hit

        return self._embedded_index().get(url)

    def is_known(self, url: str) -> bool:
        return self.find_existing(url) is not None

    def remember(self, req: PendingRequest) -> None:
        self._created[req.source_url] = req
        for u in req.embedded_urls:
            self._created.setdefault(u, req)
