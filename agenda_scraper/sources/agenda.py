from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from bs4 import BeautifulSoup

from ..errors import SourceCrawlError
from .http import Fetcher, http_get
from .types import AgendaSourceConfig
from .urls import normalize_url

logger = logging.getLogger(__name__)


def _event_links(soup: BeautifulSoup, cfg: AgendaSourceConfig, page_url: str) -> List[str]:
    out: List[str] = []
    for el in soup.select(cfg.event_link_selector):
        raw = el.get(cfg.event_link_attribute)
        if isinstance(raw, list):
            # bs4 returns multi-valued attributes (class, rel) as lists
            raw = " ".join(raw)
        u = normalize_url(raw, page_url)
        if u:
            out.append(u)
    return out


def _next_page(soup: BeautifulSoup, cfg: AgendaSourceConfig, page_url: str) -> Optional[str]:
    if not cfg.next_page_selector:
        return None
    el = soup.select_one(cfg.next_page_selector)
    if el is None:
        return None
    raw = el.get(cfg.next_page_attribute)
    if isinstance(raw, list):
        raw = " ".join(raw)
    return normalize_url(raw, page_url)


def discover_event_urls(cfg: AgendaSourceConfig, *, fetch: Fetcher = http_get) -> List[str]:
    """
    Follow an agenda's pagination and collect unique absolute event URLs.

    Stops when there is no next link, when the next link was already
    visited, or after cfg.max_pages fetches. The visited set is checked
    before every fetch so a pagination cycle can never loop.

    Raises SourceCrawlError on any fetch/parse failure; the caller decides
    how far that propagates.
    """
    visited: Set[str] = set()
    # dict keeps discovery order, so per-source truncation is deterministic
    found: Dict[str, None] = {}

    current: Optional[str] = normalize_url(cfg.agenda_url, cfg.agenda_url)
    if current is None:
        raise SourceCrawlError(cfg.agenda_url, "invalid agenda_url")

    pages = 0
    while current and pages < cfg.max_pages:
        if current in visited:
            break
        visited.add(current)
        pages += 1

        try:
            res = fetch(current)
            soup = BeautifulSoup(res.text or "", "html.parser")
            links = _event_links(soup, cfg, current)
            nxt = _next_page(soup, cfg, current)
        except SourceCrawlError:
            raise
        except Exception as e:
            raise SourceCrawlError(current, f"{type(e).__name__}: {e}") from e

        new = 0
        for u in links:
            if u not in found:
                found[u] = None
                new += 1
        logger.info(
            "[agenda] page=%d url=%s links=%d new=%d next=%s",
            pages, current, len(links), new, nxt,
        )

        if nxt is None or nxt in visited:
            break
        current = nxt

    logger.info("[agenda] done %s pages=%d urls=%d", cfg.owner_label, pages, len(found))
    return list(found)
