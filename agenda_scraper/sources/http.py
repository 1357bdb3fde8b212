from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

import requests

from ..config import http_timeout_s

logger = logging.getLogger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "fr-FR,fr;q=0.9,en-US;q=0.8,en;q=0.7",
}


@dataclass
class HttpResult:
    url: str
    status_code: int
    text: str


# Anything with http_get's call shape; tests inject canned pages.
Fetcher = Callable[[str], HttpResult]


def http_get(url: str, *, timeout_s: Optional[int] = None) -> HttpResult:
    """GET a page the way a browser would. Non-2xx raises requests.HTTPError."""
    timeout = timeout_s or http_timeout_s()
    logger.debug("http_get(): url=%s timeout=%s", url, timeout)

    r = requests.get(url, timeout=timeout, headers=BROWSER_HEADERS)
    r.raise_for_status()
    return HttpResult(url=r.url, status_code=r.status_code, text=r.text)
