"""
Error taxonomy for the agenda scrape run.

Only AuthError is fatal to an invocation. Everything else is caught as
close to its origin as possible, counted, and reported per source.
"""
from __future__ import annotations


class AgendaScrapeError(Exception):
    pass


class AuthError(AgendaScrapeError):
    """Missing or wrong scheduler credential."""


class SourceCrawlError(AgendaScrapeError):
    """Network or parse failure while paginating one agenda source."""

    def __init__(self, page_url: str, message: str) -> None:
        super().__init__(f"{message} (page={page_url})")
        self.page_url = page_url


class ExtractionFailure(AgendaScrapeError):
    """The page extractor could not produce fields for one event URL."""


class StoreError(AgendaScrapeError):
    """Insert/update/lookup against the request store failed."""


class ConfigInvariantViolation(AgendaScrapeError):
    """An agenda config is unusable (missing selector, zero or two owners)."""
