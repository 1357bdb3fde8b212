from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..errors import ConfigInvariantViolation

MIN_PAGES = 1
MAX_PAGES = 200
DEFAULT_MAX_PAGES = 10


def clamp_max_pages(raw: Any) -> int:
    try:
        n = int(raw) if raw is not None and str(raw).strip() else DEFAULT_MAX_PAGES
    except (TypeError, ValueError):
        n = DEFAULT_MAX_PAGES
    if n == 0:
        # 0 / unset in the admin UI means "use the default"
        n = DEFAULT_MAX_PAGES
    return max(MIN_PAGES, min(MAX_PAGES, n))


def _attr_or_href(value: Optional[str]) -> str:
    return (value or "").strip() or "href"


@dataclass(frozen=True)
class AgendaSourceConfig:
    """
    One row of organizer_agenda_scraping_configs.

    Owned by the admin UI; read-only here. Exactly one of organizer_id /
    location_id identifies who configured the agenda.
    """
    id: str
    agenda_url: str
    event_link_selector: str
    organizer_id: Optional[str] = None
    location_id: Optional[str] = None
    enabled: bool = True
    event_link_attribute: str = "href"
    next_page_selector: Optional[str] = None
    next_page_attribute: str = "href"
    max_pages: int = DEFAULT_MAX_PAGES

    def __post_init__(self) -> None:
        object.__setattr__(self, "event_link_attribute", _attr_or_href(self.event_link_attribute))
        object.__setattr__(self, "next_page_attribute", _attr_or_href(self.next_page_attribute))
        object.__setattr__(self, "next_page_selector", (self.next_page_selector or "").strip() or None)
        object.__setattr__(self, "max_pages", clamp_max_pages(self.max_pages))

    @property
    def owner_label(self) -> str:
        if self.organizer_id:
            return f"organizer:{self.organizer_id}"
        if self.location_id:
            return f"location:{self.location_id}"
        return f"config:{self.id}"

    def validate(self) -> None:
        if bool(self.organizer_id) == bool(self.location_id):
            raise ConfigInvariantViolation(
                f"config {self.id} must have exactly one of organizer_id / location_id"
            )
        if not (self.agenda_url or "").strip():
            raise ConfigInvariantViolation(f"config {self.id} has no agenda_url")
        if not (self.event_link_selector or "").strip():
            raise ConfigInvariantViolation(f"config {self.id} has no event_link_selector")
