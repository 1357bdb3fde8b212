from __future__ import annotations

import logging
from typing import Any, List, Optional

from supabase import Client

from ..sources.types import AgendaSourceConfig

logger = logging.getLogger(__name__)

AGENDA_CONFIGS_TABLE = "organizer_agenda_scraping_configs"
AGENDA_CONFIG_COLUMNS = (
    "id,organizer_id,location_id,enabled,agenda_url,event_link_selector,"
    "event_link_attribute,next_page_selector,next_page_attribute,max_pages"
)


def _str_or_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def row_to_config(r: dict) -> AgendaSourceConfig:
    """
    Coerce one DB row. Never raises on odd values; invariants are checked
    later by AgendaSourceConfig.validate() so a bad row is reported, not
    silently dropped.
    """
    return AgendaSourceConfig(
        id=str(r.get("id", "")).strip(),
        organizer_id=_str_or_none(r.get("organizer_id")),
        location_id=_str_or_none(r.get("location_id")),
        enabled=bool(r.get("enabled", True)),
        agenda_url=str(r.get("agenda_url") or "").strip(),
        event_link_selector=str(r.get("event_link_selector") or "").strip(),
        event_link_attribute=r.get("event_link_attribute") or "href",
        next_page_selector=r.get("next_page_selector"),
        next_page_attribute=r.get("next_page_attribute") or "href",
        max_pages=r.get("max_pages"),
    )


class SupabaseAgendaConfigStore:
    """
    Reads enabled agenda configs from public.organizer_agenda_scraping_configs
    using the service role (bypasses RLS).
    """

    def __init__(self, supabase: Client) -> None:
        self.supabase = supabase

    def load_enabled_configs(
        self,
        *,
        organizer_id: Optional[str] = None,
        location_id: Optional[str] = None,
    ) -> List[AgendaSourceConfig]:
        query = (
            self.supabase.table(AGENDA_CONFIGS_TABLE)
            .select(AGENDA_CONFIG_COLUMNS)
            .eq("enabled", True)
        )
        if organizer_id:
            query = query.eq("organizer_id", organizer_id)
        elif location_id:
            query = query.eq("location_id", location_id)

        resp = query.execute()
        data: Any = getattr(resp, "data", None)
        if not data:
            return []

        configs = [row_to_config(r) for r in data]
        logger.info("[sources] agenda configs enabled=%d", len(configs))
        for c in configs:
            logger.info(
                "[sources] - %s id=%s max_pages=%d agenda_url=%s",
                c.owner_label, c.id, c.max_pages, c.agenda_url,
            )
        return configs
