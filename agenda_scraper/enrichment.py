from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .errors import ExtractionFailure
from .models import IDENTITY_FIELDS
from .sources.types import AgendaSourceConfig
from .stores import PageExtractor, RequestStore

logger = logging.getLogger(__name__)


def merge_event_data(
    current: Optional[Mapping[str, Any]],
    cfg: AgendaSourceConfig,
    event_url: str,
    extracted: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Merge extractor output into a request's event_data.

    Pure function. Owner ids always come from the config, scraping_url is
    kept once set; extractor values for those keys are dropped.
    """
    merged: Dict[str, Any] = dict(current or {})

    if cfg.organizer_id:
        merged["organizer_id"] = cfg.organizer_id
    if cfg.location_id:
        merged["location_id"] = cfg.location_id
    if not merged.get("scraping_url"):
        merged["scraping_url"] = event_url

    for key, value in (extracted or {}).items():
        if key in IDENTITY_FIELDS:
            continue
        merged[key] = value

    return merged


class EnrichmentStage:
    def __init__(self, store: RequestStore, extractor: PageExtractor) -> None:
        self.store = store
        self.extractor = extractor

    def _extract(self, cfg: AgendaSourceConfig, event_url: str) -> Dict[str, Any]:
        try:
            res = self.extractor(
                event_url,
                organizer_id=cfg.organizer_id,
                location_id=cfg.location_id,
            )
            ok, data, error = res.ok, res.data, res.error
        except Exception as e:
            raise ExtractionFailure(f"{type(e).__name__}: {e}") from e

        if not ok:
            raise ExtractionFailure(error or "extractor returned not-ok")
        if not isinstance(data, Mapping):
            raise ExtractionFailure(f"extractor returned {type(data).__name__} data")
        return dict(data)

    def enrich(self, request_id: str, cfg: AgendaSourceConfig, event_url: str) -> bool:
        """
        Fill a freshly created request with fields from its event page.

        Returns False when extraction fails; the request then stays
        created-but-unenriched. Store failures propagate as StoreError.
        """
        try:
            extracted = self._extract(cfg, event_url)
        except ExtractionFailure as e:
            logger.warning(
                "[enrich] extraction failed %s url=%s request_id=%s: %s",
                cfg.owner_label, event_url, request_id, e,
            )
            return False

        current = self.store.get_event_data(request_id)
        merged = merge_event_data(current, cfg, event_url, extracted)
        self.store.update_event_data(request_id, merged)

        logger.info(
            "[enrich] ok request_id=%s fields=%s",
            request_id, sorted(k for k in extracted if k not in IDENTITY_FIELDS),
        )
        return True
