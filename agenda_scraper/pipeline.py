from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from .dedupe import DeduplicationIndex
from .enrichment import EnrichmentStage
from .errors import StoreError
from .models import CrawlRunResult
from .quota import QuotaController, RunLimits
from .sources.agenda import discover_event_urls
from .sources.http import Fetcher, http_get
from .sources.types import AgendaSourceConfig
from .stores import PageExtractor, RequestStore, SourceConfigStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[Dict[str, Any]], None]


class _Run:
    """State for one invocation. Never shared between runs."""

    def __init__(
        self,
        *,
        request_store: RequestStore,
        extractor: PageExtractor,
        fetch: Fetcher,
        limits: RunLimits,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        self.request_store = request_store
        self.fetch = fetch
        self.dedupe = DeduplicationIndex(request_store)
        self.quota = QuotaController(limits)
        self.enrichment = EnrichmentStage(request_store, extractor)
        self.on_progress = on_progress
        self.result = CrawlRunResult(
            max_total=limits.max_total,
            max_per_config=limits.max_per_config,
        )

    def emit(self, event_type: str, **payload: Any) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress({"type": event_type, **payload})
        except Exception as e:
            logger.warning("[pipeline] progress callback failed: %s", e)

    def process_config(self, cfg: AgendaSourceConfig) -> None:
        cfg.validate()

        urls = discover_event_urls(cfg, fetch=self.fetch)
        limited = self.quota.per_source_slice(urls)
        self.result.discovered_urls += len(limited)
        self.emit(
            "urls_discovered", owner=cfg.owner_label,
            found=len(urls), kept=len(limited),
        )

        for event_url in limited:
            if not self.quota.allows():
                logger.info(
                    "[pipeline] cap reached %s total=%d source=%d",
                    cfg.owner_label, self.quota.total, self.quota.source_count,
                )
                break
            try:
                self.process_url(cfg, event_url)
            except StoreError as e:
                msg = f"{cfg.owner_label}: {event_url}: {e}"
                logger.error("[pipeline] STORE_ERROR %s", msg)
                self.result.record_error(msg)

    def process_url(self, cfg: AgendaSourceConfig, event_url: str) -> None:
        if self.dedupe.is_known(event_url):
            logger.info("[pipeline] skip existing url=%s", event_url)
            self.result.skipped_existing += 1
            self.emit("request_skipped", owner=cfg.owner_label, url=event_url)
            return

        event_data: Dict[str, Any] = {"scraping_url": event_url}
        if cfg.organizer_id:
            event_data["organizer_id"] = cfg.organizer_id
        if cfg.location_id:
            event_data["location_id"] = cfg.location_id

        req = self.request_store.insert_pending(
            source_url=event_url,
            location_id=cfg.location_id,
            event_data=event_data,
        )
        if req is None:
            self.result.skipped_existing += 1
            self.emit("request_skipped", owner=cfg.owner_label, url=event_url)
            return

        self.dedupe.remember(req)
        self.quota.record_created()
        self.result.created_requests += 1
        self.emit("request_created", owner=cfg.owner_label, url=event_url, request_id=req.id)

        enriched = False
        try:
            enriched = self.enrichment.enrich(req.id, cfg, event_url)
        finally:
            if enriched:
                self.result.enriched_requests += 1
                self.emit("request_enriched", owner=cfg.owner_label, url=event_url, request_id=req.id)
            else:
                self.result.unenriched_requests += 1


def run_agenda_scrape(
    *,
    config_store: SourceConfigStore,
    request_store: RequestStore,
    extractor: PageExtractor,
    fetch: Fetcher = http_get,
    limits: Optional[RunLimits] = None,
    organizer_id: Optional[str] = None,
    location_id: Optional[str] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> CrawlRunResult:
    """
    Crawl every enabled agenda config and file new event URLs as pending
    requests, enriching each one right after it is created.

    Sources run one at a time. Anything that goes wrong inside one source
    is recorded against that source and the run moves on; only a failure
    to load the configs themselves propagates.
    """
    run = _Run(
        request_store=request_store,
        extractor=extractor,
        fetch=fetch,
        limits=limits or RunLimits.from_env(),
        on_progress=on_progress,
    )
    result = run.result

    configs = config_store.load_enabled_configs(organizer_id=organizer_id, location_id=location_id)
    result.configs = len(configs)
    logger.info(
        "[pipeline] start configs=%d max_total=%d max_per_config=%d",
        len(configs), result.max_total, result.max_per_config,
    )

    for cfg in configs:
        if run.quota.global_exhausted:
            logger.info("[pipeline] global cap reached (%d), not starting %s", result.max_total, cfg.owner_label)
            break

        run.quota.start_source()
        logger.info("[pipeline] config start %s -> %s", cfg.owner_label, cfg.agenda_url)
        run.emit("config_start", owner=cfg.owner_label, agenda_url=cfg.agenda_url)

        try:
            run.process_config(cfg)
        except Exception as e:
            msg = f"{cfg.owner_label}: {e}"
            logger.error("[pipeline] CONFIG_ERROR %s (%s)", msg, type(e).__name__)
            result.record_error(msg)
            run.emit("config_error", owner=cfg.owner_label, error=str(e))

    logger.info(result.summary_line())
    run.emit("done", **result.to_response())
    return result


def main() -> None:
    from .db.db_sources import SupabaseAgendaConfigStore
    from .db.requests_store import SupabaseRequestStore
    from .db.supabase_client import get_supabase_client
    from .extractor import make_page_extractor

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    print("PIPELINE: start")

    supabase = get_supabase_client()
    result = run_agenda_scrape(
        config_store=SupabaseAgendaConfigStore(supabase),
        request_store=SupabaseRequestStore(supabase),
        extractor=make_page_extractor(supabase),
    )

    for msg in result.error_details:
        print(f"[pipeline] error: {msg}")
    print(result.summary_line())


if __name__ == "__main__":
    main()
