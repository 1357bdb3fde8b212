"""Scheduler-facing HTTP trigger for the agenda scrape."""

import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, Header
from fastapi.responses import JSONResponse

from .config import cron_secret
from .errors import AuthError
from .pipeline import run_agenda_scrape
from .quota import RunLimits
from .stores import PageExtractor, RequestStore, SourceConfigStore

logger = logging.getLogger(__name__)

app = FastAPI(title="Agenda scraper")


@dataclass
class Collaborators:
    config_store: SourceConfigStore
    request_store: RequestStore
    extractor: PageExtractor


def get_collaborators() -> Collaborators:
    """Supabase-backed collaborators. Overridden in tests."""
    from .db.db_sources import SupabaseAgendaConfigStore
    from .db.requests_store import SupabaseRequestStore
    from .db.supabase_client import get_supabase_client
    from .extractor import make_page_extractor

    supabase = get_supabase_client()
    return Collaborators(
        config_store=SupabaseAgendaConfigStore(supabase),
        request_store=SupabaseRequestStore(supabase),
        extractor=make_page_extractor(supabase),
    )


def get_run_limits() -> RunLimits:
    return RunLimits.from_env()


def verify_cron_request(authorization: Optional[str]) -> None:
    secret = cron_secret()
    if not secret:
        logger.error("[api] CRON_SECRET is not set; refusing scheduled run")
        raise AuthError("CRON_SECRET not configured")
    if not authorization or not secrets.compare_digest(
        authorization.encode(), f"Bearer {secret}".encode()
    ):
        raise AuthError("invalid scheduler credential")


@app.exception_handler(AuthError)
async def _auth_error_handler(request, exc: AuthError):
    return JSONResponse(status_code=401, content={"error": "Unauthorized"})


def require_cron_auth(authorization: Optional[str] = Header(None)) -> None:
    verify_cron_request(authorization)


@app.get("/api/cron/scrape-events", dependencies=[Depends(require_cron_auth)])
def scrape_events(
    collaborators: Collaborators = Depends(get_collaborators),
    limits: RunLimits = Depends(get_run_limits),
):
    logger.info("[api] scheduled agenda scrape start")
    try:
        result = run_agenda_scrape(
            config_store=collaborators.config_store,
            request_store=collaborators.request_store,
            extractor=collaborators.extractor,
            limits=limits,
        )
    except Exception as e:
        logger.exception("[api] agenda scrape aborted")
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e) or type(e).__name__},
        )
    return result.to_response()
