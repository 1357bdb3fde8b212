# agenda_scraper/db/requests_store.py
"""
public.user_requests access for agenda ingestion.

Only rows with request_type = 'event_from_url' are touched. This module
inserts new pending rows and updates a row's event_data by id; it never
deletes and never changes status (review belongs to the admin UI).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from ..errors import StoreError
from ..models import REQUEST_TYPE_EVENT_FROM_URL, PendingRequest

logger = logging.getLogger(__name__)

REQUESTS_TABLE = "user_requests"
REQUEST_COLUMNS = "id,status,source_url,location_id,location_name,event_data"
# below PostgREST's default max_rows (1000)
SCAN_BATCH_SIZE = 500


def _extract_postgrest_error(e: APIError) -> dict[str, Any]:
    """
    Normalize PostgREST APIError across versions.
    We try to recover the dict that contains: message, code, details, hint.
    """
    if getattr(e, "args", None) and len(e.args) >= 1 and isinstance(e.args[0], dict):
        return e.args[0]
    # postgrest >= 0.11 keeps the fields as attributes
    code = getattr(e, "code", None)
    message = getattr(e, "message", None)
    if code or message:
        return {"code": code, "message": message or str(e)}
    return {"message": str(e)}


def _is_duplicate_key(err: dict[str, Any]) -> bool:
    if err.get("code") in ("23505", 23505):
        return True
    return "duplicate key value" in (err.get("message") or "").lower()


def _row_to_request(r: dict) -> PendingRequest:
    event_data = r.get("event_data")
    status = r.get("status") or "pending"
    if status not in ("pending", "approved", "rejected"):
        status = "pending"
    return PendingRequest(
        id=str(r.get("id")),
        source_url=str(r.get("source_url") or ""),
        status=status,
        location_id=r.get("location_id"),
        location_name=r.get("location_name"),
        event_data=event_data if isinstance(event_data, dict) else {},
    )


class SupabaseRequestStore:
    def __init__(self, supabase: Client) -> None:
        self.supabase = supabase
        self._location_names: Dict[str, Optional[str]] = {}

    def _event_requests(self, columns: str = REQUEST_COLUMNS):
        return (
            self.supabase.table(REQUESTS_TABLE)
            .select(columns)
            .eq("request_type", REQUEST_TYPE_EVENT_FROM_URL)
        )

    def find_by_source_url(self, url: str) -> Optional[PendingRequest]:
        try:
            resp = self._event_requests().eq("source_url", url).limit(1).execute()
        except Exception as e:
            raise StoreError(f"lookup by source_url failed: {type(e).__name__}: {e}") from e
        data = getattr(resp, "data", None) or []
        return _row_to_request(data[0]) if data else None

    def list_event_url_requests(self) -> List[PendingRequest]:
        # TODO: replace this scan with an indexed lookup on
        # event_data->>scraping_url once the migration adds the index.
        out: List[PendingRequest] = []
        offset = 0
        while True:
            try:
                resp = (
                    self._event_requests()
                    .order("id", desc=False)
                    .range(offset, offset + SCAN_BATCH_SIZE - 1)
                    .execute()
                )
            except Exception as e:
                raise StoreError(f"request scan failed offset={offset}: {type(e).__name__}: {e}") from e

            rows = getattr(resp, "data", None) or []
            out.extend(_row_to_request(r) for r in rows)
            # PostgREST caps each response, so only a short page is the last one
            if len(rows) < SCAN_BATCH_SIZE:
                break
            offset += SCAN_BATCH_SIZE

        logger.info("[requests] scanned %d event_from_url requests", len(out))
        return out

    def location_name(self, location_id: Optional[str]) -> Optional[str]:
        if not location_id:
            return None
        if location_id in self._location_names:
            return self._location_names[location_id]

        name = None
        try:
            resp = (
                self.supabase.table("locations")
                .select("name")
                .eq("id", location_id)
                .limit(1)
                .execute()
            )
            data = getattr(resp, "data", None) or []
            if data:
                name = (data[0].get("name") or "").strip() or None
        except Exception as e:
            # label only; the request is still valid without it
            logger.warning("[requests] location name lookup failed id=%s: %s", location_id, e)
        self._location_names[location_id] = name
        return name

    def insert_pending(
        self,
        *,
        source_url: str,
        location_id: Optional[str],
        event_data: Dict[str, Any],
    ) -> Optional[PendingRequest]:
        """
        Insert a pending event_from_url request.

        Returns None when a unique constraint reports the URL already
        exists (treated as a dedup hit, not an error).
        """
        payload: dict[str, Any] = {
            "request_type": REQUEST_TYPE_EVENT_FROM_URL,
            "status": "pending",
            "source_url": source_url,
            "location_id": location_id,
            "location_name": self.location_name(location_id),
            "requested_by": None,
            "event_data": event_data,
        }
        try:
            resp = self.supabase.table(REQUESTS_TABLE).insert([payload]).execute()
        except APIError as e:
            err = _extract_postgrest_error(e)
            if _is_duplicate_key(err):
                logger.info("[requests] duplicate source_url on insert, skipping: %s", source_url)
                return None
            raise StoreError(f"insert failed: {err.get('message') or e}") from e
        except Exception as e:
            raise StoreError(f"insert failed: {type(e).__name__}: {e}") from e

        data = getattr(resp, "data", None) or []
        if not data or not data[0].get("id"):
            raise StoreError(f"insert returned no id for {source_url}")
        return _row_to_request({**payload, **data[0]})

    def get_event_data(self, request_id: str) -> Dict[str, Any]:
        try:
            resp = (
                self.supabase.table(REQUESTS_TABLE)
                .select("event_data")
                .eq("id", request_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"read event_data failed id={request_id}: {type(e).__name__}: {e}") from e
        data = getattr(resp, "data", None) or []
        if not data:
            raise StoreError(f"request {request_id} not found")
        event_data = data[0].get("event_data")
        return dict(event_data) if isinstance(event_data, dict) else {}

    def update_event_data(self, request_id: str, event_data: Dict[str, Any]) -> None:
        try:
            (
                self.supabase.table(REQUESTS_TABLE)
                .update({"event_data": event_data})
                .eq("id", request_id)
                .execute()
            )
        except Exception as e:
            raise StoreError(f"update event_data failed id={request_id}: {type(e).__name__}: {e}") from e
