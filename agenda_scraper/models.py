from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

REQUEST_TYPE_EVENT_FROM_URL = "event_from_url"

# Keys in event_data that identify where a request came from.
# Set once at creation, never overwritten by enrichment.
IDENTITY_FIELDS = ("organizer_id", "location_id", "scraping_url")


class PendingRequest(BaseModel):
    id: str
    source_url: str
    status: Literal["pending", "approved", "rejected"] = "pending"
    request_type: str = REQUEST_TYPE_EVENT_FROM_URL
    location_id: Optional[str] = None
    location_name: Optional[str] = None
    event_data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def embedded_urls(self) -> List[str]:
        out = []
        for key in ("scraping_url", "external_url"):
            v = self.event_data.get(key)
            if isinstance(v, str) and v.strip():
                out.append(v.strip())
        return out


class ExtractionResult(BaseModel):
    ok: bool
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None


class CrawlRunResult(BaseModel):
    configs: int = 0
    discovered_urls: int = 0
    created_requests: int = 0
    enriched_requests: int = 0
    unenriched_requests: int = 0
    skipped_existing: int = 0
    errors: int = 0
    error_details: List[str] = Field(default_factory=list)

    max_total: int = 0
    max_per_config: int = 0

    @property
    def success(self) -> bool:
        return self.errors == 0

    def record_error(self, message: str) -> None:
        self.errors += 1
        self.error_details.append(message)

    def to_response(self) -> Dict[str, Any]:
        """JSON body returned to the scheduler."""
        body: Dict[str, Any] = {
            "success": self.success,
            "message": f"Agenda scraping finished for {self.configs} config(s)",
            "configs": self.configs,
            "discoveredUrls": self.discovered_urls,
            "createdRequests": self.created_requests,
            "enrichedRequests": self.enriched_requests,
            "unenrichedRequests": self.unenriched_requests,
            "skippedExisting": self.skipped_existing,
            "errors": self.errors,
            "limits": {
                "maxTotal": self.max_total,
                "maxPerConfig": self.max_per_config,
            },
        }
        if self.errors:
            body["errorDetails"] = list(self.error_details)
        return body

    def summary_line(self) -> str:
        # grep '[pipeline][summary]' /tmp/agenda.log
        return (
            f"[pipeline][summary]"
            f" configs={self.configs}"
            f" discovered={self.discovered_urls}"
            f" created={self.created_requests}"
            f" enriched={self.enriched_requests}"
            f" unenriched={self.unenriched_requests}"
            f" skipped_existing={self.skipped_existing}"
            f" errors={self.errors}"
        )
