from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from config.settings import Settings, get_settings
from models import Pagination, SearchFilter, SearchResult
from ports import HttpSessionPort
from services.errors import ConfigurationError, ProviderError
from utils.provider_logger import log_call


logger = logging.getLogger(__name__)

PROVIDER = "apollo"


class BulkSearchClient:
    """Filtered, paginated people search against Apollo.

    Records come back exactly as the provider sent them; mapping is the
    caller's job (services.mapping.from_bulk_record).
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[HttpSessionPort] = None) -> None:
        self.settings = settings or get_settings()
        self.session: HttpSessionPort = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        api_key = self.settings.apollo_api_key
        if not api_key:
            raise ConfigurationError("APOLLO_API_KEY is not configured")
        return {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache",
            "x-api-key": api_key,
        }

    def search(self, query: SearchFilter) -> SearchResult:
        headers = self._headers()
        payload = query.to_payload()

        t0 = time.time()
        resp = self.session.post(
            self.settings.apollo_search_url,
            json=payload,
            headers=headers,
            timeout=self.settings.http_timeout_seconds,
        )
        dt_ms = int((time.time() - t0) * 1000)

        if not (200 <= resp.status_code < 300):
            log_call(
                caller="services.bulk_search.search",
                provider=PROVIDER,
                operation="mixed_people_search",
                duration_ms=dt_ms,
                status="error",
                http_status=resp.status_code,
                error=resp.text[:500],
            )
            logger.error(
                "Bulk search failed",
                extra={"provider": PROVIDER, "status": resp.status_code, "duration_ms": dt_ms},
            )
            raise ProviderError("Apollo", resp.status_code, resp.text)

        data: Dict[str, Any] = resp.json() or {}
        people = data.get("people") or []
        pag = data.get("pagination") or {}
        pagination = Pagination(
            page=int(pag.get("page") or query.page),
            per_page=int(pag.get("per_page") or query.per_page),
            total_entries=int(pag.get("total_entries") or 0),
            total_pages=int(pag.get("total_pages") or 0),
        )

        log_call(
            caller="services.bulk_search.search",
            provider=PROVIDER,
            operation="mixed_people_search",
            duration_ms=dt_ms,
            http_status=resp.status_code,
            extras={"page": pagination.page, "records": len(people), "total_entries": pagination.total_entries},
        )
        logger.info(
            "Bulk search returned %d records (page %d/%d)",
            len(people), pagination.page, pagination.total_pages,
            extra={"provider": PROVIDER, "status": "ok", "duration_ms": dt_ms},
        )
        return SearchResult(records=list(people), pagination=pagination)
