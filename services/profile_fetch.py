from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from config.settings import Settings, get_settings
from models import CanonicalContact, ProfileRecord
from ports import HttpSessionPort
from services.domain_utils import extract_profile_identifier
from services.errors import ConfigurationError, ProviderError
from services.mapping import from_profile, to_profile_record
from utils.provider_logger import log_call


logger = logging.getLogger(__name__)

PROVIDER = "rapidapi"


class ProfileFetchClient:
    """One synchronous public-profile lookup by URL.

    The identifier is validated before the credential check so a malformed
    URL never costs a network call.
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[HttpSessionPort] = None) -> None:
        self.settings = settings or get_settings()
        self.session: HttpSessionPort = session or requests.Session()

    @staticmethod
    def extract_identifier(url: str) -> str:
        return extract_profile_identifier(url)

    def _headers(self) -> Dict[str, str]:
        api_key = self.settings.rapidapi_key
        if not api_key:
            raise ConfigurationError("RAPIDAPI_KEY is not configured")
        return {
            "x-rapidapi-key": api_key,
            "x-rapidapi-host": self.settings.rapidapi_profile_host,
        }

    def fetch_raw(self, url: str) -> Dict[str, Any]:
        headers = self._headers()
        t0 = time.time()
        resp = self.session.get(
            f"https://{self.settings.rapidapi_profile_host}/enrich-lead",
            params={"linkedin_url": url},
            headers=headers,
            timeout=self.settings.http_timeout_seconds,
        )
        dt_ms = int((time.time() - t0) * 1000)
        if not (200 <= resp.status_code < 300):
            log_call(
                caller="services.profile_fetch.fetch",
                provider=PROVIDER,
                operation="enrich_lead",
                duration_ms=dt_ms,
                status="error",
                http_status=resp.status_code,
                error=resp.text[:500],
            )
            logger.error("Profile fetch failed", extra={"provider": PROVIDER, "status": resp.status_code})
            raise ProviderError("RapidAPI", resp.status_code, resp.text)

        log_call(
            caller="services.profile_fetch.fetch",
            provider=PROVIDER,
            operation="enrich_lead",
            duration_ms=dt_ms,
            http_status=resp.status_code,
        )
        data = resp.json() or {}
        # Some plans wrap the profile under "data"
        if isinstance(data.get("data"), dict):
            data = data["data"]
        return data

    def fetch_profile(self, url: str) -> ProfileRecord:
        identifier = self.extract_identifier(url)
        raw = self.fetch_raw(url)
        record = to_profile_record(raw, identifier=identifier, requested_url=url)
        logger.info(
            "Fetched profile %s (%d experiences)", identifier, len(record.experiences),
            extra={"provider": PROVIDER, "status": "ok", "step": "profile.fetch"},
        )
        return record

    def fetch(self, url: str) -> CanonicalContact:
        return from_profile(self.fetch_profile(url))
