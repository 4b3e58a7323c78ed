from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, Mapping, Optional

import requests

from config.settings import Settings, get_settings
from models import CanonicalContact, EnrichmentJob, EnrichmentStatus
from ports import HttpSessionPort
from services.errors import ConfigurationError, OperationCancelled, ProviderError
from services.mapping import first_present, from_enrichment
from utils.provider_logger import log_call


logger = logging.getLogger(__name__)

PROVIDER = "fullenrich"
JOB_NAME = "LinkedIn Profile Enrichment"
EMAIL_FIELDS = ["contact.emails"]


def email_from_result(record: Mapping[str, Any]) -> Optional[str]:
    """most_probable_email, else the first listed address."""
    contact = record.get("contact")
    if not isinstance(contact, Mapping):
        return None
    value = first_present(contact, ("most_probable_email", "emails.0.email"))
    return str(value) if value else None


class AsyncEnrichmentClient:
    """Submit-then-poll email enrichment against FullEnrich.

    The poll budget is attempt-counted (ENRICH_POLL_ATTEMPTS waits of
    ENRICH_POLL_INTERVAL_SECONDS each, wait first). Transient poll failures
    are logged and consume an attempt; they never abort the loop.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[HttpSessionPort] = None,
        sleep: Optional[Callable[[float], None]] = None,
        monotonic: Optional[Callable[[], float]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.session: HttpSessionPort = session or requests.Session()
        self._sleep = sleep or time.sleep
        self._monotonic = monotonic or time.monotonic

    def _headers(self) -> Dict[str, str]:
        api_key = self.settings.fullenrich_api_key
        if not api_key:
            raise ConfigurationError("FULLENRICH_API_KEY is not configured")
        return {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    def _wait(self, seconds: float, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            self._sleep(seconds)
        elif cancel.wait(seconds):
            raise OperationCancelled("Enrichment polling cancelled")

    def submit(self, profile_reference: str) -> Optional[EnrichmentJob]:
        """Start a job; None when the provider accepted the call but issued no id."""
        headers = self._headers()
        body = {
            "name": JOB_NAME,
            "datas": [{"linkedin_url": profile_reference, "enrich_fields": EMAIL_FIELDS}],
        }
        t0 = time.time()
        resp = self.session.post(
            f"{self.settings.fullenrich_base_url}/contact/enrich/bulk",
            json=body,
            headers=headers,
            timeout=self.settings.http_timeout_seconds,
        )
        dt_ms = int((time.time() - t0) * 1000)
        if not (200 <= resp.status_code < 300):
            log_call(
                caller="services.async_enrichment.submit",
                provider=PROVIDER,
                operation="enrich_bulk",
                duration_ms=dt_ms,
                status="error",
                http_status=resp.status_code,
                error=resp.text[:500],
            )
            logger.error("Enrichment submit failed", extra={"provider": PROVIDER, "status": resp.status_code})
            raise ProviderError("FullEnrich", resp.status_code, resp.text)

        try:
            data = resp.json() or {}
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error("Enrichment submit returned an unreadable body", extra={"provider": PROVIDER, "status": resp.status_code})
            raise ProviderError("FullEnrich", resp.status_code, resp.text)
        job_id = data.get("enrichment_id")
        log_call(
            caller="services.async_enrichment.submit",
            provider=PROVIDER,
            operation="enrich_bulk",
            duration_ms=dt_ms,
            http_status=resp.status_code,
            extras={"enrichment_id": job_id},
        )
        if not job_id:
            logger.warning("Enrichment submit returned no enrichment_id", extra={"provider": PROVIDER})
            return None
        logger.info("Enrichment job %s submitted", job_id, extra={"provider": PROVIDER, "step": "enrich.submit"})
        return EnrichmentJob(job_id=str(job_id), profile_reference=profile_reference, enrich_fields=list(EMAIL_FIELDS))

    def poll_result(
        self,
        job: EnrichmentJob,
        cancel: Optional[threading.Event] = None,
        deadline_seconds: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """Wait for the job; the first finished record, or None on failure/exhaustion."""
        headers = self._headers()
        url = f"{self.settings.fullenrich_base_url}/contact/enrich/bulk/{job.job_id}"
        attempts = self.settings.enrich_poll_attempts
        interval = self.settings.enrich_poll_interval_seconds
        started = self._monotonic()

        for attempt in range(1, attempts + 1):
            self._wait(interval, cancel)
            if deadline_seconds is not None and self._monotonic() - started >= deadline_seconds:
                logger.warning(
                    "Enrichment %s passed its %ss deadline", job.job_id, deadline_seconds,
                    extra={"provider": PROVIDER, "status": "timeout"},
                )
                return None

            t0 = time.time()
            try:
                resp = self.session.get(url, headers=headers, timeout=self.settings.http_timeout_seconds)
            except requests.RequestException as e:
                logger.warning(
                    "Poll %d/%d failed", attempt, attempts,
                    extra={"provider": PROVIDER, "status": "transient", "error": str(e)},
                )
                continue
            dt_ms = int((time.time() - t0) * 1000)

            if not (200 <= resp.status_code < 300):
                log_call(
                    caller="services.async_enrichment.poll",
                    provider=PROVIDER,
                    operation="enrich_status",
                    duration_ms=dt_ms,
                    status="error",
                    http_status=resp.status_code,
                    error=resp.text[:500],
                    extras={"enrichment_id": job.job_id, "attempt": attempt},
                )
                logger.warning(
                    "Poll %d/%d returned HTTP %s", attempt, attempts, resp.status_code,
                    extra={"provider": PROVIDER, "status": "transient"},
                )
                continue

            try:
                data = resp.json() or {}
            except ValueError as e:
                logger.warning(
                    "Poll %d/%d returned an undecodable body", attempt, attempts,
                    extra={"provider": PROVIDER, "status": "transient", "error": str(e)},
                )
                continue

            if not isinstance(data, dict):
                logger.warning(
                    "Poll %d/%d returned a non-object body", attempt, attempts,
                    extra={"provider": PROVIDER, "status": "transient"},
                )
                continue

            job.status = EnrichmentStatus.parse(data.get("status"))
            records = data.get("datas") or []
            if not isinstance(records, list):
                records = []
            log_call(
                caller="services.async_enrichment.poll",
                provider=PROVIDER,
                operation="enrich_status",
                duration_ms=dt_ms,
                http_status=resp.status_code,
                extras={"enrichment_id": job.job_id, "attempt": attempt, "job_status": job.status.value},
            )

            if job.status is EnrichmentStatus.FINISHED and records:
                if isinstance(records[0], Mapping):
                    return dict(records[0])
                logger.warning(
                    "Poll %d/%d finished with a malformed record", attempt, attempts,
                    extra={"provider": PROVIDER, "status": "transient"},
                )
                continue
            if job.status in (EnrichmentStatus.FAILED, EnrichmentStatus.ERROR):
                logger.info(
                    "Enrichment %s ended with %s", job.job_id, job.status.value,
                    extra={"provider": PROVIDER, "status": job.status.value},
                )
                return None

        logger.warning(
            "Enrichment %s not finished after %d polls", job.job_id, attempts,
            extra={"provider": PROVIDER, "status": "exhausted"},
        )
        return None

    def poll(
        self,
        job: EnrichmentJob,
        cancel: Optional[threading.Event] = None,
        deadline_seconds: Optional[float] = None,
    ) -> Optional[str]:
        record = self.poll_result(job, cancel=cancel, deadline_seconds=deadline_seconds)
        return email_from_result(record) if record else None

    def enrich(
        self,
        profile_reference: str,
        cancel: Optional[threading.Event] = None,
        deadline_seconds: Optional[float] = None,
    ) -> Optional[str]:
        """Email for a profile URL, or None when the provider could not find one."""
        job = self.submit(profile_reference)
        if job is None:
            return None
        return self.poll(job, cancel=cancel, deadline_seconds=deadline_seconds)

    def enrich_contact(
        self,
        profile_reference: str,
        cancel: Optional[threading.Event] = None,
        deadline_seconds: Optional[float] = None,
    ) -> Optional[CanonicalContact]:
        """Like enrich(), but keeps everything the finished result carries."""
        job = self.submit(profile_reference)
        if job is None:
            return None
        record = self.poll_result(job, cancel=cancel, deadline_seconds=deadline_seconds)
        if not record or not email_from_result(record):
            return None
        return self.contact_from_result(record)

    @staticmethod
    def contact_from_result(record: Mapping[str, Any]) -> CanonicalContact:
        contact = record.get("contact")
        return from_enrichment(contact if isinstance(contact, Mapping) else {})
