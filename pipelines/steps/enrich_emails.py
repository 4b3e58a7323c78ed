from __future__ import annotations

import concurrent.futures as _fut
import logging
import threading
from typing import List, Optional, Tuple

import requests

from models import CanonicalContact
from pipelines.runner import RunContext
from services.async_enrichment import AsyncEnrichmentClient
from services.errors import ProviderError
from services.mapping import merge


logger = logging.getLogger(__name__)


class EnrichEmails:
    """Look up emails for contacts that have a LinkedIn URL but no email yet.

    Lookups fan out over a thread pool; results are merged back in the
    original order so a found email never erases other known fields.
    """

    def __init__(
        self,
        client: AsyncEnrichmentClient,
        concurrency: Optional[int] = None,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        self.client = client
        self.concurrency = concurrency
        self.cancel = cancel

    def _lookup(self, idx: int, contact: CanonicalContact) -> Tuple[int, Optional[CanonicalContact]]:
        try:
            return idx, self.client.enrich_contact(contact.linkedin_url or "", cancel=self.cancel)
        except (ProviderError, requests.RequestException) as e:
            logger.warning(
                "Email enrichment failed for %s", contact.linkedin_url,
                extra={"provider": "fullenrich", "status": "error", "error": str(e)},
            )
            return idx, None

    def run(self, ctx: RunContext) -> RunContext:
        pending: List[Tuple[int, CanonicalContact]] = [
            (i, c) for i, c in enumerate(ctx.contacts) if c.linkedin_url and not c.email
        ]
        max_workers = max(1, self.concurrency or ctx.meta.get("enrich_concurrency") or self.client.settings.enrich_concurrency)

        results: List[Tuple[int, Optional[CanonicalContact]]] = []
        with _fut.ThreadPoolExecutor(max_workers=max_workers) as ex:
            futures = [ex.submit(self._lookup, i, c) for i, c in pending]
            for fut in _fut.as_completed(futures):
                results.append(fut.result())

        found = 0
        for idx, enriched in sorted(results, key=lambda r: r[0]):
            if enriched is None:
                continue
            ctx.contacts[idx] = merge(ctx.contacts[idx], enriched)
            found += 1

        ctx.meta["emails_requested"] = len(pending)
        ctx.meta["emails_found"] = found
        return ctx
