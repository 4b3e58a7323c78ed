from __future__ import annotations

import threading
from typing import List, Optional

from models import SearchFilter
from pipelines.runner import Pipeline, RunContext, Step
from pipelines.steps import EnrichEmails, MapContacts, PersistContacts, SearchContacts
from ports import LeadsRepoPort
from services.async_enrichment import AsyncEnrichmentClient
from services.bulk_search import BulkSearchClient


def import_contacts(
    query: SearchFilter,
    *,
    search_client: Optional[BulkSearchClient] = None,
    enrich_client: Optional[AsyncEnrichmentClient] = None,
    repo: Optional[LeadsRepoPort] = None,
    enrich_emails: bool = False,
    cancel: Optional[threading.Event] = None,
) -> RunContext:
    """Bulk search -> canonical contacts, optionally email-enriched and persisted."""
    steps: List[Step] = [SearchContacts(search_client or BulkSearchClient()), MapContacts()]
    if enrich_emails:
        steps.append(EnrichEmails(enrich_client or AsyncEnrichmentClient(), cancel=cancel))
    if repo is not None:
        steps.append(PersistContacts(repo, source_name="apollo_search"))
    return Pipeline(steps).run(RunContext(query=query))
