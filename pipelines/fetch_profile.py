from __future__ import annotations

import threading
from typing import Iterable, List, Optional

from pipelines.runner import Pipeline, RunContext, Step
from pipelines.steps import EnrichEmails, FetchProfiles, PersistContacts
from ports import LeadsRepoPort
from services.async_enrichment import AsyncEnrichmentClient
from services.profile_fetch import ProfileFetchClient


def fetch_profiles(
    profile_urls: Iterable[str],
    *,
    client: Optional[ProfileFetchClient] = None,
    enrich_client: Optional[AsyncEnrichmentClient] = None,
    repo: Optional[LeadsRepoPort] = None,
    enrich_emails: bool = False,
    cancel: Optional[threading.Event] = None,
) -> RunContext:
    steps: List[Step] = [FetchProfiles(client or ProfileFetchClient())]
    if enrich_emails:
        steps.append(EnrichEmails(enrich_client or AsyncEnrichmentClient(), cancel=cancel))
    if repo is not None:
        steps.append(PersistContacts(repo, source_name="rapidapi_profile"))
    return Pipeline(steps).run(RunContext(profile_urls=list(profile_urls)))
