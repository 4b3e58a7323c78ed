from __future__ import annotations

import threading
from typing import List, Optional

from models import CanonicalContact
from pipelines.runner import Pipeline, RunContext, Step
from pipelines.steps import EnrichEmails, PersistContacts
from ports import LeadsRepoPort
from services.async_enrichment import AsyncEnrichmentClient
from services.domain_utils import extract_profile_identifier, normalize_linkedin_profile_url


def enrich_contact(
    profile_url: str,
    *,
    client: Optional[AsyncEnrichmentClient] = None,
    repo: Optional[LeadsRepoPort] = None,
    cancel: Optional[threading.Event] = None,
) -> RunContext:
    """Targeted email lookup for one profile; merges into the stored lead when a repo is given."""
    extract_profile_identifier(profile_url)
    url = normalize_linkedin_profile_url(profile_url) or profile_url

    start = CanonicalContact(linkedin_url=url)
    if repo is not None:
        found = repo.find_by_linkedin_url(url)
        if found is not None:
            start = found[1]

    steps: List[Step] = [EnrichEmails(client or AsyncEnrichmentClient(), concurrency=1, cancel=cancel)]
    if repo is not None:
        steps.append(PersistContacts(repo, source_name="fullenrich"))
    return Pipeline(steps).run(RunContext(contacts=[start]))
