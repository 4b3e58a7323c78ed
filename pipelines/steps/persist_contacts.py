from __future__ import annotations

import logging
from typing import List, Optional

from pipelines.runner import RunContext
from ports import LeadsRepoPort
from services.domain_utils import normalize_linkedin_profile_url


logger = logging.getLogger(__name__)


class PersistContacts:
    def __init__(self, repo: LeadsRepoPort, source_name: Optional[str] = None) -> None:
        self.repo = repo
        self.source_name = source_name

    def run(self, ctx: RunContext) -> RunContext:
        created = 0
        updated = 0
        lead_ids: List[int] = []
        for contact in ctx.contacts:
            if not (contact.linkedin_url or contact.email):
                # Nothing to key the lead on
                continue
            url = normalize_linkedin_profile_url(contact.linkedin_url) if contact.linkedin_url else None
            if url:
                contact = contact.model_copy(update={"linkedin_url": url})
            lead_id, was_created = self.repo.upsert_contact(contact, source_name=self.source_name)
            lead_ids.append(lead_id)
            if was_created:
                created += 1
            else:
                updated += 1

        ctx.meta["lead_ids"] = lead_ids
        ctx.meta["leads_created"] = created
        ctx.meta["leads_updated"] = updated
        logger.info("Persisted %d leads", len(lead_ids), extra={"step": "persist_contacts", "status": "ok"})
        return ctx
