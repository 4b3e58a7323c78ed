from __future__ import annotations

import logging

from pipelines.runner import RunContext
from services.errors import ProviderError
from services.profile_fetch import ProfileFetchClient


logger = logging.getLogger(__name__)


class FetchProfiles:
    """Fetch every URL in ctx.profile_urls and append the mapped contacts.

    Malformed URLs and missing credentials abort the run; a provider error on
    one profile is logged and that profile is skipped.
    """

    def __init__(self, client: ProfileFetchClient) -> None:
        self.client = client

    def run(self, ctx: RunContext) -> RunContext:
        # Validate all identifiers before the first network call
        for url in ctx.profile_urls:
            self.client.extract_identifier(url)

        fetched = 0
        failed = 0
        for url in ctx.profile_urls:
            try:
                ctx.contacts.append(self.client.fetch(url))
                fetched += 1
            except ProviderError as e:
                failed += 1
                logger.warning("Skipping profile %s", url, extra={"provider": "rapidapi", "status": e.status_code, "error": str(e)})
        ctx.meta["profiles_fetched"] = fetched
        ctx.meta["profiles_failed"] = failed
        return ctx
