from __future__ import annotations

import logging

from pipelines.runner import RunContext
from services.bulk_search import BulkSearchClient


logger = logging.getLogger(__name__)


class SearchContacts:
    """Run one bulk-search page for ctx.query; raw records land in ctx.raw_records."""

    def __init__(self, client: BulkSearchClient) -> None:
        self.client = client

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.query is None:
            raise ValueError("SearchContacts needs ctx.query")
        result = self.client.search(ctx.query)
        ctx.raw_records = list(result.records)
        ctx.meta["pagination"] = result.pagination.model_dump()
        ctx.meta["records_found"] = len(ctx.raw_records)
        return ctx
