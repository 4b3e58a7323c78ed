from __future__ import annotations

from pipelines.runner import RunContext
from services.mapping import from_bulk_record


class MapContacts:
    def run(self, ctx: RunContext) -> RunContext:
        mapped = [from_bulk_record(r) for r in (ctx.raw_records or []) if isinstance(r, dict)]
        ctx.contacts.extend(mapped)
        ctx.meta["contacts_mapped"] = len(mapped)
        return ctx
