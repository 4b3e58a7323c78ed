from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from models import CanonicalContact, SearchFilter
from utils.logging_setup import init_logging


logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    query: Optional[SearchFilter] = None
    profile_urls: List[str] = field(default_factory=list)
    raw_records: List[Dict[str, Any]] = field(default_factory=list)
    contacts: List[CanonicalContact] = field(default_factory=list)
    meta: dict = field(default_factory=dict)


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            name = type(step).__name__
            t0 = time.time()
            ctx = step.run(ctx)
            dt_ms = int((time.time() - t0) * 1000)
            logger.info("Step done", extra={"step": name, "status": "ok", "duration_ms": dt_ms})
        return ctx
