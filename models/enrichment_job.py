from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class EnrichmentStatus(str, Enum):
    PENDING = "PENDING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "EnrichmentStatus":
        """Provider status string to enum; unset or unknown values are still pending."""
        try:
            return cls(str(raw or "").strip().upper())
        except ValueError:
            return cls.PENDING


class EnrichmentJob(BaseModel):
    """Handle for one submitted enrichment request; lives for one polling call."""

    job_id: str
    profile_reference: str
    enrich_fields: List[str] = Field(default_factory=lambda: ["contact.emails"])
    status: EnrichmentStatus = EnrichmentStatus.PENDING
