from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_PER_PAGE = 100

# Filter attribute -> outgoing payload key
FILTER_PAYLOAD_KEYS: Dict[str, str] = {
    "person_titles": "person_titles",
    "person_seniorities": "person_seniorities",
    "person_locations": "person_locations",
    "organization_names": "organization_names",
    "organization_locations": "organization_locations",
    "organization_industry_tag_ids": "organization_industry_tag_ids",
    "organization_num_employees_ranges": "organization_num_employees_ranges",
}


class SearchFilter(BaseModel):
    """Structured bulk-search query; empty lists mean "no constraint"."""

    person_titles: List[str] | None = None
    person_seniorities: List[str] | None = None
    person_locations: List[str] | None = None
    organization_names: List[str] | None = None
    organization_locations: List[str] | None = None
    organization_industry_tag_ids: List[str] | None = None
    organization_num_employees_ranges: List[str] | None = None
    page: int = Field(default=1, ge=1)
    per_page: int = MAX_PER_PAGE

    model_config = ConfigDict(extra="forbid")

    @field_validator("per_page")
    @classmethod
    def _clamp_per_page(cls, value: int) -> int:
        return max(1, min(int(value), MAX_PER_PAGE))

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        for attr, key in FILTER_PAYLOAD_KEYS.items():
            values = [v for v in (getattr(self, attr) or []) if v]
            if values:
                payload[key] = values
        payload["page"] = self.page
        payload["per_page"] = self.per_page
        return payload


class Pagination(BaseModel):
    page: int
    per_page: int
    total_entries: int = 0
    total_pages: int = 0


class SearchResult(BaseModel):
    records: List[Dict[str, Any]] = Field(default_factory=list)
    pagination: Pagination
