from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CanonicalContact(BaseModel):
    """Unified contact record: every provider payload is mapped into this shape."""

    # Identity
    first_name: str | None = None
    last_name: str | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None

    # Employment
    title: str | None = None
    company: str | None = None
    company_domain: str | None = None
    company_website: str | None = None
    company_size: str | None = None
    company_industry: str | None = None
    company_founded_year: int | None = None
    company_phone: str | None = None
    company_linkedin: str | None = None

    # Location
    city: str | None = None
    state: str | None = None
    country: str | None = None

    # Social profiles
    linkedin_url: str | None = None
    twitter_url: str | None = None
    facebook_url: str | None = None

    # Bookkeeping, assigned on creation
    status: str = "new"
    score: int = 0

    model_config = ConfigDict(extra="ignore")


BOOKKEEPING_FIELDS: tuple[str, ...] = ("status", "score")

CONTENT_FIELDS: tuple[str, ...] = tuple(
    name for name in CanonicalContact.model_fields if name not in BOOKKEEPING_FIELDS
)
