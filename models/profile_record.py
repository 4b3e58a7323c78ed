from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ExperienceEntry(BaseModel):
    title: str = ""
    company: str = ""
    company_url: str = ""
    location: str = ""
    date_range: str = ""
    description: str = ""


class EducationEntry(BaseModel):
    school: str = ""
    degree: str = ""
    field_of_study: str = ""
    date_range: str = ""


class ProfileRecord(BaseModel):
    """Intermediate profile shape produced from a profile-fetch response."""

    identifier: str
    profile_url: str
    first_name: str | None = None
    last_name: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    headline: str | None = None
    summary: str | None = None
    industry: str | None = None
    location: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    current_title: str | None = None
    current_company: str | None = None
    experiences: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")
