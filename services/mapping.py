from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from models import CanonicalContact, EducationEntry, ExperienceEntry, ProfileRecord
from models.contact import CONTENT_FIELDS
from services.domain_utils import extract_apex_domain


# A source is a dotted path into the raw payload ("organization.name",
# "emails.0.email") or a resolver taking the whole payload.
FieldSource = Union[str, Callable[[Mapping[str, Any]], Any]]
FieldTable = Dict[str, Tuple[FieldSource, ...]]


def _preferred_phone(raw: Mapping[str, Any]) -> Optional[str]:
    """Apollo phone_numbers: the 'work' entry wins, else the first one."""
    numbers = raw.get("phone_numbers")
    if not isinstance(numbers, list) or not numbers:
        return None
    entries = [n for n in numbers if isinstance(n, dict)]
    for entry in entries:
        if entry.get("type") == "work" and entry.get("number"):
            return entry["number"]
    return entries[0].get("number") if entries else None


def _format_date(value: Any) -> Optional[str]:
    """'2021-03' style strings pass through; {year, month} objects become 'MM/YYYY'."""
    if isinstance(value, Mapping):
        year, month = value.get("year"), value.get("month")
        if year and month:
            return f"{str(month).zfill(2)}/{year}"
        return str(year) if year else None
    if isinstance(value, (str, int)) and str(value).strip():
        return str(value).strip()
    return None


def _experience_span(raw: Mapping[str, Any]) -> Optional[str]:
    for base in (raw, lookup(raw, "profile_positions.0")):
        if not isinstance(base, Mapping):
            continue
        start = _format_date(base.get("start_date") or base.get("starts_at"))
        end = _format_date(base.get("end_date") or base.get("ends_at"))
        if start or end:
            return f"{start or '?'} - {end or 'Present'}"
    return None


def _education_years(raw: Mapping[str, Any]) -> Optional[str]:
    start = raw.get("start_year") or lookup(raw, "starts_at.year")
    end = raw.get("end_year") or lookup(raw, "ends_at.year")
    if start and end:
        return f"{start} - {end}"
    return str(start or end) if (start or end) else None


BULK_PERSON_FIELDS: FieldTable = {
    "first_name": ("first_name",),
    "last_name": ("last_name",),
    "name": ("name",),
    "email": ("email",),
    "phone": (_preferred_phone, "sanitized_phone", "phone"),
    "title": ("title", "headline"),
    "company": ("organization.name", "organization_name"),
    "company_website": ("organization.website_url",),
    "company_domain": ("organization.primary_domain", "organization.domain"),
    "company_linkedin": ("organization.linkedin_url",),
    "company_industry": ("organization.industry",),
    "company_size": ("organization.num_employees_enum", "organization.estimated_num_employees"),
    "company_founded_year": ("organization.founded_year",),
    "company_phone": ("organization.primary_phone.number", "organization.phone"),
    "city": ("city",),
    "state": ("state",),
    "country": ("country",),
    "linkedin_url": ("linkedin_url",),
    "twitter_url": ("twitter_url",),
    "facebook_url": ("facebook_url",),
}

ENRICHMENT_CONTACT_FIELDS: FieldTable = {
    "email": ("most_probable_email", "emails.0.email", "email"),
    "phone": ("most_probable_phone", "phones.0.number", "phone"),
    "first_name": ("firstname", "first_name"),
    "last_name": ("lastname", "last_name"),
    "title": ("job_title", "profile.position.title"),
    "company": ("company.name", "profile.position.company.name"),
    "company_website": ("company.website", "profile.position.company.website"),
    "company_linkedin": ("company.linkedin_url", "profile.position.company.linkedin_url"),
    "linkedin_url": ("linkedin_url", "profile.linkedin_url"),
}

PROFILE_FIELDS: FieldTable = {
    "email": ("email", "emails.0.email", "emails.0"),
    "phone": ("phone", "phone_numbers.0", "phone_numbers.0.number"),
    "full_name": ("full_name", "fullName", "name"),
    "first_name": ("first_name", "firstName"),
    "last_name": ("last_name", "lastName"),
    "headline": ("headline", "occupation", "sub_title", "job_title"),
    "summary": ("summary", "about"),
    "industry": ("industry",),
    "location": ("location", "geo.full", "city"),
    "profile_url": ("linkedin_url", "url", "profile_url"),
}

EXPERIENCE_LIST_FIELDS: Tuple[str, ...] = ("experiences", "experience", "position_groups")
EDUCATION_LIST_FIELDS: Tuple[str, ...] = ("educations", "education")
SKILL_LIST_FIELDS: Tuple[str, ...] = ("skills",)

EXPERIENCE_FIELDS: FieldTable = {
    # position_groups entries nest the actual role under profile_positions
    "title": ("title", "position", "job_title", "profile_positions.0.title"),
    "company": ("company", "company_name", "companyName", "company.name", "profile_positions.0.company"),
    "company_url": ("company_linkedin_url", "company_url", "companyUrl", "company.url", "profile_positions.0.company_url"),
    "location": ("location", "profile_positions.0.location"),
    "date_range": ("date_range", "dateRange", "duration", _experience_span),
    "description": ("description", "profile_positions.0.description"),
}

EDUCATION_FIELDS: FieldTable = {
    "school": ("school", "school_name", "schoolName", "school.name"),
    "degree": ("degree", "degree_name", "degreeName"),
    "field_of_study": ("field_of_study", "fieldOfStudy", "field"),
    "date_range": ("date_range", "dateRange", _education_years),
}


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def lookup(raw: Any, path: str) -> Any:
    """Walk a dotted path through dicts and list indexes; None when any hop is missing."""
    current = raw
    for part in path.split("."):
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            idx = int(part)
            current = current[idx] if idx < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def first_present(raw: Mapping[str, Any], sources: Sequence[FieldSource]) -> Any:
    """First non-empty scalar among the ordered alternatives."""
    for source in sources:
        value = source(raw) if callable(source) else lookup(raw, source)
        if isinstance(value, (dict, list)):
            continue
        if not is_empty(value):
            return value.strip() if isinstance(value, str) else value
    return None


def map_fields(raw: Mapping[str, Any], table: FieldTable) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for target, sources in table.items():
        value = first_present(raw, sources)
        if value is not None:
            out[target] = value
    return out


def _coerce_contact_values(values: Dict[str, Any]) -> Dict[str, Any]:
    coerced: Dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if key == "company_founded_year":
            try:
                coerced[key] = int(value)
            except (TypeError, ValueError):
                continue
        else:
            coerced[key] = str(value)
    return coerced


def _first_list(raw: Mapping[str, Any], names: Sequence[str]) -> List[Any]:
    for name in names:
        value = raw.get(name)
        if isinstance(value, list):
            return value
    return []


def split_full_name(full_name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    parts = [p for p in (full_name or "").split() if p]
    if not parts:
        return None, None
    if len(parts) == 1:
        return parts[0], None
    return parts[0], " ".join(parts[1:])


def split_location(location: Optional[str]) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """'City, Region[, Country]' -> (city, region, country)."""
    segments = [s.strip() for s in (location or "").split(",") if s.strip()]
    city = segments[0] if len(segments) >= 1 else None
    state = segments[1] if len(segments) >= 2 else None
    country = segments[2] if len(segments) >= 3 else None
    return city, state, country


def merge(existing: Optional[CanonicalContact], incoming: Union[CanonicalContact, Mapping[str, Any]]) -> CanonicalContact:
    """Non-destructive merge of incoming into existing.

    A field is only overwritten when the incoming value is non-empty; among
    non-empty values the last one applied wins. Bookkeeping fields (status,
    score) come from existing, or the defaults on first creation.
    """
    if not isinstance(incoming, CanonicalContact):
        incoming = CanonicalContact.model_validate(_coerce_contact_values(dict(incoming)))
    base = existing.model_copy() if existing is not None else CanonicalContact()
    updates = {
        field: getattr(incoming, field)
        for field in CONTENT_FIELDS
        if not is_empty(getattr(incoming, field))
    }
    result = base.model_copy(update=updates)

    derived: Dict[str, Any] = {}
    if is_empty(result.name) and (result.first_name or result.last_name):
        derived["name"] = " ".join(p for p in (result.first_name, result.last_name) if p)
    if is_empty(result.company_domain) and result.company_website:
        domain = extract_apex_domain(result.company_website)
        if domain:
            derived["company_domain"] = domain
    return result.model_copy(update=derived) if derived else result


def from_bulk_record(raw: Mapping[str, Any]) -> CanonicalContact:
    """Map one bulk-search person record."""
    return merge(None, map_fields(raw, BULK_PERSON_FIELDS))


def from_enrichment(contact: Mapping[str, Any]) -> CanonicalContact:
    """Map the `contact` object of a finished enrichment result."""
    return merge(None, map_fields(contact, ENRICHMENT_CONTACT_FIELDS))


def to_experience(raw: Any) -> ExperienceEntry:
    if not isinstance(raw, Mapping):
        return ExperienceEntry()
    values = map_fields(raw, EXPERIENCE_FIELDS)
    return ExperienceEntry(**{k: str(v) for k, v in values.items()})


def to_education(raw: Any) -> EducationEntry:
    if not isinstance(raw, Mapping):
        return EducationEntry()
    values = map_fields(raw, EDUCATION_FIELDS)
    return EducationEntry(**{k: str(v) for k, v in values.items()})


def to_skill(raw: Any) -> str:
    if isinstance(raw, Mapping):
        value = first_present(raw, ("name", "skill", "title"))
        return str(value) if value is not None else ""
    return str(raw).strip() if raw is not None else ""


def to_profile_record(raw: Mapping[str, Any], identifier: str, requested_url: str) -> ProfileRecord:
    """Map a loosely-typed profile-fetch payload into a ProfileRecord."""
    values = {k: str(v) for k, v in map_fields(raw, PROFILE_FIELDS).items()}

    full_name = values.get("full_name")
    first_name = values.get("first_name")
    last_name = values.get("last_name")
    if not first_name and not last_name:
        first_name, last_name = split_full_name(full_name)
    if not full_name and (first_name or last_name):
        full_name = " ".join(p for p in (first_name, last_name) if p)

    location = values.get("location")
    city, state, country = split_location(location)

    experiences = [to_experience(e) for e in _first_list(raw, EXPERIENCE_LIST_FIELDS)]
    education = [to_education(e) for e in _first_list(raw, EDUCATION_LIST_FIELDS)]
    skills = [s for s in (to_skill(x) for x in _first_list(raw, SKILL_LIST_FIELDS)) if s]

    current = experiences[0] if experiences else None
    return ProfileRecord(
        identifier=identifier,
        profile_url=str(values.get("profile_url") or requested_url),
        first_name=first_name,
        last_name=last_name,
        full_name=full_name,
        email=values.get("email"),
        phone=values.get("phone"),
        headline=values.get("headline"),
        summary=values.get("summary"),
        industry=values.get("industry"),
        location=location,
        city=city,
        state=state,
        country=country,
        current_title=(current.title or None) if current else None,
        current_company=(current.company or None) if current else None,
        experiences=experiences,
        education=education,
        skills=skills,
    )


def from_profile(record: ProfileRecord) -> CanonicalContact:
    """Map a ProfileRecord; the current position wins over the headline for title."""
    current = record.experiences[0] if record.experiences else None
    return merge(None, {
        "first_name": record.first_name,
        "last_name": record.last_name,
        "name": record.full_name,
        "email": record.email,
        "phone": record.phone,
        "title": record.current_title or record.headline,
        "company": record.current_company,
        "company_industry": record.industry,
        "company_linkedin": (current.company_url or None) if current else None,
        "city": record.city,
        "state": record.state,
        "country": record.country,
        "linkedin_url": record.profile_url,
    })
