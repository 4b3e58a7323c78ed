from __future__ import annotations

import threading
from typing import List

import pytest

from db.repos.leads_repo import LeadsRepo
from models import CanonicalContact, Pagination, SearchFilter, SearchResult
from pipelines.enrich_contact import enrich_contact
from pipelines.fetch_profile import fetch_profiles
from pipelines.import_contacts import import_contacts
from pipelines.runner import RunContext
from pipelines.steps import EnrichEmails
from services.errors import ProviderError, ValidationError
from services.profile_fetch import ProfileFetchClient


class _StubSearch:
    def __init__(self, records):
        self.records = records
        self.queries: List[SearchFilter] = []

    def search(self, query):
        self.queries.append(query)
        return SearchResult(
            records=self.records,
            pagination=Pagination(page=query.page, per_page=query.per_page, total_entries=len(self.records), total_pages=1),
        )


class _StubEnrich:
    def __init__(self, settings, emails):
        self.settings = settings
        self.emails = emails
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def enrich_contact(self, profile_reference, cancel=None, deadline_seconds=None):
        with self._lock:
            self.calls.append(profile_reference)
        email = self.emails.get(profile_reference)
        if isinstance(email, Exception):
            raise email
        return CanonicalContact(email=email, phone="+1 555 0100") if email else None


class _StubProfiles(ProfileFetchClient):
    def __init__(self, settings, payloads):
        super().__init__(settings=settings, session=None)
        self.payloads = payloads
        self.fetched: List[str] = []

    def fetch_raw(self, url):
        self.fetched.append(url)
        payload = self.payloads[url]
        if isinstance(payload, Exception):
            raise payload
        return payload


RECORDS = [
    {"first_name": "Jane", "last_name": "Doe", "linkedin_url": "http://www.linkedin.com/in/Jane-Doe/", "organization": {"name": "Acme", "primary_domain": "acme.com"}},
    {"first_name": "Bob", "last_name": "Roe", "email": "bob@initech.com", "linkedin_url": "https://linkedin.com/in/bob-roe"},
    {"first_name": "No", "last_name": "Key"},
]


def test_import_contacts_maps_enriches_and_persists(conn, make_settings):
    settings = make_settings()
    search = _StubSearch(RECORDS)
    enrich = _StubEnrich(settings, {"http://www.linkedin.com/in/Jane-Doe/": "jane@acme.com"})
    repo = LeadsRepo(conn)

    ctx = import_contacts(
        SearchFilter(person_titles=["CTO"], per_page=3),
        search_client=search,
        enrich_client=enrich,
        repo=repo,
        enrich_emails=True,
    )

    assert ctx.meta["records_found"] == 3
    assert ctx.meta["emails_requested"] == 1
    assert ctx.meta["emails_found"] == 1
    assert ctx.meta["leads_created"] == 2
    # Bob already had an email and is not looked up again
    assert enrich.calls == ["http://www.linkedin.com/in/Jane-Doe/"]

    lead_id, jane = repo.find_by_linkedin_url("https://linkedin.com/in/jane-doe")
    assert jane.email == "jane@acme.com"
    assert jane.company == "Acme"
    assert jane.phone == "+1 555 0100"


def test_import_twice_updates_instead_of_duplicating(conn, make_settings):
    repo = LeadsRepo(conn)
    import_contacts(SearchFilter(), search_client=_StubSearch(RECORDS[:2]), repo=repo)
    ctx = import_contacts(SearchFilter(), search_client=_StubSearch(RECORDS[:2]), repo=repo)
    assert ctx.meta["leads_created"] == 0
    assert ctx.meta["leads_updated"] == 2
    assert len(repo.list_recent(limit=10)) == 2


def test_enrich_step_tolerates_provider_errors(make_settings):
    settings = make_settings()
    enrich = _StubEnrich(settings, {
        "https://linkedin.com/in/a": ProviderError("FullEnrich", 500, "boom"),
        "https://linkedin.com/in/b": "b@x.io",
    })
    ctx = RunContext(contacts=[
        CanonicalContact(linkedin_url="https://linkedin.com/in/a", title="Keep me"),
        CanonicalContact(linkedin_url="https://linkedin.com/in/b"),
    ])

    out = EnrichEmails(enrich, concurrency=2).run(ctx)

    assert out.contacts[0].title == "Keep me" and out.contacts[0].email is None
    assert out.contacts[1].email == "b@x.io"
    assert out.meta["emails_found"] == 1


def test_enrich_contact_merges_into_stored_lead(conn, make_settings):
    settings = make_settings()
    repo = LeadsRepo(conn)
    lead_id = repo.create(CanonicalContact(linkedin_url="https://linkedin.com/in/jane-doe", title="CTO", status="qualified"))
    enrich = _StubEnrich(settings, {"https://linkedin.com/in/jane-doe": "jane@acme.com"})

    ctx = enrich_contact("https://www.linkedin.com/in/jane-doe/", client=enrich, repo=repo)

    assert ctx.meta["leads_updated"] == 1
    lead = repo.get(lead_id)
    assert (lead.email, lead.title, lead.status) == ("jane@acme.com", "CTO", "qualified")


def test_enrich_contact_rejects_bad_url(make_settings):
    enrich = _StubEnrich(make_settings(), {})
    with pytest.raises(ValidationError):
        enrich_contact("https://example.com/jane", client=enrich)
    assert enrich.calls == []


def test_fetch_profiles_validates_all_urls_first(make_settings):
    client = _StubProfiles(make_settings(), {"https://linkedin.com/in/ok": {"full_name": "Ok Person"}})
    with pytest.raises(ValidationError):
        fetch_profiles(["https://linkedin.com/in/ok", "not a url"], client=client)
    assert client.fetched == []


def test_fetch_profiles_skips_provider_errors(conn, make_settings):
    client = _StubProfiles(make_settings(), {
        "https://linkedin.com/in/ok": {"full_name": "Ok Person", "location": "Oslo, Norway"},
        "https://linkedin.com/in/gone": ProviderError("RapidAPI", 404, "not found"),
    })
    repo = LeadsRepo(conn)

    ctx = fetch_profiles(["https://linkedin.com/in/ok", "https://linkedin.com/in/gone"], client=client, repo=repo)

    assert ctx.meta["profiles_fetched"] == 1
    assert ctx.meta["profiles_failed"] == 1
    _, lead = repo.find_by_linkedin_url("https://linkedin.com/in/ok")
    assert (lead.first_name, lead.last_name, lead.city) == ("Ok", "Person", "Oslo")
