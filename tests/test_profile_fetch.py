from __future__ import annotations

from typing import Any, List

import pytest

from services.errors import ConfigurationError, ProviderError, ValidationError
from services.profile_fetch import ProfileFetchClient


class _Resp:
    def __init__(self, status_code: int, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload


class _Session:
    def __init__(self, resp: _Resp):
        self.resp = resp
        self.calls: List[dict] = []

    def get(self, url, *, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        return self.resp

    def post(self, url, *, json=None, headers=None, timeout=None):
        raise AssertionError("profile fetch never POSTs")


JANE = {
    "full_name": "Jane Doe",
    "headline": "Building things",
    "location": "San Francisco, California, United States",
    "experiences": [
        {"title": "CTO", "company": "Acme", "company_linkedin_url": "https://linkedin.com/company/acme"},
        {"title": "Engineer", "company": "Initech"},
    ],
    "education": [{"school": "MIT", "degree": "BSc"}],
    "skills": ["Python", {"name": "Leadership"}],
}


@pytest.mark.parametrize("url,expected", [
    ("https://www.linkedin.com/in/jane-doe", "jane-doe"),
    ("https://linkedin.com/in/jane-doe/", "jane-doe"),
    ("linkedin.com/in/jane-doe?trk=abc#top", "jane-doe"),
    ("https://de.linkedin.com/in/jane-doe", "jane-doe"),
    ("https://www.linkedin.com/pub/jane-doe", "jane-doe"),
    ("https://www.linkedin.com/in/jane-doe/en", "jane-doe"),
    ("https://www.linkedin.com/in/jane-doe/details/experience/", "jane-doe"),
    ("https://www.linkedin.com/pub/john-doe/12/345/678", "john-doe"),
    ("https://m.linkedin.com/in/jane-doe", "jane-doe"),
])
def test_extract_identifier(url, expected):
    assert ProfileFetchClient.extract_identifier(url) == expected


@pytest.mark.parametrize("url", [
    "https://example.com/in/jane",
    "https://www.linkedin.com/company/acme",
    "",
])
def test_invalid_url_makes_no_network_call(make_settings, url):
    session = _Session(_Resp(200, JANE))
    # No credential either: validation must come first
    client = ProfileFetchClient(settings=make_settings(rapidapi_key=None), session=session)
    with pytest.raises(ValidationError):
        client.fetch(url)
    assert session.calls == []


def test_fetch_maps_jane_doe(make_settings):
    session = _Session(_Resp(200, JANE))
    client = ProfileFetchClient(settings=make_settings(), session=session)

    contact = client.fetch("https://www.linkedin.com/in/jane-doe")

    assert (contact.first_name, contact.last_name) == ("Jane", "Doe")
    assert (contact.city, contact.state, contact.country) == ("San Francisco", "California", "United States")
    assert contact.title == "CTO"
    assert contact.company == "Acme"
    assert contact.company_linkedin == "https://linkedin.com/company/acme"
    assert contact.status == "new" and contact.score == 0

    call = session.calls[0]
    assert call["url"] == "https://fresh-linkedin-profile-data.p.rapidapi.com/enrich-lead"
    assert call["params"] == {"linkedin_url": "https://www.linkedin.com/in/jane-doe"}
    assert call["headers"]["x-rapidapi-key"] == "rapidapi-test"


def test_fetch_profile_keeps_nested_lists(make_settings):
    client = ProfileFetchClient(settings=make_settings(), session=_Session(_Resp(200, {"data": JANE})))
    record = client.fetch_profile("https://www.linkedin.com/in/jane-doe")
    assert record.identifier == "jane-doe"
    assert [e.company for e in record.experiences] == ["Acme", "Initech"]
    assert record.education[0].school == "MIT"
    assert record.skills == ["Python", "Leadership"]


def test_headline_used_without_experiences(make_settings):
    payload = {"firstName": "Ann", "lastName": "Lee", "occupation": "Founder at Foo", "location": "Berlin, Germany"}
    client = ProfileFetchClient(settings=make_settings(), session=_Session(_Resp(200, payload)))
    contact = client.fetch("https://www.linkedin.com/in/ann-lee")
    assert contact.title == "Founder at Foo"
    assert (contact.city, contact.state, contact.country) == ("Berlin", "Germany", None)
    assert contact.name == "Ann Lee"


def test_missing_key_raises_configuration_error(make_settings):
    session = _Session(_Resp(200, JANE))
    client = ProfileFetchClient(settings=make_settings(rapidapi_key=None), session=session)
    with pytest.raises(ConfigurationError):
        client.fetch("https://www.linkedin.com/in/jane-doe")
    assert session.calls == []


def test_non_2xx_raises_provider_error(make_settings):
    client = ProfileFetchClient(settings=make_settings(), session=_Session(_Resp(404, None, text="not found")))
    with pytest.raises(ProviderError) as exc:
        client.fetch("https://www.linkedin.com/in/jane-doe")
    assert exc.value.status_code == 404


def test_contact_details_and_industry_carried(make_settings):
    payload = {
        "full_name": "Jane Doe",
        "email": "jane@acme.com",
        "phone_numbers": ["+1 555 0100"],
        "industry": "Computer Software",
    }
    client = ProfileFetchClient(settings=make_settings(), session=_Session(_Resp(200, payload)))

    record = client.fetch_profile("https://www.linkedin.com/in/jane-doe")
    assert (record.email, record.phone) == ("jane@acme.com", "+1 555 0100")

    contact = client.fetch("https://www.linkedin.com/in/jane-doe")
    assert (contact.email, contact.phone) == ("jane@acme.com", "+1 555 0100")
    assert contact.company_industry == "Computer Software"


def test_plain_phone_field_preferred(make_settings):
    payload = {"full_name": "Jane Doe", "email": "jane@acme.com", "phone": "+1 555", "phone_numbers": ["+1 999"]}
    client = ProfileFetchClient(settings=make_settings(), session=_Session(_Resp(200, payload)))
    contact = client.fetch("https://www.linkedin.com/in/jane-doe")
    assert (contact.email, contact.phone) == ("jane@acme.com", "+1 555")


def test_position_groups_supply_current_role(make_settings):
    payload = {
        "full_name": "Jane Doe",
        "headline": "Builder",
        "position_groups": [{
            "company": {"name": "Acme", "url": "https://linkedin.com/company/acme"},
            "profile_positions": [{
                "title": "CTO",
                "company": "Acme",
                "location": "Remote",
                "start_date": {"year": 2021, "month": 3},
            }],
        }],
    }
    client = ProfileFetchClient(settings=make_settings(), session=_Session(_Resp(200, payload)))

    record = client.fetch_profile("https://www.linkedin.com/in/jane-doe")
    current = record.experiences[0]
    assert (current.title, current.company, current.location) == ("CTO", "Acme", "Remote")
    assert current.date_range == "03/2021 - Present"

    contact = client.fetch("https://www.linkedin.com/in/jane-doe")
    assert (contact.title, contact.company) == ("CTO", "Acme")
