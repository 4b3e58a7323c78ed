from __future__ import annotations

import threading
from typing import Any, List

import pytest
import requests

from models import EnrichmentJob
from services.async_enrichment import AsyncEnrichmentClient
from services.errors import ConfigurationError, OperationCancelled, ProviderError


PROFILE = "https://www.linkedin.com/in/jane-doe"


class _Resp:
    def __init__(self, status_code: int, payload: Any = None, text: str = ""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _Session:
    """Submit answers once; every GET pops the next scripted poll answer."""

    def __init__(self, polls: List[Any], submit: Any = None):
        self.submit_resp = submit if submit is not None else _Resp(200, {"enrichment_id": "job-1"})
        self.polls = list(polls)
        self.posts: List[dict] = []
        self.gets: List[str] = []

    def post(self, url, *, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers})
        return self.submit_resp

    def get(self, url, *, params=None, headers=None, timeout=None):
        self.gets.append(url)
        answer = self.polls.pop(0) if self.polls else _Resp(200, {"status": "IN_PROGRESS"})
        if isinstance(answer, Exception):
            raise answer
        return answer


def _finished(contact):
    return _Resp(200, {"status": "FINISHED", "datas": [{"contact": contact}]})


def _client(make_settings, session, **kw):
    sleeps: List[float] = []
    client = AsyncEnrichmentClient(
        settings=make_settings(enrich_poll_interval_seconds=3.0, **kw),
        session=session,
        sleep=sleeps.append,
    )
    return client, sleeps


def test_never_finishing_job_polls_exactly_budget(make_settings):
    session = _Session(polls=[])
    client, sleeps = _client(make_settings, session)

    assert client.enrich(PROFILE) is None
    assert len(session.gets) == 20
    assert sleeps == [3.0] * 20


def test_finished_at_third_attempt_short_circuits(make_settings):
    session = _Session(polls=[
        _Resp(200, {"status": "IN_PROGRESS"}),
        _Resp(200, {"status": "IN_PROGRESS"}),
        _finished({"most_probable_email": "jane@acme.com", "emails": [{"email": "other@acme.com"}]}),
    ])
    client, sleeps = _client(make_settings, session)

    assert client.enrich(PROFILE) == "jane@acme.com"
    assert len(session.gets) == 3
    assert len(sleeps) == 3


def test_submit_payload_and_auth(make_settings):
    session = _Session(polls=[_finished({"most_probable_email": "a@b.co"})])
    client, _ = _client(make_settings, session)
    client.enrich(PROFILE)

    post = session.posts[0]
    assert post["url"].endswith("/contact/enrich/bulk")
    assert post["headers"]["Authorization"] == "Bearer fullenrich-test"
    assert post["json"]["datas"] == [{"linkedin_url": PROFILE, "enrich_fields": ["contact.emails"]}]
    assert session.gets[0].endswith("/contact/enrich/bulk/job-1")


def test_falls_back_to_first_listed_email(make_settings):
    session = _Session(polls=[_finished({"emails": [{"email": "first@acme.com"}, {"email": "second@acme.com"}]})])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) == "first@acme.com"


def test_finished_without_email_returns_none(make_settings):
    session = _Session(polls=[_finished({"emails": []})])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) is None
    assert len(session.gets) == 1


@pytest.mark.parametrize("status", ["FAILED", "ERROR"])
def test_failed_job_stops_polling(make_settings, status):
    session = _Session(polls=[_Resp(200, {"status": status})])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) is None
    assert len(session.gets) == 1


def test_transient_poll_failures_consume_attempts(make_settings):
    session = _Session(polls=[
        _Resp(500, None, text="oops"),
        requests.ConnectionError("reset"),
        _Resp(200, ValueError("not json")),
        _finished({"most_probable_email": "late@acme.com"}),
    ])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) == "late@acme.com"
    assert len(session.gets) == 4


def test_finished_with_no_records_keeps_polling(make_settings):
    session = _Session(polls=[
        _Resp(200, {"status": "FINISHED", "datas": []}),
        _finished({"most_probable_email": "x@y.io"}),
    ])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) == "x@y.io"


def test_missing_enrichment_id_skips_polling(make_settings):
    session = _Session(polls=[], submit=_Resp(200, {}))
    client, sleeps = _client(make_settings, session)
    assert client.enrich(PROFILE) is None
    assert session.gets == []
    assert sleeps == []


def test_missing_key_fails_before_io(make_settings):
    session = _Session(polls=[])
    client, _ = _client(make_settings, session, fullenrich_api_key=None)
    with pytest.raises(ConfigurationError):
        client.enrich(PROFILE)
    assert session.posts == []


def test_submit_non_2xx_raises(make_settings):
    session = _Session(polls=[], submit=_Resp(401, None, text="unauthorized"))
    client, _ = _client(make_settings, session)
    with pytest.raises(ProviderError) as exc:
        client.enrich(PROFILE)
    assert exc.value.status_code == 401
    assert session.gets == []


def test_cancel_interrupts_wait(make_settings):
    session = _Session(polls=[])
    client = AsyncEnrichmentClient(settings=make_settings(), session=session)
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(OperationCancelled):
        client.enrich(PROFILE, cancel=cancel)
    assert session.gets == []


def test_wall_clock_deadline_stops_early(make_settings):
    ticks = iter(range(0, 1000, 10))
    session = _Session(polls=[])
    client = AsyncEnrichmentClient(
        settings=make_settings(),
        session=session,
        sleep=lambda s: None,
        monotonic=lambda: float(next(ticks)),
    )
    job = EnrichmentJob(job_id="job-9", profile_reference=PROFILE)
    assert client.poll(job, deadline_seconds=25) is None
    # start=0, checks at 10 and 20 pass, 30 stops
    assert len(session.gets) == 2


def test_enrich_contact_keeps_all_result_fields(make_settings):
    session = _Session(polls=[_finished({
        "most_probable_email": "jane@acme.com",
        "most_probable_phone": "+1 555 0100",
        "job_title": "CTO",
    })])
    client, _ = _client(make_settings, session)
    contact = client.enrich_contact(PROFILE)
    assert contact is not None
    assert (contact.email, contact.phone, contact.title) == ("jane@acme.com", "+1 555 0100", "CTO")


def test_malformed_poll_bodies_are_retried(make_settings):
    session = _Session(polls=[
        _Resp(200, ["gateway hiccup"]),
        _Resp(200, {"status": "FINISHED", "datas": ["junk"]}),
        _Resp(200, {"status": "IN_PROGRESS", "datas": "pending"}),
        _finished({"most_probable_email": "a@b.co"}),
    ])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) == "a@b.co"
    assert len(session.gets) == 4


def test_finished_record_without_contact_object(make_settings):
    session = _Session(polls=[_Resp(200, {"status": "FINISHED", "datas": [{"contact": "n/a"}]})])
    client, _ = _client(make_settings, session)
    assert client.enrich(PROFILE) is None
    assert client.contact_from_result({"contact": "n/a"}).email is None


@pytest.mark.parametrize("payload", [ValueError("not json"), ["job-1"], "job-1"])
def test_submit_unreadable_body_raises(make_settings, payload):
    session = _Session(polls=[], submit=_Resp(200, payload, text="<html>"))
    client, _ = _client(make_settings, session)
    with pytest.raises(ProviderError) as exc:
        client.enrich(PROFILE)
    assert exc.value.status_code == 200
    assert session.gets == []
