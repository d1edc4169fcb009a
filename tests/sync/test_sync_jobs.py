from datetime import date, timedelta

import pytest
import requests

import modules.sync as sync
import modules.sync.facebook as facebook
import modules.sync.mailing_list as mailing_list
import modules.sync.survey_mailer as survey_mailer
from extensions import db
from mailer import MailError
from models import SYNC_STATUS_ERROR, SYNC_STATUS_SYNCED
from modules.activists.models import Activist
from modules.chapters.models import Chapter, FacebookEvent
from modules.events.models import Attendance, Event
from modules.groups.models import WorkingGroup, WorkingGroupMember
from modules.sync.models import EventSurveySync, WorkingGroupListSync
from modules.sync.scheduler import SyncJob, SyncJobConfig


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {}

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code}")


# ---------- scheduler ----------
class ExplodingJob(SyncJob):
    config = SyncJobConfig(name="exploding", interval_seconds=1)

    def run_once(self):
        raise RuntimeError("boom")


def test_failed_pass_is_contained(app):
    assert ExplodingJob(app).run_pass() is False


def test_start_sync_jobs_respects_switch(app):
    app.config["RUN_SYNC_JOBS"] = False
    assert sync.start_sync_jobs(app) == []


def test_unconfigured_jobs_are_not_started(app, monkeypatch):
    started = []
    monkeypatch.setattr(SyncJob, "start", lambda self: started.append(self.name))
    app.config.update(RUN_SYNC_JOBS=True, SENDY_API_KEY="", MAILING_LIST_ACCESS_TOKEN="",
                      AWS_ACCESS_KEY="", AWS_SECRET_KEY="")

    jobs = sync.start_sync_jobs(app)
    assert started == ["facebook-events"]
    assert [j.name for j in jobs] == ["facebook-events"]


# ---------- facebook ----------
def _graph_event(event_id, **extra):
    event = {"id": event_id, "name": f"Event {event_id}", "start_time": "2030-05-01T19:00:00-0700"}
    event.update(extra)
    return event


def test_facebook_sync_upserts_events(app, monkeypatch):
    db.session.add_all([
        Chapter(name="SF", facebook_id=1001, token="tok-sf"),
        Chapter(name="No token", facebook_id=1002, token=""),
    ])
    db.session.commit()
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params["access_token"]))
        return FakeResponse(payload={"data": [
            _graph_event("e1", place={"name": "Park", "location": {"city": "SF", "latitude": 37.7}}),
            _graph_event("e2", is_online=True),
        ]})

    monkeypatch.setattr(facebook.requests, "get", fake_get)
    assert facebook.FacebookSyncJob(app).run_pass() is True
    assert calls == [("https://graph.facebook.com/v18.0/1001/events", "tok-sf")]

    e1 = db.session.get(FacebookEvent, "e1")
    assert e1.location_city == "SF"
    assert e1.page_id == 1001
    assert db.session.get(FacebookEvent, "e2").is_online is True
    assert Chapter.query.filter_by(name="SF").one().last_update is not None

    # second pass replaces rather than duplicates
    facebook.FacebookSyncJob(app).run_pass()
    assert FacebookEvent.query.count() == 2


def test_facebook_failure_skips_chapter(app, monkeypatch):
    db.session.add_all([
        Chapter(name="Broken", facebook_id=1, token="a"),
        Chapter(name="Fine", facebook_id=2, token="b"),
    ])
    db.session.commit()

    def fake_get(url, params=None, timeout=None):
        if "/1/" in url:
            return FakeResponse(status_code=400)
        return FakeResponse(payload={"data": [_graph_event("ok")]})

    monkeypatch.setattr(facebook.requests, "get", fake_get)
    assert facebook.FacebookSyncJob(app).run_pass() is True
    assert [e.id for e in FacebookEvent.query.all()] == ["ok"]


# ---------- survey mailer ----------
@pytest.fixture()
def survey_config(app):
    app.config.update(SURVEY_FROM_EMAIL="surveys@example.org", SURVEY_MISSING_EMAIL="missing@example.org",
                      SURVEY_URL="https://survey.example.org/form")


def _event(name, days_ago, event_type="Protest", attendees=()):
    event = Event(name=name, date=date.today() - timedelta(days=days_ago), event_type=event_type)
    db.session.add(event)
    db.session.flush()
    for activist in attendees:
        db.session.add(Attendance(event_id=event.id, activist_id=activist.id))
    db.session.commit()
    return event


def test_survey_event_selection(app):
    recent = _event("Recent", 2)
    _event("Today", 0)
    _event("Old", 10)
    _event("Meeting", 2, event_type="Meeting")
    sent = _event("Already", 3)
    db.session.add(EventSurveySync(event_id=sent.id, survey_target="x", sync_status=SYNC_STATUS_SYNCED))
    db.session.commit()

    assert [e.name for e in survey_mailer.pending_survey_events()] == [recent.name]


def test_survey_emails_attendees_and_reports_missing(app, survey_config, monkeypatch):
    alice = Activist(name="Alice", email="alice@example.org")
    bob = Activist(name="Bob")
    db.session.add_all([alice, bob])
    db.session.commit()
    event = _event("Outreach", 2, event_type="Outreach", attendees=[alice, bob])

    sent = []
    monkeypatch.setattr(survey_mailer, "send_email",
                        lambda frm, to, subject, body: sent.append((frm, to, subject, body)))
    survey_mailer.SurveyMailerJob(app).run_pass()

    assert [s[1] for s in sent] == [["alice@example.org"], ["missing@example.org"]]
    assert "https://survey.example.org/form?event=Outreach" in sent[0][3]
    assert "Bob" in sent[1][3]
    rows = EventSurveySync.query.filter_by(event_id=event.id).all()
    assert [r.sync_status for r in rows] == [SYNC_STATUS_SYNCED]


def test_survey_failure_is_recorded_as_error(app, survey_config, monkeypatch):
    alice = Activist(name="Alice", email="alice@example.org")
    db.session.add(alice)
    db.session.commit()
    event = _event("Outreach", 2, attendees=[alice])

    def failing(*args, **kwargs):
        raise MailError("throttled")

    monkeypatch.setattr(survey_mailer, "send_email", failing)
    survey_mailer.SurveyMailerJob(app).run_pass()
    statuses = [r.sync_status for r in EventSurveySync.query.filter_by(event_id=event.id).all()]
    assert statuses == [SYNC_STATUS_ERROR]
    # still pending for the next pass
    assert [e.id for e in survey_mailer.pending_survey_events()] == [event.id]


# ---------- mailing lists ----------
def _working_group(email, *activists):
    wg = WorkingGroup(name=f"WG {email}", group_email=email)
    db.session.add(wg)
    db.session.flush()
    for activist in activists:
        db.session.add(WorkingGroupMember(working_group_id=wg.id, activist_id=activist.id))
    db.session.commit()
    return wg


@pytest.mark.parametrize("status_code, expected", [
    (200, SYNC_STATUS_SYNCED),
    (409, SYNC_STATUS_SYNCED),
    (403, SYNC_STATUS_ERROR),
])
def test_mailing_list_sync_statuses(app, monkeypatch, status_code, expected):
    app.config["MAILING_LIST_ACCESS_TOKEN"] = "token"
    alice = Activist(name="Alice", email="alice@example.org")
    no_email = Activist(name="Bob")
    db.session.add_all([alice, no_email])
    db.session.commit()
    _working_group("tech@example.org", alice, no_email)

    posted = []

    def fake_post(url, headers=None, json=None, timeout=None):
        posted.append((url, json["email"]))
        return FakeResponse(status_code=status_code)

    monkeypatch.setattr(mailing_list.requests, "post", fake_post)
    mailing_list.MailingListSyncJob(app).run_pass()

    assert posted == [(mailing_list.DIRECTORY_URL.format(group="tech@example.org"), "alice@example.org")]
    assert [r.sync_status for r in WorkingGroupListSync.query.all()] == [expected]


def test_mailing_list_members_synced_once(app, monkeypatch):
    app.config["MAILING_LIST_ACCESS_TOKEN"] = "token"
    alice = Activist(name="Alice", email="alice@example.org")
    db.session.add(alice)
    db.session.commit()
    _working_group("tech@example.org", alice)

    posted = []
    monkeypatch.setattr(mailing_list.requests, "post",
                        lambda url, **kw: posted.append(url) or FakeResponse())
    mailing_list.MailingListSyncJob(app).run_pass()
    mailing_list.MailingListSyncJob(app).run_pass()
    assert len(posted) == 1


def test_survey_email_escapes_names(app, survey_config, monkeypatch):
    alice = Activist(name="<b>Alice</b>", email="alice@example.org")
    nomail = Activist(name="Bob & <i>Co</i>")
    db.session.add_all([alice, nomail])
    db.session.commit()
    _event("<script>x</script>", 2, attendees=[alice, nomail])

    sent = []
    monkeypatch.setattr(survey_mailer, "send_email",
                        lambda frm, to, subject, body: sent.append(body))
    survey_mailer.SurveyMailerJob(app).run_pass()

    assert "&lt;b&gt;Alice&lt;/b&gt;" in sent[0]
    assert "<script>" not in sent[0]
    assert "Bob &amp; &lt;i&gt;Co&lt;/i&gt;" in sent[1]
