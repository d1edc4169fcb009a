from datetime import date, timedelta

from conftest import authenticate
from extensions import db
from modules.activists.models import Activist
from modules.events.models import Attendance, Event


def _activist(name, **kwargs):
    a = Activist(name=name, **kwargs)
    db.session.add(a)
    db.session.commit()
    return a


def _event(name, day, *activists, event_type="Protest"):
    e = Event(name=name, date=day, event_type=event_type)
    db.session.add(e)
    db.session.flush()
    for a in activists:
        db.session.add(Attendance(event_id=e.id, activist_id=a.id))
    db.session.commit()
    return e


def test_save_creates_then_updates(client, users):
    authenticate(client, users["organizer"].id)
    created = client.post("/activist/save", json={"name": "Alice", "email": "alice@example.org"}).get_json()
    assert created["status"] == "success"
    activist_id = created["activist"]["id"]

    updated = client.post("/activist/save", json={
        "id": activist_id, "name": "Alice Smith", "email": "alice@example.org",
        "activist_level": "Organizer", "prospect_organizer": True,
    }).get_json()
    assert updated["activist"]["name"] == "Alice Smith"
    assert updated["activist"]["activist_level"] == "Organizer"


def test_save_rejects_duplicate_name(client, users):
    authenticate(client, users["organizer"].id)
    _activist("Alice")
    body = client.post("/activist/save", json={"name": "Alice"}).get_json()
    assert body["status"] == "error"


def test_save_rejects_unknown_level(client, users):
    authenticate(client, users["organizer"].id)
    body = client.post("/activist/save", json={"name": "Bob", "activist_level": "Boss"}).get_json()
    assert body["status"] == "error"


def test_hidden_activists_drop_out_of_lists(client, users):
    authenticate(client, users["organizer"].id)
    alice = _activist("Alice")
    _activist("Bob")

    assert client.post("/activist/hide", json={"id": alice.id}).get_json() == {"status": "success"}
    names = client.get("/activist_names/get").get_json()["activist_names"]
    assert names == ["Bob"]


def test_list_includes_event_stats(client, users):
    authenticate(client, users["organizer"].id)
    alice = _activist("Alice")
    _event("One", date(2024, 1, 1), alice)
    _event("Two", date(2024, 2, 1), alice)

    body = client.post("/activist/list", json={"view": "all_activists"}).get_json()
    row = body["activist_list"][0]
    assert row["first_event"] == "2024-01-01"
    assert row["last_event"] == "2024-02-01"
    assert row["total_events"] == 2


def test_leaderboard_only_counts_recent_events(client, users):
    authenticate(client, users["organizer"].id)
    recent, old = _activist("Recent"), _activist("Old")
    _event("Now", date.today() - timedelta(days=3), recent)
    _event("Then", date.today() - timedelta(days=90), old)

    body = client.post("/activist/list", json={"view": "leaderboard"}).get_json()
    assert [a["name"] for a in body["activist_list"]] == ["Recent"]


def test_list_rejects_unknown_view(client, users):
    authenticate(client, users["organizer"].id)
    body = client.post("/activist/list", json={"view": "everyone"}).get_json()
    assert body["status"] == "error"


def test_organizer_prospects_view(client, users):
    authenticate(client, users["organizer"].id)
    _activist("Prospect", prospect_organizer=True)
    _activist("Already", prospect_organizer=True, activist_level="Organizer")

    body = client.post("/activist/list", json={"view": "organizer_prospects"}).get_json()
    assert [a["name"] for a in body["activist_list"]] == ["Prospect"]


def test_list_range_pages_by_name(client, users):
    authenticate(client, users["organizer"].id)
    for name in ("A", "B", "C", "D"):
        _activist(name)

    body = client.post("/activist/list_range", json={"name": "B", "limit": 2, "order": 1}).get_json()
    assert [a["name"] for a in body["activist_range_list"]] == ["C", "D"]

    body = client.post("/activist/list_range", json={"name": "C", "limit": 5, "order": 2}).get_json()
    assert [a["name"] for a in body["activist_range_list"]] == ["B", "A"]


def test_merge_moves_attendance_and_hides_original(client, users):
    authenticate(client, users["organizer"].id)
    dup = _activist("Alice S", email="alice@example.org")
    target = _activist("Alice Smith")
    shared = _event("Shared", date(2024, 1, 1), dup, target)
    only_dup = _event("Only dup", date(2024, 1, 2), dup)

    body = client.post("/activist/merge", json={
        "current_activist_id": dup.id, "target_activist_name": "Alice Smith",
    }).get_json()
    assert body == {"status": "success"}

    db.session.expire_all()
    assert db.session.get(Activist, dup.id).hidden is True
    assert db.session.get(Activist, target.id).email == "alice@example.org"
    rows = Attendance.query.filter_by(activist_id=target.id).all()
    assert {r.event_id for r in rows} == {shared.id, only_dup.id}
    assert Attendance.query.filter_by(activist_id=dup.id).count() == 0


def test_list_pages_render(client, users):
    authenticate(client, users["organizer"].id)
    for url in ("/list_activists", "/leaderboard", "/community_prospects", "/circle_member_prospects"):
        assert client.get(url).status_code == 200
