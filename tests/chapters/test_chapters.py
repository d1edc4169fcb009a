from datetime import datetime, timedelta

import pytest

import modules.chapters.routes as chapter_routes
from conftest import authenticate
from extensions import db
from modules.chapters.models import Chapter, FacebookEvent, distance_miles, parse_fb_time


@pytest.fixture()
def chapters(app):
    rows = [
        Chapter(name="SF Bay Area", facebook_id=1001, region="North America", lat=37.77, lng=-122.42),
        Chapter(name="Los Angeles", facebook_id=1002, region="North America", lat=34.05, lng=-118.24),
        Chapter(name="London", facebook_id=1003, region="Europe", lat=51.51, lng=-0.13),
        Chapter(name="Berlin", facebook_id=1004, region="Europe", lat=52.52, lng=13.40),
    ]
    db.session.add_all(rows)
    db.session.commit()
    return rows


def _fb_event(event_id, page_id, start, **kwargs):
    e = FacebookEvent(id=event_id, page_id=page_id, name=f"Event {event_id}", start_time=start, **kwargs)
    db.session.add(e)
    db.session.commit()
    return e


def test_public_chapter_list_hides_tokens(client, chapters):
    chapters[0].token = "secret"
    db.session.commit()
    body = client.get("/chapters").get_json()
    assert len(body) == 4
    assert all("token" not in c for c in body)


def test_fb_pages_grouped_by_region(client, chapters):
    body = client.get("/fb_pages").get_json()
    assert [c["name"] for c in body["Europe"]] == ["Berlin", "London"]
    assert [c["name"] for c in body["North America"]] == ["Los Angeles", "SF Bay Area"]


def test_nearest_chapters(client, chapters):
    body = client.get("/fb_page/37.8,-122.3").get_json()
    assert [c["name"] for c in body] == ["SF Bay Area", "Los Angeles", "London"]
    assert body[0]["distance"] < body[1]["distance"]


def test_nearest_chapters_rejects_bad_coordinates(client, chapters):
    assert client.get("/fb_page/abc,1").status_code == 404
    assert client.get("/fb_page/1.2.3,1").status_code == 404


def test_zero_coordinates_use_ip_geolocation(app, client, chapters, monkeypatch):
    app.config["IPGEOLOCATION_KEY"] = "geo-key"
    seen = {}

    def fake_geolocate(ip, api_key):
        seen["ip"], seen["key"] = ip, api_key
        return 51.5, -0.1

    monkeypatch.setattr(chapter_routes, "geolocate", fake_geolocate)
    body = client.get("/fb_page/0,0", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}).get_json()
    assert seen == {"ip": "203.0.113.9", "key": "geo-key"}
    assert body[0]["name"] == "London"


def test_zero_coordinates_without_geolocation_key(client, chapters):
    body = client.get("/fb_page/0,0").get_json()
    assert body["status"] == "error"


def test_fb_events_for_page_and_online_fallback(client, chapters):
    soon = datetime.utcnow() + timedelta(days=2)
    _fb_event("e1", 1001, soon)
    _fb_event("e2", 1001, soon, is_canceled=True)
    _fb_event("online", 1003, soon, is_online=True)

    local = client.get("/fb_events/1001").get_json()
    assert local["local_events_found"] is True
    assert [e["id"] for e in local["events"]] == ["e1"]

    fallback = client.get("/fb_events/1004").get_json()
    assert fallback["local_events_found"] is False
    assert [e["id"] for e in fallback["events"]] == ["online"]


def test_fb_events_time_window(client, chapters):
    _fb_event("jan", 1001, datetime(2030, 1, 5, 18, 0))
    _fb_event("feb", 1001, datetime(2030, 2, 5, 18, 0))

    body = client.get("/fb_events/1001?start_time=2030-01-01&end_time=2030-01-31T23:59").get_json()
    assert [e["id"] for e in body["events"]] == ["jan"]

    bad = client.get("/fb_events/1001?start_time=01/01/2030").get_json()
    assert "format" in bad["error"]


def test_admin_chapter_crud(client, users, chapters):
    authenticate(client, users["admin"].id)
    resp = client.post("/chapter/insert", data={"name": "Paris", "region": "Europe", "lat": "48.85",
                                                "lng": "2.35", "facebook-id": "1005"})
    assert resp.status_code == 302
    paris = Chapter.query.filter_by(name="Paris").one()
    assert paris.facebook_id == 1005

    client.post("/chapter/update", data={"chapter-id": str(paris.chapter_id), "name": "Paris FR",
                                         "region": "Europe", "lat": "48.85", "lng": "2.35"})
    db.session.expire_all()
    assert db.session.get(Chapter, paris.chapter_id).name == "Paris FR"

    client.post("/chapter/delete", data={"id": str(paris.chapter_id)})
    assert db.session.get(Chapter, paris.chapter_id) is None


def test_chapter_admin_requires_admin(client, users, chapters):
    authenticate(client, users["organizer"].id)
    assert client.post("/chapter/insert", data={"name": "Nope"}).status_code == 403
    assert client.get(f"/chapter/edit?id={chapters[0].chapter_id}").headers["Location"].endswith("/403")


def test_parse_fb_time_converts_to_utc():
    assert parse_fb_time("2024-05-01T19:00:00-0700") == datetime(2024, 5, 2, 2, 0)
    assert parse_fb_time(None) is None


def test_distance_is_symmetric():
    assert distance_miles(0, 0, 0, 1) == pytest.approx(distance_miles(0, 1, 0, 0))
    assert distance_miles(0, 0, 0, 1) == pytest.approx(69.1, abs=0.1)


@pytest.mark.parametrize("error", [
    chapter_routes.requests.ConnectionError("down"),
    KeyError("latitude"),
    ValueError("not a number"),
])
def test_geolocation_failure_returns_error_envelope(app, client, chapters, monkeypatch, error):
    app.config["IPGEOLOCATION_KEY"] = "geo-key"

    def failing_geolocate(ip, api_key):
        raise error

    monkeypatch.setattr(chapter_routes, "geolocate", failing_geolocate)
    resp = client.get("/fb_page/0,0")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "error"
