from conftest import authenticate
from modules.supporters.models import Supporter


def test_save_supporter(client, users):
    authenticate(client, users["organizer"].id)
    body = client.post("/supporter/save", json={
        "first_name": " Ada ", "last_name": "Lovelace", "email": "ada@example.org",
        "issue_climate": True, "interest_volunteer": 1,
    }).get_json()
    assert body["status"] == "success"
    supporter = Supporter.query.one()
    assert supporter.first_name == "Ada"
    assert supporter.issue_climate is True
    assert supporter.interest_volunteer is True
    assert supporter.display_name == "Ada Lovelace"


def test_phone_alone_is_enough(client, users):
    authenticate(client, users["organizer"].id)
    body = client.post("/supporter/save", json={"first_name": "Bo", "phone": "555-0100"}).get_json()
    assert body["status"] == "success"


def test_email_or_phone_required(client, users):
    authenticate(client, users["organizer"].id)
    body = client.post("/supporter/save", json={"first_name": "Nobody"}).get_json()
    assert body["status"] == "error"
    assert Supporter.query.count() == 0


def test_cannot_save_existing_id(client, users):
    authenticate(client, users["organizer"].id)
    body = client.post("/supporter/save", json={"id": 4, "email": "x@example.org"}).get_json()
    assert body["status"] == "error"


def test_supporter_save_requires_organizer(client, users):
    authenticate(client, users["attendance"].id)
    assert client.post("/supporter/save", json={"email": "x@example.org"}).status_code == 403
