from conftest import authenticate
from extensions import db
from models import ADBUser


def test_admin_creates_user_with_roles(client, users):
    authenticate(client, users["admin"].id)
    body = client.post("/user/save", json={
        "email": "new@example.org", "name": "New", "roles": ["organizer", "attendance"],
    }).get_json()
    assert body["status"] == "success"
    assert body["user"]["roles"] == ["attendance", "organizer"]


def test_unknown_role_is_rejected(client, users):
    authenticate(client, users["admin"].id)
    body = client.post("/user/save", json={"email": "x@example.org", "roles": ["owner"]}).get_json()
    assert body["status"] == "error"


def test_duplicate_email_is_rejected(client, users):
    authenticate(client, users["admin"].id)
    body = client.post("/user/save", json={"email": "organizer@example.org"}).get_json()
    assert body["status"] == "error"


def test_update_replaces_roles(client, users):
    authenticate(client, users["admin"].id)
    target = users["organizer"]
    body = client.post("/user/save", json={
        "id": target.id, "email": target.email, "name": "Org", "roles": ["attendance"],
    }).get_json()
    assert body["user"]["roles"] == ["attendance"]


def test_disabling_a_user_locks_them_out(client, users):
    organizer = users["organizer"]
    authenticate(client, users["admin"].id)
    client.post("/user/save", json={"id": organizer.id, "email": organizer.email, "disabled": True,
                                    "roles": ["organizer"]})

    authenticate(client, organizer.id)
    assert client.get("/activist/list_basic").status_code == 400


def test_role_add_and_remove(client, users):
    authenticate(client, users["admin"].id)
    uid = users["attendance"].id

    client.post("/users-roles/add", json={"user_id": uid, "role": "organizer"})
    db.session.expire_all()
    assert sorted(db.session.get(ADBUser, uid).role_names) == ["attendance", "organizer"]

    client.post("/users-roles/remove", json={"user_id": uid, "role": "attendance"})
    db.session.expire_all()
    assert db.session.get(ADBUser, uid).role_names == ["organizer"]


def test_delete_user(client, users):
    authenticate(client, users["admin"].id)
    uid = users["norole"].id
    body = client.post("/user/delete", json={"id": uid}).get_json()
    assert body == {"status": "success", "userID": uid}
    assert db.session.get(ADBUser, uid) is None


def test_user_list_is_admin_only(client, users):
    authenticate(client, users["organizer"].id)
    assert client.get("/user/list").status_code == 403
    authenticate(client, users["admin"].id)
    emails = [u["email"] for u in client.get("/user/list").get_json()]
    assert "disabled@example.org" in emails
