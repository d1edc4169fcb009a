# tests/conftest.py
import os
import sys
import pytest
from flask import g

# make `from app import create_app` work when running from the repo root
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app import create_app
from extensions import db
from models import ADBUser, UserRole, ROLE_ADMIN, ROLE_ATTENDANCE, ROLE_ORGANIZER


@pytest.fixture()
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret",
        "DEV_AUTH_BYPASS": False,
        "IS_PROD": False,
        "RUN_SYNC_JOBS": False,
        "GOOGLE_CLIENT_ID": "test-client-id",
        "DISCORD_SECRET": "bot-secret",
        "URL_PATH": "http://adb.test",
        "SENDY_URL": "https://sendy.test",
        "SENDY_API_KEY": "sendy-key",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


def make_user(email, roles, disabled=False, name=""):
    user = ADBUser(email=email, name=name or email.split("@")[0], disabled=disabled)
    user.roles = [UserRole(role=r) for r in roles]
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def users(app):
    return {
        "admin": make_user("admin@example.org", [ROLE_ADMIN]),
        "organizer": make_user("organizer@example.org", [ROLE_ORGANIZER]),
        "attendance": make_user("attendance@example.org", [ROLE_ATTENDANCE]),
        "norole": make_user("norole@example.org", []),
        "disabled": make_user("disabled@example.org", [ROLE_ADMIN], disabled=True),
    }


def authenticate(client, user_id: int) -> None:
    # the test client shares the fixture's app context, so drop the user
    # Flask-Login cached on g by the previous request
    g.pop("_login_user", None)
    g.pop("adb_user", None)
    with client.session_transaction() as s:
        s["_user_id"] = str(user_id)
        s["_fresh"] = True
        s["authed"] = True


@pytest.fixture()
def login(client):
    """Sign the test client in as the given user."""
    def _login(user):
        authenticate(client, user.id)
        return client
    return _login
