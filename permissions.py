# permissions.py
"""
Session guard and role-based access for ADB.

- get_authed_user()          : signed-in, enabled user for this request (or None).
- auth_role_required([...])  : page routes: redirect to /login or /403.
- api_role_required([...])   : JSON routes: bare 400 / 403 responses.
- attendance/organizer/admin : the three tiers as ready-made decorators.

Roles are unordered. A user passes a check when ANY of their roles is in the
allowed list, so a user with no roles never passes.
"""

from functools import wraps
from typing import Iterable, Sequence

from flask import current_app, g, make_response, redirect, session, url_for
from flask_login import UserMixin, current_user, login_user, logout_user

from extensions import db, login_manager
from logging_config import get_logger
from models import ADBUser, ROLE_ADMIN, ROLE_ATTENDANCE, ROLE_ORGANIZER

logger = get_logger(__name__)

ATTENDANCE_ROLES = (ROLE_ADMIN, ROLE_ORGANIZER, ROLE_ATTENDANCE)
ORGANIZER_ROLES = (ROLE_ADMIN, ROLE_ORGANIZER)
ADMIN_ROLES = (ROLE_ADMIN,)


class DevTestUser(UserMixin):
    """Principal served for every request when the development bypass is on."""

    id = 1
    name = "Test User"
    email = "test@example.org"
    disabled = False
    role_names = [ROLE_ADMIN]


DEV_TEST_USER = DevTestUser()


@login_manager.user_loader
def load_user(user_id: str | None) -> ADBUser | None:
    """Resolve the session's user id; disabled accounts resolve to nobody."""

    if not user_id:
        return None
    try:
        user = db.session.get(ADBUser, int(user_id))
    except ValueError:
        return None
    if user is None or user.disabled:
        return None
    return user


# ------------------------------- SESSION ------------------------------------ #
def get_authed_user():
    """Return the authenticated, enabled user for this request or ``None``."""
    if not current_app.config.get("IS_PROD") and current_app.config.get("DEV_AUTH_BYPASS"):
        return DEV_TEST_USER

    if session.get("authed") is not True:
        return None
    if not current_user.is_authenticated:
        return None
    if getattr(current_user, "disabled", True):
        return None
    return current_user._get_current_object()


def set_auth_session(user: ADBUser) -> bool:
    """Write the signed session for ``user``. Disabled users never get one."""
    if user.disabled:
        return False
    session.permanent = True
    session["authed"] = True
    login_user(user)
    return True


def clear_auth_session() -> None:
    logout_user()
    session.clear()


def user_is_allowed(allowed_roles: Iterable[str], user) -> bool:
    user_roles = set(getattr(user, "role_names", None) or [])
    return any(role in user_roles for role in allowed_roles)


def get_user_main_role(user) -> str:
    """Highest tier held by ``user``: admin > organizer > attendance."""
    roles = set(getattr(user, "role_names", None) or [])
    for role in (ROLE_ADMIN, ROLE_ORGANIZER, ROLE_ATTENDANCE):
        if role in roles:
            return role
    return ""


def _normalize(allowed_roles) -> Sequence[str]:
    if isinstance(allowed_roles, str):
        return (allowed_roles,)
    return tuple(allowed_roles or ())


# ----------------------------- PAGE ROUTES ---------------------------------- #
def auth_role_required(allowed_roles: Iterable[str]):
    """
    Decorator for HTML pages.

    - No valid session (or disabled user) → session cookie cleared, redirect to /login.
    - Signed in without a matching role → redirect to /403.
    """
    allowed = _normalize(allowed_roles)

    def decorator(view_func):
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            user = get_authed_user()
            if user is None:
                clear_auth_session()
                return redirect(url_for("auth.login"))

            g.adb_user = user
            if not user_is_allowed(allowed, user):
                logger.info("forbidden page request", extra={"user_id": user.id})
                return redirect(url_for("auth.forbidden"))

            return view_func(*args, **kwargs)

        return wrapped
    return decorator


# ------------------------------ API ROUTES ---------------------------------- #
def api_role_required(allowed_roles: Iterable[str]):
    """Decorator for JSON endpoints: 400 when not signed in, 403 on a role mismatch, no body."""
    allowed = _normalize(allowed_roles)

    def decorator(view_func):
        @wraps(view_func)
        def wrapped(*args, **kwargs):
            user = get_authed_user()
            if user is None:
                return make_response("", 400)
            if not user_is_allowed(allowed, user):
                return make_response("", 403)

            g.adb_user = user
            return view_func(*args, **kwargs)

        return wrapped
    return decorator


# ------------------------------- TIERS -------------------------------------- #
attendance_required = auth_role_required(ATTENDANCE_ROLES)
organizer_required = auth_role_required(ORGANIZER_ROLES)
admin_required = auth_role_required(ADMIN_ROLES)

api_attendance_required = api_role_required(ATTENDANCE_ROLES)
api_organizer_required = api_role_required(ORGANIZER_ROLES)
api_admin_required = api_role_required(ADMIN_ROLES)


def current_adb_user():
    """User stored by the guard for the running request."""
    return g.get("adb_user")
