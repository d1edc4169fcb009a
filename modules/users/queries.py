"""Write helpers for ADB users and their roles."""

from extensions import db
from models import ALL_ROLES, ADBUser, UserRole
from utils import NotFoundError, ValidationError, clean_str, parse_int


def clean_user_data(data: dict) -> dict:
    cleaned = {
        "id": parse_int(data.get("id") or 0, "id"),
        "email": clean_str(data.get("email")),
        "name": clean_str(data.get("name")),
        "disabled": bool(data.get("disabled")),
    }
    roles = data.get("roles")
    if roles is not None:
        if not isinstance(roles, list) or any(r not in ALL_ROLES for r in roles):
            raise ValidationError(f"roles must be a subset of {', '.join(ALL_ROLES)}")
        cleaned["roles"] = sorted(set(roles))
    return cleaned


def _get_user(user_id: int) -> ADBUser:
    user = db.session.get(ADBUser, user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} does not exist")
    return user


def _apply(user: ADBUser, data: dict) -> None:
    clash = ADBUser.query.filter(ADBUser.email == data["email"], ADBUser.id != data["id"]).first()
    if clash:
        raise ValidationError(f"A user with email {data['email']} already exists")
    user.email = data["email"]
    user.name = data["name"]
    user.disabled = data["disabled"]
    if "roles" in data:
        wanted = set(data["roles"])
        for row in list(user.roles):
            if row.role not in wanted:
                user.roles.remove(row)
        for role in sorted(wanted - set(user.role_names)):
            user.roles.append(UserRole(role=role))


def create_user(data: dict) -> int:
    if data["id"]:
        raise ValidationError("Cannot create a user that already has an id")
    if not data["email"]:
        raise ValidationError("Email cannot be empty")
    user = ADBUser()
    _apply(user, data)
    db.session.add(user)
    db.session.commit()
    return user.id


def update_user(data: dict) -> int:
    if not data["email"]:
        raise ValidationError("Email cannot be empty")
    user = _get_user(data["id"])
    _apply(user, data)
    db.session.commit()
    return user.id


def remove_user(user_id: int) -> int:
    user = _get_user(user_id)
    db.session.delete(user)
    db.session.commit()
    return user_id


def list_users() -> list[dict]:
    return [u.to_json() for u in ADBUser.query.order_by(ADBUser.name.asc(), ADBUser.id.asc()).all()]


def get_user_json(user_id: int) -> dict:
    return _get_user(user_id).to_json()


def add_user_role(user_id: int, role: str) -> int:
    if role not in ALL_ROLES:
        raise ValidationError(f"Unknown role: {role}")
    user = _get_user(user_id)
    if role not in user.role_names:
        user.roles.append(UserRole(role=role))
        db.session.commit()
    return user.id


def remove_user_role(user_id: int, role: str) -> int:
    user = _get_user(user_id)
    for row in list(user.roles):
        if row.role == role:
            user.roles.remove(row)
    db.session.commit()
    return user.id
