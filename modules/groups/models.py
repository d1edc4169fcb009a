"""
Working groups and circles.

Both are named groups of activists with a mailing address and an optional
point person, so they share the save/list/delete helpers below; the helpers
take the model class as their first argument.
"""

from extensions import db
from utils import NotFoundError, ValidationError, clean_str, parse_int


class WorkingGroup(db.Model):
    __tablename__ = "working_groups"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    group_email = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=False, default="")

    members = db.relationship("WorkingGroupMember", back_populates="group",
                              cascade="all, delete-orphan", lazy="selectin")


class WorkingGroupMember(db.Model):
    __tablename__ = "working_group_members"

    working_group_id = db.Column(db.Integer, db.ForeignKey("working_groups.id", ondelete="CASCADE"),
                                 primary_key=True)
    activist_id = db.Column(db.Integer, db.ForeignKey("activists.id", ondelete="CASCADE"), primary_key=True)
    point_person = db.Column(db.Boolean, nullable=False, default=False)

    group = db.relationship("WorkingGroup", back_populates="members")
    activist = db.relationship("Activist", lazy="joined")


class Circle(db.Model):
    __tablename__ = "circles"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    group_email = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=False, default="")

    members = db.relationship("CircleMember", back_populates="group",
                              cascade="all, delete-orphan", lazy="selectin")


class CircleMember(db.Model):
    __tablename__ = "circle_members"

    circle_id = db.Column(db.Integer, db.ForeignKey("circles.id", ondelete="CASCADE"), primary_key=True)
    activist_id = db.Column(db.Integer, db.ForeignKey("activists.id", ondelete="CASCADE"), primary_key=True)
    point_person = db.Column(db.Boolean, nullable=False, default=False)

    group = db.relationship("Circle", back_populates="members")
    activist = db.relationship("Activist", lazy="joined")


MEMBER_MODELS = {WorkingGroup: WorkingGroupMember, Circle: CircleMember}


def group_to_json(group) -> dict:
    members = sorted(group.members, key=lambda m: m.activist.name)
    return {
        "id": group.id,
        "name": group.name,
        "email": group.group_email,
        "description": group.description,
        "members": [
            {
                "name": m.activist.name,
                "email": m.activist.email,
                "point_person": m.point_person,
            }
            for m in members
        ],
    }


def clean_group_data(data: dict) -> dict:
    cleaned = {
        "id": parse_int(data.get("id") or 0, "id"),
        "name": clean_str(data.get("name")),
        "email": clean_str(data.get("email")),
        "description": clean_str(data.get("description")),
        "members": [],
    }
    if not cleaned["name"]:
        raise ValidationError("Name cannot be empty")

    members = data.get("members") or []
    if not isinstance(members, list):
        raise ValidationError("members must be a list")
    seen = set()
    for m in members:
        name = clean_str(m.get("name") if isinstance(m, dict) else m)
        if not name or name in seen:
            continue
        seen.add(name)
        cleaned["members"].append({
            "name": name,
            "point_person": bool(m.get("point_person")) if isinstance(m, dict) else False,
        })
    return cleaned


def save_group(model, data: dict) -> int:
    """Create (id == 0) or update a group and replace its member list."""
    from modules.activists.models import Activist

    clash = model.query.filter(model.name == data["name"], model.id != data["id"]).first()
    if clash:
        raise ValidationError(f"{data['name']} already exists")

    if data["id"]:
        group = db.session.get(model, data["id"])
        if group is None:
            raise NotFoundError(f"{model.__name__} {data['id']} does not exist")
    else:
        group = model()
        db.session.add(group)

    group.name = data["name"]
    group.group_email = data["email"]
    group.description = data["description"]

    member_model = MEMBER_MODELS[model]
    group.members.clear()
    db.session.flush()
    for member in data["members"]:
        activist = Activist.query.filter_by(name=member["name"]).first()
        if activist is None:
            raise ValidationError(f"Unknown activist: {member['name']}")
        group.members.append(member_model(activist_id=activist.id, point_person=member["point_person"]))

    db.session.commit()
    return group.id


def get_group_json(model, group_id: int) -> dict:
    group = db.session.get(model, group_id)
    if group is None:
        raise NotFoundError(f"{model.__name__} {group_id} does not exist")
    return group_to_json(group)


def list_groups_json(model) -> list[dict]:
    return [group_to_json(g) for g in model.query.order_by(model.name.asc()).all()]


def delete_group(model, group_id: int) -> None:
    group = db.session.get(model, group_id)
    if group is None:
        raise NotFoundError(f"{model.__name__} {group_id} does not exist")
    db.session.delete(group)
    db.session.commit()
