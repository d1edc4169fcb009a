"""SQLAlchemy model and write helpers for activists."""

from datetime import datetime

from extensions import db
from logging_config import get_logger
from utils import NotFoundError, ValidationError, clean_str, parse_int

logger = get_logger(__name__)

ACTIVIST_LEVELS = [
    "Supporter",
    "Circle Member",
    "Chapter Member",
    "Organizer",
    "Non-Local",
    "Global Network Member",
]


class Activist(db.Model):
    """A person tracked by the system: attendee, member or organizer."""

    __tablename__ = "activists"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    email = db.Column(db.String(255), nullable=False, default="")
    phone = db.Column(db.String(64), nullable=False, default="")
    location = db.Column(db.String(255), nullable=False, default="")
    facebook = db.Column(db.String(255), nullable=False, default="")
    activist_level = db.Column(db.String(64), nullable=False, default="Supporter")
    source = db.Column(db.String(255), nullable=False, default="")
    hidden = db.Column(db.Boolean, nullable=False, default=False)
    discord_id = db.Column(db.String(64))
    prospect_organizer = db.Column(db.Boolean, nullable=False, default=False)
    prospect_chapter_member = db.Column(db.Boolean, nullable=False, default=False)
    circle_interest = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_json(self, stats: dict | None = None) -> dict:
        out = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "location": self.location,
            "facebook": self.facebook,
            "activist_level": self.activist_level,
            "source": self.source,
            "hidden": self.hidden,
            "discord_id": self.discord_id or "",
            "prospect_organizer": self.prospect_organizer,
            "prospect_chapter_member": self.prospect_chapter_member,
            "circle_interest": self.circle_interest,
        }
        if stats is not None:
            out.update(stats)
        return out

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Activist {self.id}: {self.name}>"


EDITABLE_FIELDS = ("name", "email", "phone", "location", "facebook", "activist_level", "source")
FLAG_FIELDS = ("prospect_organizer", "prospect_chapter_member", "circle_interest")


def clean_activist_data(data: dict) -> dict:
    """Normalize a submitted activist: trimmed strings, booleans, integer id."""
    cleaned = {"id": parse_int(data.get("id") or 0, "id")}
    for field in EDITABLE_FIELDS:
        cleaned[field] = clean_str(data.get(field))
    for field in FLAG_FIELDS:
        cleaned[field] = bool(data.get(field))

    if not cleaned["name"]:
        raise ValidationError("Name cannot be empty")
    if not cleaned["activist_level"]:
        cleaned["activist_level"] = "Supporter"
    if cleaned["activist_level"] not in ACTIVIST_LEVELS:
        raise ValidationError(f"Unknown activist level: {cleaned['activist_level']}")
    return cleaned


def create_activist(data: dict) -> Activist:
    if data.get("id"):
        raise ValidationError("Cannot create an activist that already has an id")
    if Activist.query.filter_by(name=data["name"]).first():
        raise ValidationError(f"An activist named {data['name']} already exists")

    activist = Activist(**{k: v for k, v in data.items() if k != "id"})
    db.session.add(activist)
    db.session.commit()
    return activist


def update_activist(data: dict, updated_by: str) -> Activist:
    activist = db.session.get(Activist, data["id"])
    if activist is None:
        raise NotFoundError(f"Activist {data['id']} does not exist")

    clash = Activist.query.filter(Activist.name == data["name"], Activist.id != activist.id).first()
    if clash:
        raise ValidationError(f"An activist named {data['name']} already exists")

    for field in EDITABLE_FIELDS + FLAG_FIELDS:
        setattr(activist, field, data[field])
    db.session.commit()
    logger.info("activist updated", extra={"activist_id": activist.id, "updated_by": updated_by})
    return activist


def get_or_create_activist(name: str) -> Activist:
    """Find an activist by exact name, creating a bare record when absent."""
    name = clean_str(name)
    if not name:
        raise ValidationError("Attendee name cannot be empty")
    activist = Activist.query.filter_by(name=name).first()
    if activist is None:
        activist = Activist(name=name)
        db.session.add(activist)
        db.session.flush()
    return activist


def hide_activist(activist_id: int) -> None:
    activist = db.session.get(Activist, activist_id)
    if activist is None:
        raise NotFoundError(f"Activist {activist_id} does not exist")
    activist.hidden = True
    db.session.commit()


def get_activists_by_email(email: str) -> list[Activist]:
    email = clean_str(email)
    if not email:
        return []
    return Activist.query.filter(Activist.email == email, Activist.hidden.is_(False)).all()
