"""SQLAlchemy models for supporters and their Sendy sync records."""

from datetime import datetime

from extensions import db
from utils import ValidationError, clean_str, parse_int

TEXT_FIELDS = (
    "first_name", "last_name", "email", "phone",
    "location_address1", "location_address2", "location_city", "location_state", "location_zip",
    "source", "date_sourced", "notes",
)
FLAG_FIELDS = (
    "requested_lawn_sign", "requested_poster", "voter",
    "issue_housing", "issue_homelessness", "issue_climate", "issue_public_safety",
    "issue_police_accountability", "issue_transit", "issue_economic_equality",
    "issue_public_health", "issue_animal_rights",
    "interest_donate", "interest_attend_event", "interest_volunteer", "interest_host_event",
    "requires_followup",
)


class Supporter(db.Model):
    __tablename__ = "supporters"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(128), nullable=False, default="")
    last_name = db.Column(db.String(128), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="", index=True)
    phone = db.Column(db.String(64), nullable=False, default="")
    location_address1 = db.Column(db.String(255), nullable=False, default="")
    location_address2 = db.Column(db.String(255), nullable=False, default="")
    location_city = db.Column(db.String(128), nullable=False, default="")
    location_state = db.Column(db.String(64), nullable=False, default="")
    location_zip = db.Column(db.String(32), nullable=False, default="")
    source = db.Column(db.String(128), nullable=False, default="")
    date_sourced = db.Column(db.String(32), nullable=False, default="")
    requested_lawn_sign = db.Column(db.Boolean, nullable=False, default=False)
    requested_poster = db.Column(db.Boolean, nullable=False, default=False)
    voter = db.Column(db.Boolean, nullable=False, default=False)

    issue_housing = db.Column(db.Boolean, nullable=False, default=False)
    issue_homelessness = db.Column(db.Boolean, nullable=False, default=False)
    issue_climate = db.Column(db.Boolean, nullable=False, default=False)
    issue_public_safety = db.Column(db.Boolean, nullable=False, default=False)
    issue_police_accountability = db.Column(db.Boolean, nullable=False, default=False)
    issue_transit = db.Column(db.Boolean, nullable=False, default=False)
    issue_economic_equality = db.Column(db.Boolean, nullable=False, default=False)
    issue_public_health = db.Column(db.Boolean, nullable=False, default=False)
    issue_animal_rights = db.Column(db.Boolean, nullable=False, default=False)

    interest_donate = db.Column(db.Boolean, nullable=False, default=False)
    interest_attend_event = db.Column(db.Boolean, nullable=False, default=False)
    interest_volunteer = db.Column(db.Boolean, nullable=False, default=False)
    interest_host_event = db.Column(db.Boolean, nullable=False, default=False)

    notes = db.Column(db.Text, nullable=False, default="")
    requires_followup = db.Column(db.Boolean, nullable=False, default=False)

    @property
    def display_name(self) -> str:
        """First and last name joined, or whichever one is set."""
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        return " ".join(parts)

    def to_json(self) -> dict:
        out = {"id": self.id}
        for field in TEXT_FIELDS + FLAG_FIELDS:
            out[field] = getattr(self, field)
        return out

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Supporter {self.id}: {self.email}>"


class SupporterSendySync(db.Model):
    """Append-only log of subscribe attempts; one row per supporter per attempt."""

    __tablename__ = "supporters_sendy_sync"

    id = db.Column(db.Integer, primary_key=True)
    supporter_id = db.Column(db.Integer, db.ForeignKey("supporters.id", ondelete="CASCADE"),
                             nullable=False, index=True)
    sendy_list_id = db.Column(db.String(128), nullable=False)
    email = db.Column(db.String(255), nullable=False, default="")
    is_issue_sublist = db.Column(db.Boolean, nullable=False, default=False)
    sync_status = db.Column(db.Integer, nullable=False)
    sync_timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


def clean_supporter_data(data: dict) -> dict:
    cleaned = {"id": parse_int(data.get("id") or 0, "id")}
    for field in TEXT_FIELDS:
        cleaned[field] = clean_str(data.get(field))
    for field in FLAG_FIELDS:
        cleaned[field] = bool(data.get(field))
    return cleaned


def create_supporter(data: dict) -> int:
    if data["id"] != 0:
        raise ValidationError("Cannot create supporter when id != 0")
    if not data["email"] and not data["phone"]:
        raise ValidationError("Cannot create supporter if either email or phone isn't set")

    supporter = Supporter(**{k: v for k, v in data.items() if k != "id"})
    db.session.add(supporter)
    db.session.commit()
    return supporter.id
