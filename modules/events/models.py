"""SQLAlchemy models for events, connections and attendance."""

from datetime import date, datetime

from extensions import db
from utils import NotFoundError, ValidationError, clean_str, parse_int

EVENT_DATE_LAYOUT = "%Y-%m-%d"
CONNECTION_TYPE = "Connection"

EVENT_TYPES = [
    "Action",
    "Campaign Action",
    "Circle",
    "Community",
    "Frontline Surveillance",
    "Meeting",
    "Outreach",
    "Animal Care",
    "Training",
    "Sanctuary",
    "Key Event",
    "Protest",
    "Working Group",
    CONNECTION_TYPE,
]


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    date = db.Column(db.Date, nullable=False)
    event_type = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    attendance = db.relationship(
        "Attendance",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def attendee_names(self) -> list[str]:
        return sorted(a.activist.name for a in self.attendance)

    def to_json(self) -> dict:
        return {
            "event_id": self.id,
            "event_name": self.name,
            "event_date": self.date.strftime(EVENT_DATE_LAYOUT),
            "event_type": self.event_type,
            "attendees": self.attendee_names,
            "attendee_emails": sorted(a.activist.email for a in self.attendance if a.activist.email),
        }

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Event {self.id}: {self.name} {self.date}>"


class Attendance(db.Model):
    __tablename__ = "event_attendance"
    __table_args__ = (db.UniqueConstraint("event_id", "activist_id", name="uq_event_activist"),)

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    activist_id = db.Column(db.Integer, db.ForeignKey("activists.id", ondelete="CASCADE"), nullable=False)

    event = db.relationship("Event", back_populates="attendance")
    activist = db.relationship("Activist", lazy="joined")


def parse_event_date(value) -> date:
    try:
        return datetime.strptime(clean_str(value), EVENT_DATE_LAYOUT).date()
    except ValueError:
        raise ValidationError(f"Invalid event date: {value!r}")


def _name_list(value, field: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field} must be a list of names")
    names = [clean_str(n) for n in value]
    return [n for n in names if n]


def clean_event_data(data: dict) -> dict:
    """Validate an event submission from the attendance form."""
    cleaned = {
        "id": parse_int(data.get("event_id") or 0, "event_id"),
        "name": clean_str(data.get("event_name")),
        "date": parse_event_date(data.get("event_date")),
        "event_type": clean_str(data.get("event_type")),
        "added_attendees": _name_list(data.get("added_attendees"), "added_attendees"),
        "deleted_attendees": _name_list(data.get("deleted_attendees"), "deleted_attendees"),
    }
    if not cleaned["name"]:
        raise ValidationError("Event name cannot be empty")
    if cleaned["event_type"] not in EVENT_TYPES:
        raise ValidationError(f"Unknown event type: {cleaned['event_type']!r}")
    return cleaned


def insert_update_event(data: dict) -> int:
    """Create or update an event and apply attendee additions/removals."""
    from modules.activists.models import Activist, get_or_create_activist

    if data["id"]:
        event = db.session.get(Event, data["id"])
        if event is None:
            raise NotFoundError(f"Event {data['id']} does not exist")
    else:
        event = Event()
        db.session.add(event)

    event.name = data["name"]
    event.date = data["date"]
    event.event_type = data["event_type"]
    db.session.flush()

    present = {a.activist_id for a in event.attendance}
    for name in data["added_attendees"]:
        activist = get_or_create_activist(name)
        if activist.id not in present:
            event.attendance.append(Attendance(activist_id=activist.id))
            present.add(activist.id)

    if data["deleted_attendees"]:
        removed_ids = {
            a.id for a in Activist.query.filter(Activist.name.in_(data["deleted_attendees"])).all()
        }
        for row in [a for a in event.attendance if a.activist_id in removed_ids]:
            event.attendance.remove(row)

    db.session.commit()
    return event.id


def get_event(event_id: int) -> Event:
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFoundError(f"Event {event_id} does not exist")
    return event


def get_event_attendance(event_id: int) -> list[str]:
    return get_event(event_id).attendee_names


def list_events(*, name="", activist="", date_from="", date_to="", event_type=""):
    """Events matching the list-page filters, newest first."""
    from modules.activists.models import Activist

    query = Event.query
    if name:
        query = query.filter(Event.name.ilike(f"%{name}%"))
    if date_from:
        query = query.filter(Event.date >= parse_event_date(date_from))
    if date_to:
        query = query.filter(Event.date <= parse_event_date(date_to))
    if event_type == "noConnections":
        query = query.filter(Event.event_type != CONNECTION_TYPE)
    elif event_type:
        query = query.filter(Event.event_type == event_type)
    if activist:
        query = (query.join(Attendance, Attendance.event_id == Event.id)
                 .join(Activist, Activist.id == Attendance.activist_id)
                 .filter(Activist.name == activist))
    return query.order_by(Event.date.desc(), Event.id.desc()).all()


def delete_event(event_id: int) -> None:
    event = get_event(event_id)
    db.session.delete(event)
    db.session.commit()
