"""Read-side queries for activist lists, plus merging (which rewrites attendance)."""

from datetime import date, datetime, timedelta

from sqlalchemy import func, or_

from extensions import db
from modules.events.models import Attendance, Event, EVENT_DATE_LAYOUT, parse_event_date
from utils import NotFoundError, ValidationError, clean_str

from .models import Activist

ORGANIZER = "Organizer"
CHAPTER_LEVELS = ("Chapter Member", ORGANIZER)
COMMUNITY_LEVELS = ("Supporter", "Circle Member")
COMMUNITY_SOURCES = ("%form%", "%application%", "%fur ban%", "%petition%")

# view name -> (title, description) for the list pages
ACTIVIST_VIEWS = {
    "all_activists": ("All Activists", "Everyone who has attended an event within the filtered range"),
    "community_prospects": (
        "Community Prospects",
        "Everyone whose Level is Supporter or Circle Member, whose Source is a Form (other than the "
        "Circle Interest Form), Application, Fur Ban, or Petition that was submitted within the last 3 months",
    ),
    "activist_pool": ("Recruitment Connections", "Inactive page"),
    "activist_recruitment": ("Activist Recruitment", "Inactive page"),
    "action_team": ("Action Team", "Inactive page"),
    "development": ("Organizer Development", "Everyone who is an Organizer"),
    "chapter_member_development": ("Chapter Members", "Everyone who is a Chapter Member (including Organizers)"),
    "organizer_prospects": ("Organizer Prospects", "Everyone who is a Prospective Organizer who is not an Organizer"),
    "chapter_member_prospects": (
        "Chapter Member Prospects",
        "Everyone who is a Chapter Member Prospect who is not a Chapter Member or Organizer",
    ),
    "circle_member_prospects": ("Circle Member Prospects", "Everyone interested in joining a circle"),
    "leaderboard": ("Leaderboard", "Everyone who has attended an event in the last 30 days"),
}

ORDER_FIELDS = ("name", "first_event", "last_event", "total_events")
LEADERBOARD_DAYS = 30
COMMUNITY_PROSPECT_DAYS = 90


def _fmt(d):
    return d.strftime(EVENT_DATE_LAYOUT) if d else ""


def _stats_subquery(since: date | None = None):
    query = (db.session.query(
                Attendance.activist_id.label("activist_id"),
                func.min(Event.date).label("first_event"),
                func.max(Event.date).label("last_event"),
                func.count(Attendance.id).label("total_events"))
             .join(Event, Event.id == Attendance.event_id))
    if since is not None:
        query = query.filter(Event.date >= since)
    return query.group_by(Attendance.activist_id).subquery()


def clean_list_options(data: dict) -> dict:
    options = {
        "view": clean_str(data.get("view")) or "all_activists",
        "order_field": clean_str(data.get("order_field")) or "name",
        "order": clean_str(data.get("order")).lower() or "asc",
        "last_event_date_from": clean_str(data.get("last_event_date_from")),
        "last_event_date_to": clean_str(data.get("last_event_date_to")),
    }
    if options["view"] not in ACTIVIST_VIEWS:
        raise ValidationError(f"Unknown view: {options['view']}")
    if options["order_field"] not in ORDER_FIELDS:
        raise ValidationError(f"Cannot order by {options['order_field']}")
    if options["order"] not in ("asc", "desc"):
        raise ValidationError("order must be asc or desc")
    return options


def list_activists(options: dict) -> list[dict]:
    view = options["view"]
    since = date.today() - timedelta(days=LEADERBOARD_DAYS) if view == "leaderboard" else None
    stats = _stats_subquery(since)

    query = (db.session.query(Activist, stats.c.first_event, stats.c.last_event, stats.c.total_events)
             .outerjoin(stats, stats.c.activist_id == Activist.id)
             .filter(Activist.hidden.is_(False)))

    if view == "all_activists":
        if options["last_event_date_from"]:
            query = query.filter(stats.c.last_event >= parse_event_date(options["last_event_date_from"]))
        if options["last_event_date_to"]:
            query = query.filter(stats.c.last_event <= parse_event_date(options["last_event_date_to"]))
    elif view == "leaderboard":
        query = query.filter(stats.c.total_events > 0)
    elif view == "development":
        query = query.filter(Activist.activist_level == ORGANIZER)
    elif view == "chapter_member_development":
        query = query.filter(Activist.activist_level.in_(CHAPTER_LEVELS))
    elif view == "organizer_prospects":
        query = query.filter(Activist.prospect_organizer.is_(True), Activist.activist_level != ORGANIZER)
    elif view == "chapter_member_prospects":
        query = query.filter(Activist.prospect_chapter_member.is_(True),
                             Activist.activist_level.notin_(CHAPTER_LEVELS))
    elif view == "circle_member_prospects":
        query = query.filter(Activist.circle_interest.is_(True))
    elif view == "community_prospects":
        cutoff = datetime.utcnow() - timedelta(days=COMMUNITY_PROSPECT_DAYS)
        query = query.filter(
            Activist.activist_level.in_(COMMUNITY_LEVELS),
            Activist.created_at >= cutoff,
            or_(*[Activist.source.ilike(s) for s in COMMUNITY_SOURCES]),
            ~Activist.source.ilike("%circle interest%"),
        )

    if view == "leaderboard":
        query = query.order_by(stats.c.total_events.desc(), Activist.name.asc())
    else:
        column = Activist.name if options["order_field"] == "name" else getattr(stats.c, options["order_field"])
        query = query.order_by(column.desc() if options["order"] == "desc" else column.asc())

    return [
        activist.to_json({
            "first_event": _fmt(first),
            "last_event": _fmt(last),
            "total_events": total or 0,
        })
        for activist, first, last, total in query.all()
    ]


def list_activist_range(data: dict) -> list[dict]:
    """Infinite scroll: the next ``limit`` activists after ``name`` in name order."""
    name = clean_str(data.get("name"))
    limit = data.get("limit") or 40
    order = data.get("order") or 1
    if not isinstance(limit, int) or limit <= 0:
        raise ValidationError("limit must be a positive integer")
    if order not in (1, 2):
        raise ValidationError("order must be 1 (ascending) or 2 (descending)")

    query = Activist.query.filter(Activist.hidden.is_(False))
    if order == 1:
        if name:
            query = query.filter(Activist.name > name)
        query = query.order_by(Activist.name.asc())
    else:
        if name:
            query = query.filter(Activist.name < name)
        query = query.order_by(Activist.name.desc())
    return [a.to_json() for a in query.limit(limit).all()]


def autocomplete_names() -> list[str]:
    rows = (Activist.query.with_entities(Activist.name)
            .filter(Activist.hidden.is_(False))
            .order_by(Activist.name.asc()).all())
    return [r.name for r in rows]


def autocomplete_organizer_names() -> list[str]:
    rows = (Activist.query.with_entities(Activist.name)
            .filter(Activist.hidden.is_(False), Activist.activist_level == ORGANIZER)
            .order_by(Activist.name.asc()).all())
    return [r.name for r in rows]


def list_basic() -> list[dict]:
    activists = Activist.query.filter(Activist.hidden.is_(False)).order_by(Activist.name.asc()).all()
    return [{"id": a.id, "name": a.name, "email": a.email, "phone": a.phone} for a in activists]


def merge_activist(current_id: int, target_name: str) -> Activist:
    """Fold ``current_id`` into the activist named ``target_name`` and hide the original."""
    current = db.session.get(Activist, current_id)
    if current is None:
        raise NotFoundError(f"Activist {current_id} does not exist")
    target = Activist.query.filter_by(name=clean_str(target_name)).first()
    if target is None:
        raise NotFoundError(f"Could not fetch data for: {target_name}")
    if target.id == current.id:
        raise ValidationError("Cannot merge an activist into itself")

    target_events = {row.event_id for row in Attendance.query.filter_by(activist_id=target.id).all()}
    for row in Attendance.query.filter_by(activist_id=current.id).all():
        if row.event_id in target_events:
            db.session.delete(row)
        else:
            row.activist_id = target.id

    for field in ("email", "phone", "location", "facebook", "discord_id"):
        if not getattr(target, field) and getattr(current, field):
            setattr(target, field, getattr(current, field))
    target.prospect_organizer = target.prospect_organizer or current.prospect_organizer
    target.prospect_chapter_member = target.prospect_chapter_member or current.prospect_chapter_member
    target.circle_interest = target.circle_interest or current.circle_interest

    current.hidden = True
    if current.discord_id == target.discord_id:
        current.discord_id = None
    db.session.commit()
    return target
