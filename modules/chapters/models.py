# -*- coding: utf-8 -*-
"""
Chapter and Facebook event models.

- Chapter       : organizational unit; also the Facebook page we sync events from
                  (``facebook_id`` + ``token``).
- FacebookEvent : a page event mirrored from the Graph API, keyed by Facebook's id.
"""

import math
from collections import OrderedDict
from datetime import datetime, timezone

from extensions import db
from utils import NotFoundError, ValidationError, clean_str, parse_float, parse_int

EARTH_RADIUS_MILES = 3958.8
NEAREST_CHAPTERS = 3
FB_TIME_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"
OUTPUT_TIME_LAYOUT = "%Y-%m-%dT%H:%M:%S"


class Chapter(db.Model):
    __tablename__ = "fb_pages"

    chapter_id = db.Column(db.Integer, primary_key=True)
    facebook_id = db.Column(db.BigInteger, index=True)
    name = db.Column(db.String(255), nullable=False)
    flag = db.Column(db.String(64), nullable=False, default="")
    fb_url = db.Column(db.String(255), nullable=False, default="")
    twitter_url = db.Column(db.String(255), nullable=False, default="")
    insta_url = db.Column(db.String(255), nullable=False, default="")
    email = db.Column(db.String(255), nullable=False, default="")
    region = db.Column(db.String(128), nullable=False, default="")
    lat = db.Column(db.Float, nullable=False, default=0.0)
    lng = db.Column(db.Float, nullable=False, default=0.0)
    token = db.Column(db.String(512), nullable=False, default="")
    last_update = db.Column(db.DateTime)

    def to_json(self, include_token: bool = False) -> dict:
        out = {
            "chapter_id": self.chapter_id,
            "id": self.facebook_id or 0,
            "name": self.name,
            "flag": self.flag,
            "fb_url": self.fb_url,
            "twitter_url": self.twitter_url,
            "insta_url": self.insta_url,
            "email": self.email,
            "region": self.region,
            "lat": self.lat,
            "lng": self.lng,
        }
        if include_token:
            out["token"] = self.token
            out["last_update"] = self.last_update.isoformat() if self.last_update else ""
        return out

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Chapter {self.chapter_id}: {self.name}>"


class FacebookEvent(db.Model):
    __tablename__ = "fb_events"

    id = db.Column(db.String(64), primary_key=True)
    page_id = db.Column(db.BigInteger, index=True, nullable=False)
    name = db.Column(db.String(255), nullable=False, default="")
    description = db.Column(db.Text, nullable=False, default="")
    start_time = db.Column(db.DateTime, index=True)
    end_time = db.Column(db.DateTime)
    location_name = db.Column(db.String(255), nullable=False, default="")
    location_city = db.Column(db.String(128), nullable=False, default="")
    location_country = db.Column(db.String(128), nullable=False, default="")
    location_state = db.Column(db.String(128), nullable=False, default="")
    location_address = db.Column(db.String(255), nullable=False, default="")
    location_zip = db.Column(db.String(32), nullable=False, default="")
    lat = db.Column(db.Float, nullable=False, default=0.0)
    lng = db.Column(db.Float, nullable=False, default=0.0)
    cover = db.Column(db.String(1024), nullable=False, default="")
    attending_count = db.Column(db.Integer, nullable=False, default=0)
    interested_count = db.Column(db.Integer, nullable=False, default=0)
    is_canceled = db.Column(db.Boolean, nullable=False, default=False)
    is_online = db.Column(db.Boolean, nullable=False, default=False)
    last_update = db.Column(db.DateTime, default=datetime.utcnow)

    def to_json(self) -> dict:
        def fmt(t):
            return t.strftime(OUTPUT_TIME_LAYOUT) if t else ""

        return {
            "id": self.id,
            "page_id": self.page_id,
            "name": self.name,
            "description": self.description,
            "start_time": fmt(self.start_time),
            "end_time": fmt(self.end_time),
            "location_name": self.location_name,
            "location_city": self.location_city,
            "location_country": self.location_country,
            "location_state": self.location_state,
            "location_address": self.location_address,
            "location_zip": self.location_zip,
            "lat": self.lat,
            "lng": self.lng,
            "cover": self.cover,
            "attending_count": self.attending_count,
            "interested_count": self.interested_count,
            "is_canceled": self.is_canceled,
            "is_online": self.is_online,
            "last_update": fmt(self.last_update),
        }


# ---------- Chapters ----------
def chapter_from_form(form) -> dict:
    """Parse the chapter edit/new form. Numeric fields must parse."""
    facebook_id = clean_str(form.get("facebook-id"))
    return {
        "chapter_id": parse_int(form.get("chapter-id") or 0, "chapter id"),
        "facebook_id": parse_int(facebook_id, "Facebook id") if facebook_id else None,
        "lat": parse_float(form.get("lat") or 0, "latitude"),
        "lng": parse_float(form.get("lng") or 0, "longitude"),
        "name": clean_str(form.get("name")),
        "flag": clean_str(form.get("flag")),
        "fb_url": clean_str(form.get("facebook")),
        "twitter_url": clean_str(form.get("twitter")),
        "insta_url": clean_str(form.get("instagram")),
        "email": clean_str(form.get("email")),
        "region": clean_str(form.get("region")),
        "token": clean_str(form.get("token")),
    }


def get_chapter(chapter_id: int) -> Chapter:
    chapter = db.session.get(Chapter, chapter_id)
    if chapter is None:
        raise NotFoundError(f"Chapter {chapter_id} does not exist")
    return chapter


def insert_chapter(data: dict) -> Chapter:
    if not data["name"]:
        raise ValidationError("Chapter name cannot be empty")
    chapter = Chapter(**{k: v for k, v in data.items() if k != "chapter_id"})
    db.session.add(chapter)
    db.session.commit()
    return chapter


def update_chapter(data: dict) -> Chapter:
    if not data["name"]:
        raise ValidationError("Chapter name cannot be empty")
    chapter = get_chapter(data["chapter_id"])
    for field, value in data.items():
        if field != "chapter_id":
            setattr(chapter, field, value)
    db.session.commit()
    return chapter


def delete_chapter(chapter_id: int) -> None:
    db.session.delete(get_chapter(chapter_id))
    db.session.commit()


def all_chapters() -> list[Chapter]:
    return Chapter.query.order_by(Chapter.name.asc()).all()


def chapters_by_region() -> "OrderedDict[str, list[dict]]":
    grouped: OrderedDict[str, list[dict]] = OrderedDict()
    for chapter in Chapter.query.order_by(Chapter.region.asc(), Chapter.name.asc()).all():
        grouped.setdefault(chapter.region, []).append(chapter.to_json())
    return grouped


def distance_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance (haversine)."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_MILES * math.asin(math.sqrt(a))


def nearest_chapters(lat: float, lng: float, limit: int = NEAREST_CHAPTERS) -> list[dict]:
    rows = []
    for chapter in Chapter.query.all():
        out = chapter.to_json()
        out["distance"] = round(distance_miles(lat, lng, chapter.lat, chapter.lng), 1)
        rows.append(out)
    rows.sort(key=lambda r: r["distance"])
    return rows[:limit]


# ---------- Facebook events ----------
def parse_fb_time(value: str | None) -> datetime | None:
    """Graph API timestamps look like 2024-05-01T19:00:00-0700; stored as naive UTC."""
    if not value:
        return None
    parsed = datetime.strptime(value, FB_TIME_LAYOUT)
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def upsert_facebook_event(event: dict, chapter: Chapter) -> FacebookEvent:
    """Insert or replace one Graph API event for ``chapter``; caller commits."""
    place = event.get("place") or {}
    location = place.get("location") or {}
    row = FacebookEvent(
        id=str(event["id"]),
        page_id=chapter.facebook_id,
        name=event.get("name") or "",
        description=event.get("description") or "",
        start_time=parse_fb_time(event.get("start_time")),
        end_time=parse_fb_time(event.get("end_time")),
        location_name=place.get("name") or "",
        location_city=location.get("city") or "",
        location_country=location.get("country") or "",
        location_state=location.get("state") or "",
        location_address=location.get("street") or "",
        location_zip=location.get("zip") or "",
        lat=location.get("latitude") or 0.0,
        lng=location.get("longitude") or 0.0,
        cover=(event.get("cover") or {}).get("source") or "",
        attending_count=event.get("attending_count") or 0,
        interested_count=event.get("interested_count") or 0,
        is_canceled=bool(event.get("is_canceled")),
        is_online=bool(event.get("is_online")),
        last_update=datetime.utcnow(),
    )
    return db.session.merge(row)


def _in_range(query, start: datetime, end: datetime | None):
    query = query.filter(FacebookEvent.start_time >= start, FacebookEvent.is_canceled.is_(False))
    if end is not None:
        query = query.filter(FacebookEvent.start_time <= end)
    return query.order_by(FacebookEvent.start_time.asc())


def facebook_events_for_page(page_id: int, start: datetime, end: datetime | None) -> list[FacebookEvent]:
    return _in_range(FacebookEvent.query.filter(FacebookEvent.page_id == page_id), start, end).all()


def online_facebook_events(start: datetime, end: datetime | None) -> list[FacebookEvent]:
    return _in_range(FacebookEvent.query.filter(FacebookEvent.is_online.is_(True)), start, end).all()
