"""Hourly mirror of each chapter's Facebook page events into ``fb_events``."""

from datetime import datetime

import requests
from flask import current_app

from extensions import db
from logging_config import get_logger
from modules.chapters.models import Chapter, upsert_facebook_event

from .scheduler import SyncJob, SyncJobConfig

logger = get_logger(__name__)

GRAPH_URL = "https://graph.facebook.com"
EVENT_FIELDS = ",".join([
    "id", "name", "description", "start_time", "end_time", "place", "cover",
    "attending_count", "interested_count", "is_canceled", "is_online",
])


def fetch_page_events(chapter: Chapter, api_version: str, timeout: int = 30) -> list[dict]:
    resp = requests.get(
        f"{GRAPH_URL}/{api_version}/{chapter.facebook_id}/events",
        params={"fields": EVENT_FIELDS, "time_filter": "upcoming", "access_token": chapter.token},
        timeout=timeout,
    )
    resp.raise_for_status()
    return resp.json().get("data") or []


def sync_chapter_events(chapter: Chapter, api_version: str) -> int:
    events = fetch_page_events(chapter, api_version)
    for event in events:
        upsert_facebook_event(event, chapter)
    chapter.last_update = datetime.utcnow()
    db.session.commit()
    return len(events)


def syncable_chapters() -> list[Chapter]:
    return (Chapter.query
            .filter(Chapter.facebook_id.isnot(None), Chapter.token != "")
            .order_by(Chapter.chapter_id.asc())
            .all())


class FacebookSyncJob(SyncJob):
    config = SyncJobConfig(name="facebook-events", interval_seconds=60 * 60)

    def run_once(self) -> None:
        api_version = current_app.config["FACEBOOK_API_VERSION"]
        for chapter in syncable_chapters():
            try:
                count = sync_chapter_events(chapter, api_version)
            except (requests.RequestException, ValueError, KeyError) as exc:
                db.session.rollback()
                logger.warning("facebook sync failed for chapter",
                               extra={"chapter_id": chapter.chapter_id, "error": str(exc)})
                continue
            logger.info("facebook events synced", extra={"chapter_id": chapter.chapter_id, "events": count})
