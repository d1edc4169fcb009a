"""
Post-event survey mailer.

Once an event of a surveyed type is between one and seven days old, every
attendee with an email gets the survey link, and the names of attendees
without one go to the configured "missing" address.
"""

from datetime import date, timedelta
from urllib.parse import urlencode

from flask import current_app
from markupsafe import escape

from extensions import db
from logging_config import get_logger
from mailer import MailError, send_email, ses_configured
from models import SYNC_STATUS_ERROR, SYNC_STATUS_SYNCED
from modules.events.models import EVENT_DATE_LAYOUT, Event

from .models import EventSurveySync
from .scheduler import SyncJob, SyncJobConfig

logger = get_logger(__name__)

SURVEY_EVENT_TYPES = (
    "Action",
    "Campaign Action",
    "Community",
    "Outreach",
    "Training",
    "Protest",
    "Key Event",
    "Sanctuary",
    "Animal Care",
)
MIN_AGE_DAYS = 1
MAX_AGE_DAYS = 7


def pending_survey_events(today: date | None = None, limit: int = 1000) -> list[Event]:
    today = today or date.today()
    already_sent = (db.session.query(EventSurveySync.event_id)
                    .filter(EventSurveySync.sync_status == SYNC_STATUS_SYNCED))
    return (Event.query
            .filter(Event.event_type.in_(SURVEY_EVENT_TYPES),
                    Event.date <= today - timedelta(days=MIN_AGE_DAYS),
                    Event.date >= today - timedelta(days=MAX_AGE_DAYS),
                    ~Event.id.in_(already_sent))
            .order_by(Event.date.asc(), Event.id.asc())
            .limit(limit)
            .all())


def survey_link(base_url: str, event: Event) -> str:
    query = urlencode({"event": event.name, "date": event.date.strftime(EVENT_DATE_LAYOUT)})
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{query}"


def send_event_survey(event: Event) -> bool:
    """Mail the survey for ``event``; False if any message failed."""
    cfg = current_app.config
    link = survey_link(cfg["SURVEY_URL"], event)
    subject = f"Survey: {event.name}"
    ok = True
    missing = []

    for row in event.attendance:
        activist = row.activist
        if not activist.email:
            missing.append(activist.name)
            continue
        body = (f"<p>Hi {escape(activist.name)},</p>"
                f"<p>Thanks for coming to {escape(event.name)}! "
                f'Please take a minute to <a href="{escape(link)}">fill out our survey</a>.</p>')
        try:
            send_email(cfg["SURVEY_FROM_EMAIL"], [activist.email], subject, body)
        except MailError:
            ok = False

    if missing:
        body = (f"<p>The following attendees of {escape(event.name)} "
                f"({event.date.strftime(EVENT_DATE_LAYOUT)}) have no email address:</p>"
                "<ul>" + "".join(f"<li>{escape(name)}</li>" for name in sorted(missing)) + "</ul>")
        try:
            send_email(cfg["SURVEY_FROM_EMAIL"], [cfg["SURVEY_MISSING_EMAIL"]],
                       f"Missing emails: {event.name}", body)
        except MailError:
            ok = False
    return ok


def record_survey(event: Event, target: str, sent: bool) -> None:
    db.session.add(EventSurveySync(
        event_id=event.id,
        survey_target=target,
        sync_status=SYNC_STATUS_SYNCED if sent else SYNC_STATUS_ERROR,
    ))
    db.session.commit()


class SurveyMailerJob(SyncJob):
    config = SyncJobConfig(name="survey-mailer", interval_seconds=60 * 60)

    def enabled(self) -> bool:
        cfg = self.app.config
        with self.app.app_context():
            ses = ses_configured()
        return bool(ses and cfg.get("SURVEY_FROM_EMAIL") and cfg.get("SURVEY_MISSING_EMAIL")
                    and cfg.get("SURVEY_URL"))

    def run_once(self) -> None:
        target = current_app.config["SURVEY_URL"]
        for event in pending_survey_events(limit=self.config.batch_size):
            sent = send_event_survey(event)
            record_survey(event, target, sent)
            logger.info("event survey processed", extra={"event_id": event.id, "sent": sent})
