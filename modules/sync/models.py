"""Sync records for the survey mailer and the working group mailing lists."""

from datetime import datetime

from extensions import db


class EventSurveySync(db.Model):
    __tablename__ = "event_survey_sync"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"),
                         nullable=False, index=True)
    survey_target = db.Column(db.String(512), nullable=False, default="")
    sync_status = db.Column(db.Integer, nullable=False)
    sync_timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)


class WorkingGroupListSync(db.Model):
    __tablename__ = "working_group_list_sync"

    id = db.Column(db.Integer, primary_key=True)
    activist_id = db.Column(db.Integer, db.ForeignKey("activists.id", ondelete="CASCADE"),
                            nullable=False, index=True)
    working_group_id = db.Column(db.Integer, db.ForeignKey("working_groups.id", ondelete="CASCADE"),
                                 nullable=False)
    group_email = db.Column(db.String(255), nullable=False)
    sync_status = db.Column(db.Integer, nullable=False)
    sync_timestamp = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
