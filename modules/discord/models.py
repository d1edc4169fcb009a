"""Pending and confirmed links between Discord accounts and activists."""

import secrets
from datetime import datetime

from extensions import db

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_NOT_FOUND = "not found"


class DiscordUser(db.Model):
    __tablename__ = "discord_users"

    id = db.Column(db.String(64), primary_key=True)
    email = db.Column(db.String(255), nullable=False, default="")
    token = db.Column(db.String(128), nullable=False)
    confirmed = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


def discord_status(discord_id: str) -> str:
    from modules.activists.models import Activist

    if Activist.query.filter_by(discord_id=discord_id).first():
        return STATUS_CONFIRMED
    user = db.session.get(DiscordUser, discord_id)
    if user is None:
        return STATUS_NOT_FOUND
    return STATUS_CONFIRMED if user.confirmed else STATUS_PENDING


def start_confirmation(discord_id: str, email: str) -> DiscordUser:
    """Create or reset the pending link for ``discord_id`` with a fresh token."""
    user = db.session.get(DiscordUser, discord_id)
    if user is None:
        user = DiscordUser(id=discord_id)
        db.session.add(user)
    user.email = email
    user.token = secrets.token_hex(32)
    user.confirmed = False
    db.session.commit()
    return user


def find_pending(discord_id: str, token: str) -> DiscordUser | None:
    user = db.session.get(DiscordUser, discord_id)
    if user is None or not secrets.compare_digest(user.token.encode(), token.encode()):
        return None
    return user
