"""Discord bot endpoints and the email confirmation page."""

import hmac
from functools import wraps

from flask import current_app, jsonify, make_response, render_template, request
from markupsafe import escape
from werkzeug.exceptions import BadRequest

from extensions import db
from logging_config import get_logger
from mailer import MailError, send_email, ses_configured
from utils import clean_str

from . import bp
from .client import DiscordClient, DiscordError
from .models import discord_status, find_pending, start_confirmation

logger = get_logger(__name__)

ROLE_VERIFIED = "Verified"
ROLE_BAY_AREA = "SF Bay Area, USA"
ROLE_ORGANIZER = "Organizer"
NON_LOCAL_LEVELS = ("Non-Local", "Global Network Member")


def bot_secret_required(view_func):
    """The bot posts the shared secret as ``auth``; 400 on a bad form, 401 on a mismatch."""

    @wraps(view_func)
    def wrapped(*args, **kwargs):
        try:
            provided = request.form.get("auth", "")
        except BadRequest:
            return make_response("", 400)
        expected = current_app.config.get("DISCORD_SECRET") or ""
        if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
            return make_response("", 401)
        return view_func(*args, **kwargs)

    return wrapped


def discord_roles_for(activist) -> list[str]:
    roles = [ROLE_VERIFIED]
    if activist.activist_level not in NON_LOCAL_LEVELS:
        roles.append(ROLE_BAY_AREA)
    if activist.activist_level == ROLE_ORGANIZER:
        roles.append(ROLE_ORGANIZER)
    return roles


def _discord_client() -> DiscordClient | None:
    cfg = current_app.config
    if not (cfg.get("DISCORD_BOT_TOKEN") and cfg.get("DISCORD_GUILD_ID")):
        return None
    return DiscordClient(cfg["DISCORD_BOT_TOKEN"], cfg["DISCORD_GUILD_ID"])


@bp.route("/discord/status", methods=["POST"])
@bot_secret_required
def status():
    discord_id = clean_str(request.form.get("id"))
    return jsonify(status=discord_status(discord_id))


@bp.route("/discord/generate", methods=["POST"])
@bot_secret_required
def generate():
    from modules.activists.models import get_activists_by_email

    discord_id = clean_str(request.form.get("id"))
    email = clean_str(request.form.get("email"))

    activists = get_activists_by_email(email)
    if not discord_id or not activists:
        return jsonify(status="invalid email")
    if len(activists) > 1:
        return jsonify(status="too many activists")
    if activists[0].discord_id:
        return jsonify(status="already confirmed")

    pending = start_confirmation(discord_id, email)
    link = f"{current_app.config['URL_PATH']}/discord/confirm/{discord_id}/{pending.token}"
    if not ses_configured():
        logger.warning("SES not configured; confirmation email not sent", extra={"discord_id": discord_id})
        return jsonify(status="success")

    body = (
        f"<p>Hi {escape(activists[0].name)},</p>"
        f'<p>Please <a href="{escape(link)}">click here</a> to confirm your Discord account.</p>'
        f"<p>If you did not request this, contact {escape(current_app.config['SUPPORT_EMAIL'])}.</p>"
    )
    try:
        send_email(current_app.config["DISCORD_FROM_EMAIL"], [email], "Confirm your Discord account", body)
    except MailError:
        return jsonify(status="error")
    return jsonify(status="success")


@bp.route("/discord/confirm/<discord_id>/<token>")
def confirm(discord_id: str, token: str):
    from modules.activists.models import get_activists_by_email

    pending = find_pending(discord_id, token)
    if pending is None:
        return render_template("discord.html", confirmed=False,
                               message="This confirmation link is invalid or has expired.")

    activists = get_activists_by_email(pending.email)
    if len(activists) != 1:
        return render_template("discord.html", confirmed=False,
                               message="We could not match your email to a single activist.")

    activist = activists[0]
    activist.discord_id = discord_id
    pending.confirmed = True
    db.session.commit()
    logger.info("discord account confirmed", extra={"discord_id": discord_id, "activist_id": activist.id})

    client = _discord_client()
    if client is not None:
        with client:
            try:
                client.update_nickname(discord_id, activist.name)
                for role in discord_roles_for(activist):
                    client.add_user_role(discord_id, role)
                client.send_message(discord_id, f"Welcome, {activist.name}! Your Discord account is now confirmed.")
            except DiscordError as exc:
                logger.error("discord update failed", extra={"discord_id": discord_id, "error": str(exc)})

    return render_template("discord.html", confirmed=True, name=activist.name, message="")
