"""Sign-in flow: Google token sign-in, logout and the 403 page."""

from flask import current_app, jsonify, render_template, request

from logging_config import get_logger
from models import ADBUser
from permissions import clear_auth_session, set_auth_session
from utils import ValidationError

from . import bp
from .google import verify_id_token

logger = get_logger(__name__)


@bp.route("/login")
def login():
    return render_template(
        "login.html",
        page_name="Login",
        google_client_id=current_app.config.get("GOOGLE_CLIENT_ID"),
    )


@bp.route("/logout")
def logout():
    clear_auth_session()
    return render_template("logout.html", page_name="Logout")


@bp.route("/403")
def forbidden():
    return render_template("403.html", page_name="403 - Forbidden")


@bp.route("/tokensignin", methods=["POST"])
def token_sign_in():
    try:
        email = verify_id_token(
            request.form.get("idtoken", ""),
            current_app.config.get("GOOGLE_CLIENT_ID", ""),
        )
    except ValidationError as err:
        logger.info("token sign-in rejected: %s", err)
        return jsonify(redirect=False, message=str(err))

    user = ADBUser.query.filter_by(email=email).first()
    if user is None or not set_auth_session(user):
        return jsonify(redirect=False, message="Email is not valid")

    logger.info("user signed in", extra={"user_id": user.id})
    return jsonify(redirect=True)
