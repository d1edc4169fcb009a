from flask import jsonify, request

from extensions import db
from logging_config import get_logger

logger = get_logger(__name__)


class ValidationError(ValueError):
    """Bad input from a client; reported back as a JSON error."""


class NotFoundError(LookupError):
    """A referenced record does not exist."""


def send_error_message(err):
    """Roll back, log the error and answer with ``{"status": "error", "message": ...}``."""
    db.session.rollback()
    logger.warning("request failed: %s", err, extra={"path": request.path})
    return jsonify(status="error", message=str(err))


def json_body():
    """Decoded JSON request body; raises ValidationError when it is missing or malformed."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def clean_str(value):
    """Trim a submitted value; ``None`` becomes an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def parse_int(value, field):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")


def parse_float(value, field):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value!r}")
