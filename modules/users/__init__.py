"""Staff user administration."""

from flask import Blueprint

bp = Blueprint("users", __name__)

from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "routes"]
