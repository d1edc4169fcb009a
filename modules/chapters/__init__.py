"""Chapters and their Facebook pages/events."""

from flask import Blueprint

bp = Blueprint("chapters", __name__)

from . import models  # noqa: E402  pylint: disable=wrong-import-position
from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "models", "routes"]
