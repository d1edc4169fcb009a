"""Supporters (campaign sign-ups) module package."""

from flask import Blueprint

bp = Blueprint("supporters", __name__)

from . import models  # noqa: E402  pylint: disable=wrong-import-position
from . import routes  # noqa: E402  pylint: disable=wrong-import-position

__all__ = ["bp", "models", "routes"]
