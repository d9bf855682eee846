"""Goals blueprint package."""

from __future__ import annotations

from flask import Blueprint

bp = Blueprint("goals", __name__, url_prefix="/goals")

from . import routes  # noqa: E402,F401 - ensure routes register

__all__ = ["bp"]
