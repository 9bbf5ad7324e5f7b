"""Venue and booking blueprint registration."""
from __future__ import annotations

from flask import Blueprint

venues_bp = Blueprint("kumbam_venues", __name__)

from kumbam_venues import routes  # noqa: E402,F401
