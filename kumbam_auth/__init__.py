"""Authentication blueprint registration."""
from __future__ import annotations

from flask import Blueprint

auth_bp = Blueprint("kumbam_auth", __name__)

from kumbam_auth import routes  # noqa: E402,F401
