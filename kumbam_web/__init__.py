"""Health check, upload serving and request middleware."""
from __future__ import annotations

from flask import Blueprint

web_bp = Blueprint("kumbam_web", __name__)

# Import views after blueprint creation to avoid circular imports.
from kumbam_web import routes  # noqa: E402,F401
