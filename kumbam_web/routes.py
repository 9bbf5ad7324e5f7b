"""Operational endpoints."""
from __future__ import annotations

from flask import current_app, jsonify, send_from_directory
from sqlalchemy import text

from kumbam_ext.db import db
from kumbam_web import web_bp


@web_bp.route("/healthz", methods=["GET"])
def healthz():
    """Report liveness and whether the database answers."""
    db.session.execute(text("SELECT 1"))
    return jsonify({"status": "ok", "app": current_app.config.get("APP_NAME")})


@web_bp.route("/uploads/<path:filename>", methods=["GET"])
def uploads(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
