"""Database helpers including SQLAlchemy and Flask-Migrate wiring."""
from __future__ import annotations

from flask import Flask
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

# Extensions stay unbound until the application factory configures them.
db = SQLAlchemy()
migrate = Migrate()


def init_app(app: Flask) -> None:
    """Bind SQLAlchemy and Flask-Migrate to the provided application."""
    db.init_app(app)
    migrate.init_app(app, db)
