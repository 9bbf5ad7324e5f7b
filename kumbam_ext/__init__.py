"""Application factory and shared extension wiring."""
from __future__ import annotations

import os
from importlib import import_module
from typing import Dict, Type

from flask import Flask

from config import BaseConfig, DevConfig, ProdConfig, TestConfig
from kumbam_ext import db as db_ext
from kumbam_ext import email as email_ext
from kumbam_ext import errors as errors_ext
from kumbam_ext import logging as logging_ext
from kumbam_ext.email import NotificationSink

CONFIG_MAP: Dict[str, Type[BaseConfig]] = {
    "development": DevConfig,
    "dev": DevConfig,
    "production": ProdConfig,
    "prod": ProdConfig,
    "testing": TestConfig,
    "test": TestConfig,
}


def create_app(
    config_object: str | Type[BaseConfig] | None = None,
    *,
    notifier: NotificationSink | None = None,
    create_db: bool = True,
) -> Flask:
    """Application factory used by both CLI and WSGI entrypoints.

    ``notifier`` replaces the SMTP mailer, which is how tests observe the
    codes that would have been emailed.
    """
    app = Flask(__name__, static_folder=None)

    _load_config(app, config_object)
    logging_ext.configure_logging(app)
    errors_ext.init_app(app)

    db_ext.init_app(app)
    email_ext.init_app(app, notifier)

    import kumbam_models  # noqa: F401  (register tables on the metadata)

    _register_blueprints(app)
    _register_cli(app)
    _register_middleware(app)

    if create_db:
        with app.app_context():
            db_ext.db.create_all()

    return app


def _load_config(app: Flask, config_object: str | Type[BaseConfig] | None) -> None:
    if config_object is None:
        env_name = os.getenv("FLASK_ENV", "development").lower()
        config_cls = CONFIG_MAP.get(env_name, DevConfig)
    elif isinstance(config_object, str):
        key = config_object.lower()
        if key in CONFIG_MAP:
            config_cls = CONFIG_MAP[key]
        else:
            module_path, _, attr = config_object.rpartition(".")
            if module_path:
                module = import_module(module_path)
                config_cls = getattr(module, attr)
            else:
                raise KeyError(f"Unknown config identifier: {config_object}")
    else:
        config_cls = config_object

    app.config.from_object(config_cls)


def _register_blueprints(app: Flask) -> None:
    from kumbam_auth import auth_bp
    from kumbam_venues import venues_bp
    from kumbam_web import web_bp

    app.register_blueprint(web_bp)
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(venues_bp, url_prefix="/api")


def _register_cli(app: Flask) -> None:
    from kumbam_cli.manage import manage_cli

    app.cli.add_command(manage_cli, "manage")


def _register_middleware(app: Flask) -> None:
    from kumbam_web.middleware import init_app as middleware_init

    middleware_init(app)
