"""Shared fixtures: a test app on in-memory SQLite and a recording notifier."""
from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from config import TestConfig
from kumbam_ext import create_app
from kumbam_ext.db import db


@dataclass
class SentOtp:
    email: str
    code: str
    purpose: str


@dataclass
class RecordingNotifier:
    """Notification sink that remembers every code instead of emailing it."""

    sent: list[SentOtp] = field(default_factory=list)
    fail_with: Exception | None = None

    def send_otp(self, email: str, code: str, *, purpose: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.sent.append(SentOtp(email=email, code=code, purpose=purpose))

    @property
    def last(self) -> SentOtp:
        return self.sent[-1]


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def app(notifier):
    app = create_app(TestConfig, notifier=notifier)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def ctx(app):
    with app.app_context():
        yield app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def signup(client):
    """Register an account through the API."""

    def _signup(email: str = "a@x.com", password: str = "pw1", full_name: str = "Asha Rao", phone: str = "9876543210"):
        resp = client.post(
            "/api/signup",
            json={"fullName": full_name, "phone": phone, "email": email, "password": password},
        )
        assert resp.get_json()["success"] is True
        return resp

    return _signup
