"""Tests for log formatting and request body sampling."""
from __future__ import annotations

import json
import logging

from kumbam_ext.logging import StructuredFormatter, mask_email
from kumbam_web.middleware import redact


def _record(**extra):
    record = logging.LogRecord("kumbam", logging.INFO, __file__, 1, "OTP issued", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_mask_email():
    assert mask_email("asha@example.com") == "a***@example.com"
    assert mask_email("no-at-sign") == "***"


def test_auth_fields_are_top_level_and_email_masked():
    line = StructuredFormatter().format(_record(component="otp", email="asha@x.com", purpose="login", otp_id=7))

    fields = json.loads(line)
    assert fields["component"] == "otp"
    assert fields["email"] == "a***@x.com"
    assert fields["purpose"] == "login"
    assert fields["otp_id"] == 7


def test_unmasked_plain_output():
    line = StructuredFormatter(as_json=False, mask_emails=False).format(_record(email="asha@x.com", user_id=3))

    assert "[app] OTP issued" in line
    assert "email=asha@x.com" in line
    assert "user_id=3" in line


def test_request_context_fields(app):
    with app.test_request_context("/api/login", method="POST"):
        from flask import g

        g.request_id = "req-9"
        g.request_body = {"email": "a@x.com", "password": "***"}
        fields = StructuredFormatter().collect(_record())

    assert fields["request_id"] == "req-9"
    assert fields["route"] == "/api/login"
    assert fields["context"]["request_body"]["password"] == "***"


def test_redact_masks_credentials_at_any_depth():
    payload = {"email": "a@x.com", "Password": "pw1", "nested": [{"otp": "123456", "keep": 1}]}

    assert redact(payload, {"password", "otp"}) == {
        "email": "a@x.com",
        "Password": "***",
        "nested": [{"otp": "***", "keep": 1}],
    }
