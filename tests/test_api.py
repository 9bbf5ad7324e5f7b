"""HTTP-level tests for the auth endpoints."""
from __future__ import annotations

import smtplib
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from kumbam_models.user import User


class TestSignupEndpoint:
    def test_creates_account(self, client, app):
        resp = client.post(
            "/api/signup",
            json={"fullName": "Asha Rao", "phone": "9876543210", "email": "A@X.com", "password": "pw1"},
        )

        assert resp.status_code == 200
        assert resp.get_json()["success"] is True
        with app.app_context():
            assert User.query.filter_by(email="a@x.com").count() == 1

    def test_duplicate_is_business_failure(self, client, signup):
        signup()

        resp = client.post(
            "/api/signup",
            json={"fullName": "Other", "phone": "1", "email": "a@x.com", "password": "pw9"},
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body == {**body, "success": False, "message": "User already exists", "code": "CONFLICT"}

    def test_missing_fields(self, client):
        resp = client.post("/api/signup", json={"email": "a@x.com"})

        body = resp.get_json()
        assert resp.status_code == 200
        assert body["success"] is False
        assert body["message"] == "All fields are required"

    def test_password_whitespace_is_significant(self, client, signup):
        signup(password="  secret  ")

        trimmed = client.post("/api/login", json={"email": "a@x.com", "password": "secret"}).get_json()
        exact = client.post("/api/login", json={"email": "a@x.com", "password": "  secret  "}).get_json()

        assert trimmed == {**trimmed, "success": False, "message": "Incorrect password"}
        assert exact["success"] is True

    def test_password_of_spaces_is_accepted(self, client, signup):
        signup(email="b@x.com", password="    ")

        body = client.post("/api/login", json={"email": "b@x.com", "password": "    "}).get_json()

        assert body["success"] is True

    def test_contact_fields_are_trimmed(self, client, app):
        client.post(
            "/api/signup",
            json={"fullName": "  Asha Rao ", "phone": " 98765 ", "email": " A@X.com ", "password": "pw1"},
        )

        with app.app_context():
            user = User.query.filter_by(email="a@x.com").one()
            assert (user.full_name, user.phone) == ("Asha Rao", "98765")

    def test_blank_name_is_required(self, client):
        body = client.post(
            "/api/signup",
            json={"fullName": "   ", "phone": "1", "email": "a@x.com", "password": "pw1"},
        ).get_json()

        assert body["message"] == "fullName is required"

    def test_malformed_email(self, client):
        resp = client.post(
            "/api/signup",
            json={"fullName": "A", "phone": "1", "email": "not-an-email", "password": "pw1"},
        )

        assert resp.get_json()["message"] == "A valid email address is required"


class TestLoginEndpoint:
    def test_returns_contact_details_and_token(self, client, signup, notifier):
        signup()

        resp = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"})

        body = resp.get_json()
        assert body["success"] is True
        assert body["phone"] == "9876543210"
        assert body["username"] == "Asha Rao"
        assert body["token"] == notifier.last.code

    def test_token_hidden_when_echo_disabled(self, client, signup, app):
        signup()
        app.config["OTP_ECHO_IN_LOGIN"] = False

        body = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"}).get_json()

        assert body["success"] is True
        assert "token" not in body

    @pytest.mark.parametrize(
        "payload, message",
        [
            ({"email": "ghost@x.com", "password": "pw1"}, "User not found"),
            ({"email": "a@x.com", "password": "wrong"}, "Incorrect password"),
        ],
    )
    def test_rejections(self, client, signup, payload, message):
        signup()

        resp = client.post("/api/login", json=payload)

        assert resp.status_code == 200
        assert resp.get_json()["message"] == message

    def test_mail_failure_reported(self, client, signup, notifier):
        signup()
        notifier.fail_with = smtplib.SMTPException("nope")

        body = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"}).get_json()

        assert body["success"] is False
        assert body["message"] == "Failed to send OTP email"
        assert body["code"] == "DELIVERY_FAILED"

    def test_store_outage_is_500_with_generic_message(self, client, signup, app):
        signup()
        with app.app_context(), mock.patch.object(User, "query") as query:
            query.filter_by.side_effect = OperationalError("SELECT", {}, Exception("secret dsn"))
            resp = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"})

        assert resp.status_code == 500
        body = resp.get_json()
        assert body["success"] is False
        assert body["message"] == "Server error"
        assert "secret dsn" not in body["message"]


class TestOtpEndpoints:
    def test_verify_codes(self, client, signup, notifier):
        signup()
        client.post("/api/login", json={"email": "a@x.com", "password": "pw1"})
        code = notifier.last.code

        ok = client.post("/api/verify-email-otp", json={"email": "a@x.com", "otp": code}).get_json()
        wrong = client.post(
            "/api/verify-email-otp",
            json={"email": "a@x.com", "otp": "000000"},
        ).get_json()
        missing = client.post("/api/verify-email-otp", json={"email": "b@x.com", "otp": code}).get_json()

        assert ok["success"] is True
        assert wrong == {**wrong, "success": False, "message": "Incorrect OTP"}
        assert missing == {**missing, "success": False, "message": "No OTP found"}

    def test_numeric_otp_accepted(self, client, signup, notifier):
        signup()
        client.post("/api/login", json={"email": "a@x.com", "password": "pw1"})

        body = client.post(
            "/api/verify-email-otp",
            json={"email": "a@x.com", "otp": int(notifier.last.code)},
        ).get_json()

        assert body["success"] is True

    def test_forgot_password(self, client, signup, notifier):
        signup()

        ok = client.post("/api/forgot-password", json={"email": "a@x.com"}).get_json()
        unknown = client.post("/api/forgot-password", json={"email": "ghost@x.com"}).get_json()
        blank = client.post("/api/forgot-password", json={}).get_json()

        assert ok["success"] is True
        assert notifier.last.purpose == "password_reset"
        assert unknown["message"] == "User not found"
        assert blank["message"] == "email is required"

    def test_reset_requires_all_fields(self, client):
        body = client.post("/api/reset-password", json={"email": "a@x.com"}).get_json()

        assert body["success"] is False
        assert body["message"] == "All fields are required"

    def test_reset_with_wrong_code(self, client, signup, notifier):
        signup()
        client.post("/api/forgot-password", json={"email": "a@x.com"})
        wrong = "100000" if notifier.last.code != "100000" else "100001"

        body = client.post(
            "/api/reset-password",
            json={"email": "a@x.com", "otp": wrong, "password": "pw2"},
        ).get_json()

        assert body == {**body, "success": False, "message": "Invalid OTP"}

    def test_resend(self, client, signup, notifier):
        signup()
        client.post("/api/login", json={"email": "a@x.com", "password": "pw1"})
        first = notifier.last.code

        body = client.post("/api/resend-email-otp", json={"email": "a@x.com"}).get_json()
        unknown = client.post("/api/resend-email-otp", json={"email": "ghost@x.com"}).get_json()

        assert body == {**body, "success": True, "message": "OTP resent successfully"}
        assert unknown["message"] == "Email not found"
        assert notifier.last.purpose == "resend"
        if notifier.last.code != first:
            stale = client.post("/api/verify-email-otp", json={"email": "a@x.com", "otp": first}).get_json()
            assert stale["success"] is False


class TestStatusPolicy:
    def test_per_error_status_codes_when_legacy_disabled(self, client, signup, app):
        app.config["LEGACY_STATUS_CODES"] = False
        signup()

        assert client.post("/api/login", json={"email": "ghost@x.com", "password": "x"}).status_code == 404
        assert client.post("/api/login", json={"email": "a@x.com", "password": "x"}).status_code == 401
        assert client.post("/api/verify-email-otp", json={"email": "a@x.com", "otp": "1"}).status_code == 404
        assert client.post("/api/signup", json={}).status_code == 400

    def test_unknown_route_keeps_404(self, client):
        resp = client.get("/api/nope")

        assert resp.status_code == 404
        assert resp.get_json()["success"] is False


def test_full_scenario(client, signup, notifier):
    signup(email="a@x.com", password="pw1")

    login = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"}).get_json()
    token = login["token"]
    assert login["success"] is True and len(token) == 6

    verified = client.post("/api/verify-email-otp", json={"email": "a@x.com", "otp": token}).get_json()
    assert verified["success"] is True

    reset = client.post(
        "/api/reset-password",
        json={"email": "a@x.com", "otp": token, "password": "pw2"},
    ).get_json()
    assert reset["success"] is True

    old = client.post("/api/login", json={"email": "a@x.com", "password": "pw1"}).get_json()
    assert old == {**old, "success": False, "message": "Incorrect password"}

    new = client.post("/api/login", json={"email": "a@x.com", "password": "pw2"}).get_json()
    assert new["success"] is True


def test_responses_carry_request_id(client):
    resp = client.post("/api/forgot-password", json={"email": "ghost@x.com"}, headers={"X-Request-ID": "req-123"})

    assert resp.headers["X-Request-ID"] == "req-123"
    assert resp.get_json()["request_id"] == "req-123"


class TestOperationalRoutes:
    def test_healthz(self, client):
        assert client.get("/healthz").get_json() == {"status": "ok", "app": "KUMBAM"}

    def test_cors_preflight(self, client):
        resp = client.options("/api/login", headers={"Origin": "http://localhost:3000"})

        assert resp.status_code == 200
        assert resp.headers["Access-Control-Allow-Origin"] == "*"
        assert "POST" in resp.headers["Access-Control-Allow-Methods"]

    def test_uploads_served_from_upload_folder(self, client, app, tmp_path):
        (tmp_path / "hall.jpg").write_bytes(b"jpeg-bytes")
        app.config["UPLOAD_FOLDER"] = str(tmp_path)

        resp = client.get("/uploads/hall.jpg")

        assert resp.status_code == 200
        assert resp.data == b"jpeg-bytes"
        assert client.get("/uploads/missing.jpg").status_code == 404
