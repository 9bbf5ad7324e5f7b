"""JSON endpoints for signup, login and the OTP flows.

Failures raise typed errors from ``kumbam_ext.errors``; the app-level handlers
turn them into ``{"success": false, "message": ...}`` responses.
"""
from __future__ import annotations

from flask import current_app, jsonify, request

from kumbam_auth import auth_bp
from kumbam_auth.schemas import (
    EmailRequest,
    LoginRequest,
    OtpRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from kumbam_auth.services import AuthWorkflow
from kumbam_ext.email import get_notifier
from kumbam_ext.validation import parse_payload


def _workflow() -> AuthWorkflow:
    return AuthWorkflow(get_notifier())


def _body() -> dict:
    return request.get_json(silent=True) or {}


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """Create an account."""
    data = parse_payload(SignupRequest, _body())
    _workflow().signup(full_name=data.full_name, phone=data.phone, email=data.email, password=data.password)
    return jsonify({"success": True, "message": "Signup successful"})


@auth_bp.route("/login", methods=["POST"])
def login():
    """Check the password and email a login OTP."""
    data = parse_payload(LoginRequest, _body())
    result = _workflow().login(email=data.email, password=data.password)
    payload = {
        "success": True,
        "phone": result.user.phone,
        "username": result.user.full_name,
        "message": "OTP sent successfully",
    }
    if current_app.config.get("OTP_ECHO_IN_LOGIN", False):
        payload["token"] = result.otp.code
    return jsonify(payload)


@auth_bp.route("/verify-email-otp", methods=["POST"])
def verify_email_otp():
    data = parse_payload(OtpRequest, _body())
    _workflow().verify_email_otp(email=data.email, otp=data.otp)
    return jsonify({"success": True, "message": "OTP verified successfully"})


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    data = parse_payload(EmailRequest, _body())
    _workflow().forgot_password(email=data.email)
    return jsonify({"success": True, "message": "OTP sent to your email"})


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    data = parse_payload(ResetPasswordRequest, _body())
    _workflow().reset_password(email=data.email, otp=data.otp, password=data.password)
    return jsonify({"success": True, "message": "Password reset successful"})


@auth_bp.route("/resend-email-otp", methods=["POST"])
def resend_email_otp():
    data = parse_payload(EmailRequest, _body())
    _workflow().resend_email_otp(email=data.email)
    return jsonify({"success": True, "message": "OTP resent successfully"})
