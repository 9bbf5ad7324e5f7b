"""Domain services for the signup, login and password-reset workflows."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from kumbam_auth import otp_service
from kumbam_auth.otp_service import OtpStatus
from kumbam_ext.db import db
from kumbam_ext.email import NotificationSink
from kumbam_ext.errors import (
    ConflictError,
    ExpiredError,
    InvalidCredential,
    NotFoundError,
    PersistenceFailure,
)
from kumbam_models.otp import OtpRecord
from kumbam_models.user import User

PURPOSE_LOGIN = "login"
PURPOSE_PASSWORD_RESET = "password_reset"
PURPOSE_RESEND = "resend"

_REJECTIONS = {
    OtpStatus.NOT_FOUND: (NotFoundError, "No OTP found"),
    OtpStatus.INVALID: (InvalidCredential, "Incorrect OTP"),
    OtpStatus.EXPIRED: (ExpiredError, "OTP expired"),
}


class UserService:
    """Store access for user records."""

    @staticmethod
    def get_by_email(email: str) -> Optional[User]:
        try:
            return User.query.filter_by(email=email.lower().strip()).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("User lookup failed")
            raise PersistenceFailure(detail=str(exc)) from exc

    @staticmethod
    def create_user(full_name: str, phone: str, email: str, password: str) -> User:
        if UserService.get_by_email(email):
            raise ConflictError("User already exists")
        user = User(full_name=full_name.strip(), phone=phone.strip(), email=email.lower().strip())
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent signup for the same email.
            db.session.rollback()
            raise ConflictError("User already exists") from exc
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("User insert failed")
            raise PersistenceFailure("Signup failed", detail=str(exc)) from exc
        current_app.logger.info("New user created", extra={"user_id": user.id})
        return user

    @staticmethod
    def update_password(user: User, password: str) -> None:
        user.set_password(password)
        try:
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            current_app.logger.exception("Password update failed", extra={"user_id": user.id})
            raise PersistenceFailure("Password reset failed", detail=str(exc)) from exc


@dataclass(frozen=True)
class LoginResult:
    user: User
    otp: OtpRecord


class AuthWorkflow:
    """Compose user lookups and OTP handling into the public auth flows.

    Each flow is a straight sequence of store calls; the first failing step
    raises and nothing after it runs.
    """

    def __init__(self, notifier: NotificationSink, *, clock: Callable[[], datetime] | None = None) -> None:
        self.notifier = notifier
        self.clock = clock or datetime.utcnow

    def signup(self, *, full_name: str, phone: str, email: str, password: str) -> User:
        return UserService.create_user(full_name, phone, email, password)

    def login(self, *, email: str, password: str) -> LoginResult:
        user = UserService.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        if not user.verify_password(password):
            current_app.logger.info("Login rejected", extra={"user_id": user.id, "component": "auth"})
            raise InvalidCredential("Incorrect password")
        # verify_password may have staged a rehash; issuing commits it.
        record = otp_service.issue_otp(user.email, notifier=self.notifier, purpose=PURPOSE_LOGIN, now=self.clock())
        return LoginResult(user=user, otp=record)

    def forgot_password(self, *, email: str) -> OtpRecord:
        user = UserService.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        return otp_service.issue_otp(user.email, notifier=self.notifier, purpose=PURPOSE_PASSWORD_RESET, now=self.clock())

    def verify_email_otp(self, *, email: str, otp: str) -> None:
        self._require_valid_otp(email, otp)

    def reset_password(self, *, email: str, otp: str, password: str) -> User:
        self._require_valid_otp(email, otp, invalid_message="Invalid OTP")
        user = UserService.get_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        UserService.update_password(user, password)
        current_app.logger.info("Password reset", extra={"user_id": user.id, "component": "auth"})
        return user

    def resend_email_otp(self, *, email: str) -> OtpRecord:
        user = UserService.get_by_email(email)
        if user is None:
            raise NotFoundError("Email not found")
        return otp_service.issue_otp(
            user.email,
            notifier=self.notifier,
            purpose=PURPOSE_RESEND,
            replace=True,
            now=self.clock(),
        )

    def _require_valid_otp(self, email: str, otp: str, *, invalid_message: str | None = None) -> None:
        status = otp_service.verify_otp(email.lower().strip(), otp, now=self.clock())
        if status is OtpStatus.VALID:
            return
        error_cls, message = _REJECTIONS[status]
        current_app.logger.info("OTP rejected", extra={"component": "auth", "context": {"status": status.value}})
        if status is OtpStatus.INVALID and invalid_message:
            message = invalid_message
        raise error_cls(message)
