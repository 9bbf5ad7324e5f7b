"""Helpers for issuing and verifying one-time passcodes."""
from __future__ import annotations

import enum
import hmac
import secrets
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from kumbam_ext.db import db
from kumbam_ext.email import NotificationSink
from kumbam_ext.errors import DeliveryFailure, PersistenceFailure
from kumbam_models.otp import OtpRecord

CODE_MIN = 100_000
CODE_MAX = 999_999


class OtpStatus(enum.Enum):
    VALID = "valid"
    INVALID = "invalid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


def _now() -> datetime:
    return datetime.utcnow()


def generate_code() -> str:
    """Return a uniformly random code in [100000, 999999]."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


def otp_ttl() -> timedelta:
    minutes = int(current_app.config.get("OTP_TTL_MINUTES", 5))
    return timedelta(minutes=max(minutes, 1))


def latest_otp(email: str) -> OtpRecord | None:
    """Return the most recently issued record for an email."""
    try:
        return (
            OtpRecord.query.filter_by(email=email)
            .order_by(OtpRecord.issued_at.desc(), OtpRecord.id.desc())
            .first()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("OTP lookup failed", extra={"email": email})
        raise PersistenceFailure(detail=str(exc)) from exc


def issue_otp(
    email: str,
    *,
    notifier: NotificationSink,
    purpose: str,
    replace: bool = False,
    now: datetime | None = None,
) -> OtpRecord:
    """Persist a fresh code for ``email`` and hand it to the notifier.

    With ``replace`` the latest record is rewritten in place (code, issue time
    and expiry) instead of appending a row. The write is committed before
    delivery and is kept when delivery fails.
    """
    now = now or _now()
    code = generate_code()
    record = latest_otp(email) if replace else None
    if record is None:
        record = OtpRecord(email=email)
        db.session.add(record)
    record.code = code
    record.issued_at = now
    record.expires_at = now + otp_ttl()
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("OTP insert failed", extra={"email": email, "purpose": purpose})
        raise PersistenceFailure("OTP generation failed", detail=str(exc)) from exc

    try:
        notifier.send_otp(email, code, purpose=purpose)
    except Exception as exc:
        current_app.logger.exception(
            "OTP delivery failed",
            extra={"email": email, "purpose": purpose, "otp_id": record.id, "component": "otp"},
        )
        raise DeliveryFailure("Failed to send OTP email", detail=str(exc)) from exc

    current_app.logger.info(
        "OTP issued",
        extra={"email": email, "purpose": purpose, "otp_id": record.id, "component": "otp"},
    )
    return record


def verify_otp(email: str, candidate: str, *, now: datetime | None = None) -> OtpStatus:
    """Check ``candidate`` against the active code for ``email``.

    Equality is checked before expiry, so a wrong code reports INVALID even
    once the record has expired. Nothing is consumed.
    """
    now = now or _now()
    record = latest_otp(email)
    if record is None:
        return OtpStatus.NOT_FOUND
    if not hmac.compare_digest(str(candidate or "").strip().encode(), record.code.encode()):
        return OtpStatus.INVALID
    if record.is_expired(now):
        return OtpStatus.EXPIRED
    return OtpStatus.VALID


def purge_expired_otps(*, now: datetime | None = None, grace: timedelta | None = None) -> int:
    """Delete records that expired more than ``grace`` ago and return the count."""
    now = now or _now()
    if grace is None:
        grace = timedelta(minutes=int(current_app.config.get("OTP_PURGE_GRACE_MINUTES", 60)))
    cutoff = now - grace
    try:
        removed = OtpRecord.query.filter(OtpRecord.expires_at < cutoff).delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise PersistenceFailure(detail=str(exc)) from exc
    current_app.logger.info("Expired OTPs purged", extra={"component": "otp", "context": {"removed": removed}})
    return removed
