"""One-time passcode log."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kumbam_ext.db import db


class OtpRecord(db.Model):
    """A code issued to an email address; the newest row per email is the active one."""

    __tablename__ = "otp_verification"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # Stored by value: forgot-password and resend may target addresses
    # that were never registered.
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(6), nullable=False)
    issued_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    __table_args__ = (
        Index("ix_otp_verification_email_issued", "email", "issued_at"),
    )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<OtpRecord {self.id} {self.email}>"
