"""User model and password hashing helpers."""
from __future__ import annotations

from datetime import datetime

from flask import current_app
from passlib.context import CryptContext
from passlib.hash import pbkdf2_sha256
from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kumbam_ext.db import db

# pbkdf2_sha256 is the default scheme. bcrypt stays listed so accounts imported
# from the previous store (bcrypt, cost 10) still verify; they are marked
# deprecated and rehashed on the next successful login.
_password_context = CryptContext(
    schemes=["pbkdf2_sha256", "bcrypt"],
    default="pbkdf2_sha256",
    deprecated="auto",
)


class User(db.Model):
    """Registered account identified by its email address."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def set_password(self, password: str) -> None:
        """Hash and store a new password."""
        rounds = int(current_app.config.get("PASSWORD_HASH_ROUNDS", 120000))
        self.password_hash = pbkdf2_sha256.using(rounds=rounds).hash(password)

    def verify_password(self, password: str) -> bool:
        """Check a candidate password, upgrading a deprecated hash on success.

        The upgraded hash is only staged on the session; the caller's next
        commit persists it.
        """
        stored = self.password_hash or ""
        try:
            valid, new_hash = _password_context.verify_and_update(password, stored)
        except ValueError:
            # Unrecognised or malformed hash, never a match.
            current_app.logger.warning("Unreadable password hash", extra={"user_id": self.id})
            return False
        if valid and new_hash:
            self.set_password(password)
        return valid

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
