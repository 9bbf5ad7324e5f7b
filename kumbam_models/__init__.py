"""SQLAlchemy models exposed as a cohesive package."""
from __future__ import annotations

from kumbam_models.otp import OtpRecord
from kumbam_models.user import User
from kumbam_models.venue import BanquetHall, Booking

__all__ = [
    "BanquetHall",
    "Booking",
    "OtpRecord",
    "User",
]
