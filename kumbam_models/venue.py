"""Banquet halls and their bookings."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kumbam_ext.db import db


class BanquetHall(db.Model):
    __tablename__ = "banquet_halls"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(255), nullable=True)

    bookings: Mapped[list["Booking"]] = relationship(
        "Booking",
        back_populates="hall",
        cascade="all, delete-orphan",
        order_by="Booking.booking_date",
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "location": self.location,
            "capacity": self.capacity,
            "price": float(self.price) if self.price is not None else None,
            "description": self.description,
            "image": self.image,
        }


class Booking(db.Model):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    banquet_id: Mapped[int] = mapped_column(ForeignKey("banquet_halls.id", ondelete="CASCADE"), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    hall: Mapped[BanquetHall] = relationship("BanquetHall", back_populates="bookings")

    __table_args__ = (
        Index("ix_bookings_hall_date", "banquet_id", "booking_date"),
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "banquet_id": self.banquet_id,
            "email": self.email,
            "booking_date": self.booking_date.isoformat(),
            "guests": self.guests,
            "notes": self.notes,
            "status": self.status,
        }
