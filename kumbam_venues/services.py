"""Queries over banquet halls and bookings."""
from __future__ import annotations

from datetime import date
from typing import Any

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from kumbam_ext.db import db
from kumbam_ext.errors import ConflictError, NotFoundError, PersistenceFailure, ValidationError
from kumbam_models.venue import BanquetHall, Booking
from kumbam_venues.schemas import BookingRequest


def list_halls() -> list[BanquetHall]:
    return BanquetHall.query.order_by(BanquetHall.id).all()


def list_categories() -> list[str]:
    rows = db.session.execute(select(BanquetHall.category).distinct().order_by(BanquetHall.category))
    return [row[0] for row in rows]


def _month_bounds(month: int, year: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValidationError("Month must be between 1 and 12")
    if not 1900 <= year <= 9999:
        raise ValidationError("Year is out of range")
    start = date(year, month, 1)
    end = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return start, end


def availability(hall_id: int, month: int, year: int) -> dict[str, Any]:
    """Return the hall's name and price plus its bookings within one month."""
    start, end = _month_bounds(month, year)
    hall = db.session.get(BanquetHall, hall_id)
    if hall is None:
        raise NotFoundError("Banquet hall not found")
    bookings = (
        Booking.query.filter(
            Booking.banquet_id == hall_id,
            Booking.booking_date >= start,
            Booking.booking_date < end,
        )
        .order_by(Booking.booking_date)
        .all()
    )
    return {
        "hall": {"name": hall.name, "price": float(hall.price)},
        "bookings": [{"booking_date": b.booking_date.isoformat(), "status": b.status} for b in bookings],
    }


def create_booking(data: BookingRequest) -> Booking:
    hall = db.session.get(BanquetHall, data.banquet_id)
    if hall is None:
        raise NotFoundError("Banquet hall not found")
    taken = Booking.query.filter(
        Booking.banquet_id == hall.id,
        Booking.booking_date == data.booking_date,
        Booking.status != "cancelled",
    ).first()
    if taken is not None:
        raise ConflictError("Date already booked")
    booking = Booking(
        banquet_id=hall.id,
        email=data.email,
        booking_date=data.booking_date,
        guests=data.guests,
        notes=data.notes,
        status="pending",
    )
    db.session.add(booking)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Booking insert failed", extra={"component": "venues"})
        raise PersistenceFailure("Booking failed", detail=str(exc)) from exc
    current_app.logger.info("Booking created", extra={"component": "venues", "context": {"booking_id": booking.id}})
    return booking
