"""Read endpoints for halls and the booking endpoint."""
from __future__ import annotations

from flask import jsonify, request

from kumbam_ext.validation import parse_payload
from kumbam_venues import services, venues_bp
from kumbam_venues.schemas import BookingRequest


@venues_bp.route("/banquets", methods=["GET"])
def list_banquets():
    return jsonify([hall.to_dict() for hall in services.list_halls()])


@venues_bp.route("/categories", methods=["GET"])
def list_categories():
    return jsonify(services.list_categories())


@venues_bp.route("/availability/<int:hall_id>/<int:month>/<int:year>", methods=["GET"])
def availability(hall_id: int, month: int, year: int):
    """Bookings for one hall in a calendar month."""
    return jsonify(services.availability(hall_id, month, year))


@venues_bp.route("/bookings", methods=["POST"])
def create_booking():
    data = parse_payload(BookingRequest, request.get_json(silent=True) or {})
    booking = services.create_booking(data)
    return jsonify({"success": True, "message": "Booking created", "booking": booking.to_dict()})
