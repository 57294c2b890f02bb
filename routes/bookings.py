from flask import Blueprint, request, jsonify, g

from models import db
from models.booking import Booking
from models.tutor import Tutor
from services.availability import find_available_tutors
from services.reconciler import BookingError, can_manage, create_booking, cancel_booking, save_report
from utils.auth_context import current_student_id, login_required
from utils.serializers import booking_to_dict
from utils.slots import is_valid_time_slot, parse_date

bookings_bp = Blueprint("bookings", __name__, url_prefix="/api")


def _error(message: str, status_code: int):
    # booking clients read "message", the rest of the API reads "error"
    return jsonify(error=message, message=message), status_code


def _can_view(booking: Booking) -> bool:
    if can_manage(g.user, booking):
        return True
    tutor = Tutor.query.filter_by(user_id=g.user.id).first()
    return bool(tutor and tutor.id == booking.tutor_id)


# ---------- search: open tutors for a slot ----------
@bookings_bp.get("/tutors/available")
@login_required
def available_tutors():
    subject = (request.args.get("subject") or "").strip()
    date_str = request.args.get("date")
    time_slot = request.args.get("time_slot") or request.args.get("timeSlot")
    school_level = (request.args.get("school_level") or request.args.get("schoolLevel") or "").strip() or None

    if not subject or not date_str or not time_slot:
        return _error("subject, date, time_slot are required", 400)
    try:
        day = parse_date(date_str)
    except ValueError:
        return _error("Invalid date. Use YYYY-MM-DD", 400)
    if not is_valid_time_slot(time_slot):
        return _error("Invalid time slot", 400)

    return jsonify([
        {
            "tutor_id": tutor.id,
            "shift_id": shift.id,
            "name": tutor.full_name,
            "university": tutor.university,
            "subject": tag,
            "date": shift.date.isoformat(),
            "time_slot": shift.time_slot,
        }
        for tutor, shift, tag in find_available_tutors(subject, day, time_slot, school_level)
    ]), 200


# ---------- parents / students: bookings ----------
@bookings_bp.get("/bookings")
@login_required
def list_bookings():
    status = request.args.get("status")  # confirmed/cancelled
    student_id = current_student_id()
    if student_id:
        q = Booking.query.filter_by(student_id=student_id)
    else:
        q = Booking.query.filter_by(user_id=g.user.id)
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.date.asc(), Booking.time_slot.asc()).all()
    return jsonify([booking_to_dict(b) for b in rows]), 200


@bookings_bp.get("/bookings/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or not _can_view(booking):
        return _error("Booking not found", 404)
    return jsonify(booking_to_dict(booking, with_report=True)), 200


@bookings_bp.post("/bookings")
@login_required
def post_booking():
    data = request.get_json(silent=True) or {}
    try:
        booking = create_booking(g.user, data)
    except BookingError as err:
        return _error(err.message, err.status_code)
    return jsonify(booking_to_dict(booking)), 201


@bookings_bp.delete("/bookings/<int:booking_id>")
@login_required
def delete_booking(booking_id: int):
    try:
        booking = cancel_booking(g.user, booking_id)
    except BookingError as err:
        return _error(err.message, err.status_code)
    return jsonify(message="Cancelled", booking=booking_to_dict(booking)), 200


# ---------- tutors: lesson report ----------
@bookings_bp.post("/bookings/<int:booking_id>/report")
@login_required
def post_report(booking_id: int):
    data = request.get_json(silent=True) or {}
    try:
        save_report(g.user, booking_id, data)
    except BookingError as err:
        return _error(err.message, err.status_code)
    booking = db.session.get(Booking, booking_id)
    return jsonify(booking_to_dict(booking, with_report=True)), 200
