from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BOOKING_CONFIRMED
from models.tutor import Tutor
from models.tutor_shift import TutorShift
from security.rbac import require_roles
from utils.audit import log_event
from utils.fields import FieldError, text_field
from utils.roles import TUTOR
from utils.serializers import booking_to_dict, shift_to_dict
from utils.slots import is_valid_time_slot, parse_date

tutor_bp = Blueprint("tutor", __name__, url_prefix="/api/tutor")


def _current_tutor():
    return Tutor.query.filter_by(user_id=g.user.id).first()


def _normalize_subjects(value) -> str:
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = (value or "").split(",")
    return ",".join(s.strip() for s in items if isinstance(s, str) and s.strip())


def _tutor_dict(t: Tutor):
    return {
        "id": t.id,
        "last_name": t.last_name,
        "first_name": t.first_name,
        "university": t.university,
        "subjects": t.subject_list(),
        "bio": t.bio,
        "is_active": t.is_active,
    }


# ---------- profile ----------
@tutor_bp.get("/profile")
@require_roles(TUTOR)
def get_profile():
    tutor = _current_tutor()
    if not tutor:
        return jsonify(error="Tutor profile not found"), 404
    return jsonify(_tutor_dict(tutor)), 200


@tutor_bp.post("/profile")
@require_roles(TUTOR)
def save_profile():
    data = request.get_json(silent=True) or {}
    tutor = _current_tutor()
    created = tutor is None

    try:
        last_name = text_field(data, "last_name") or (tutor.last_name if tutor else None)
        first_name = text_field(data, "first_name") or (tutor.first_name if tutor else None)
        university = text_field(data, "university")
        bio = text_field(data, "bio")
    except FieldError as exc:
        return jsonify(error=str(exc)), 400
    if not last_name or not first_name:
        return jsonify(error="last_name and first_name are required"), 400

    if created:
        tutor = Tutor(user_id=g.user.id, last_name=last_name, first_name=first_name)
        db.session.add(tutor)
    tutor.last_name = last_name
    tutor.first_name = first_name
    if "university" in data:
        tutor.university = university
    if "bio" in data:
        tutor.bio = bio
    if "subjects" in data or created:
        tutor.subjects = _normalize_subjects(data.get("subjects"))
    db.session.commit()

    log_event("TUTOR_PROFILE_SAVE", user_id=g.user.id, entity="tutor", entity_id=tutor.id)
    return jsonify(_tutor_dict(tutor)), 201 if created else 200


# ---------- shifts ----------
@tutor_bp.get("/shifts")
@require_roles(TUTOR)
def list_shifts():
    tutor = _current_tutor()
    if not tutor:
        return jsonify(error="Tutor profile not found"), 404

    q = TutorShift.query.filter_by(tutor_id=tutor.id)
    try:
        if request.args.get("from"):
            q = q.filter(TutorShift.date >= parse_date(request.args["from"]))
        if request.args.get("to"):
            q = q.filter(TutorShift.date <= parse_date(request.args["to"]))
    except ValueError:
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400

    rows = q.order_by(TutorShift.date.asc(), TutorShift.time_slot.asc()).all()
    return jsonify([shift_to_dict(s) for s in rows]), 200


@tutor_bp.get("/shifts/<date_str>")
@require_roles(TUTOR)
def shifts_on_date(date_str: str):
    tutor = _current_tutor()
    if not tutor:
        return jsonify(error="Tutor profile not found"), 404
    try:
        day = parse_date(date_str)
    except ValueError:
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400

    rows = (
        TutorShift.query
        .filter_by(tutor_id=tutor.id, date=day)
        .order_by(TutorShift.time_slot.asc())
        .all()
    )
    return jsonify([shift_to_dict(s) for s in rows]), 200


@tutor_bp.post("/shifts")
@require_roles(TUTOR)
def upsert_shift():
    tutor = _current_tutor()
    if not tutor:
        return jsonify(error="Tutor profile not found"), 404

    data = request.get_json(silent=True) or {}
    time_slot = data.get("time_slot")
    is_available = data.get("is_available", True)
    try:
        subject = text_field(data, "subject")
    except FieldError as exc:
        return jsonify(error=str(exc)), 400

    if not data.get("date") or not time_slot:
        return jsonify(error="date and time_slot are required"), 400
    try:
        day = parse_date(data["date"])
    except ValueError:
        return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400
    if not is_valid_time_slot(time_slot):
        return jsonify(error="Invalid time slot"), 400
    if not isinstance(is_available, bool):
        return jsonify(error="is_available must be a boolean"), 400
    if subject and subject not in tutor.subject_list():
        return jsonify(error="Subject is not in your subject list"), 400

    shift = TutorShift.query.filter_by(tutor_id=tutor.id, date=day, time_slot=time_slot).first()
    created = shift is None
    if created:
        shift = TutorShift(tutor_id=tutor.id, date=day, time_slot=time_slot)
        db.session.add(shift)
    else:
        booked = Booking.query.filter_by(tutor_shift_id=shift.id, status=BOOKING_CONFIRMED).first()
        if booked:
            return jsonify(error="Shift has a confirmed booking"), 409

    shift.is_available = is_available
    shift.subject = subject
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify(error="Shift already exists for that date and time slot"), 409

    log_event("SHIFT_UPDATE", user_id=g.user.id, entity="tutor_shift", entity_id=shift.id,
              metadata={"is_available": is_available})
    return jsonify(shift_to_dict(shift)), 201 if created else 200


# ---------- bookings assigned to me ----------
@tutor_bp.get("/bookings")
@require_roles(TUTOR)
def my_bookings():
    tutor = _current_tutor()
    if not tutor:
        return jsonify(error="Tutor profile not found"), 404

    q = Booking.query.filter_by(tutor_id=tutor.id)
    status = request.args.get("status")
    if status:
        q = q.filter_by(status=status)
    rows = q.order_by(Booking.date.asc(), Booking.time_slot.asc()).all()
    return jsonify([booking_to_dict(b) for b in rows]), 200
