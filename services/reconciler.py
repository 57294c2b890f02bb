"""Booking lifecycle: reserve a tutor shift, charge a ticket, and undo both on cancel.

Each write path runs in one transaction. The shift is claimed with a
conditional UPDATE (is_available true -> false) so two requests racing for the
same shift cannot both win, and the partial unique index on bookings backs the
one-live-booking-per-student-slot rule at commit time.
"""
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BOOKING_CONFIRMED, BOOKING_CANCELLED, REPORT_COMPLETED
from models.lesson_report import LessonReport
from models.student import Student
from models.tutor import Tutor
from models.tutor_shift import TutorShift
from security.rbac import is_admin, owns_student
from services import notifications, tickets
from utils.audit import log_event
from utils.fields import FieldError, text_field
from utils.slots import is_valid_time_slot, parse_date

MSG_DUPLICATE = "Booking already exists for this date and time"
MSG_SHIFT_UNAVAILABLE = "Shift unavailable"
MSG_INSUFFICIENT = "Insufficient tickets"


class BookingError(Exception):
    def __init__(self, message: str, status_code: int = 400, action: str | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.action = action


def _int_field(data: dict, key: str, required: bool = True):
    value = data.get(key)
    if value in (None, ""):
        if required:
            raise BookingError(f"{key} required", 400)
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BookingError(f"{key} must be an integer", 400)


def resolve_student(payer, student_id):
    """The student a payer books for: explicit id, the payer's own student account, or their only student."""
    if student_id is None:
        if payer.student_id:
            student_id = payer.student_id
        else:
            students = Student.query.filter_by(user_id=payer.id, is_active=True).all()
            if len(students) != 1:
                raise BookingError("student_id required", 400)
            return students[0]

    student = db.session.get(Student, student_id)
    if not student or not student.is_active or not owns_student(payer, student):
        raise BookingError("Student not found", 404)
    return student


def can_manage(user, booking) -> bool:
    """The paying parent, the booked student's own login, or an admin."""
    if booking.user_id == user.id or is_admin(user):
        return True
    return owns_student(user, db.session.get(Student, booking.student_id))


def find_duplicate(student_id: int, date, time_slot: str):
    return Booking.query.filter_by(
        student_id=student_id, date=date, time_slot=time_slot, status=BOOKING_CONFIRMED
    ).first()


def _fail(err: BookingError, payer_id, metadata):
    db.session.rollback()
    if err.action:
        log_event(err.action, user_id=payer_id, entity="booking", metadata=metadata)
    raise err


def _notify(kind: str, sender, booking, user_id):
    """Best effort: a failed or crashing mail send is recorded and never propagates."""
    try:
        failures = sender(booking)
    except Exception as exc:  # the booking is already committed
        failures = [str(exc)]
    if failures:
        current_app.logger.warning("booking %s %s email failed: %s", booking.id, kind, failures)
        log_event("BOOKING_EMAIL_FAIL", user_id=user_id, entity="booking", entity_id=booking.id,
                  metadata={"kind": kind, "errors": failures})
    return not failures


def create_booking(payer, data: dict) -> Booking:
    """Validate and record a booking for payer. Raises BookingError on any rejection."""
    tutor_id = _int_field(data, "tutor_id")
    shift_id = _int_field(data, "shift_id")
    student = resolve_student(payer, _int_field(data, "student_id", required=False))

    metadata = {"student_id": student.id, "tutor_id": tutor_id, "shift_id": shift_id}

    if tickets.balance(student.id) < 1:
        _fail(BookingError(MSG_INSUFFICIENT, 400, "BOOKING_FAIL_INSUFFICIENT_TICKETS"), payer.id, metadata)

    shift = db.session.get(TutorShift, shift_id)
    if not shift:
        raise BookingError("Shift not found", 404)
    tutor = db.session.get(Tutor, shift.tutor_id)
    if shift.tutor_id != tutor_id or not tutor or not tutor.is_active:
        _fail(BookingError(MSG_SHIFT_UNAVAILABLE, 409, "BOOKING_FAIL_SHIFT_UNAVAILABLE"), payer.id, metadata)

    date = shift.date
    if data.get("date"):
        try:
            date = parse_date(data["date"])
        except ValueError:
            raise BookingError("Invalid date. Use YYYY-MM-DD", 400)
    time_slot = data.get("time_slot") or shift.time_slot
    if not is_valid_time_slot(time_slot):
        raise BookingError("Invalid time slot", 400)
    if date != shift.date or time_slot != shift.time_slot:
        raise BookingError("Shift does not match the requested date and time slot", 400)

    if find_duplicate(student.id, date, time_slot):
        _fail(BookingError(MSG_DUPLICATE, 409, "BOOKING_FAIL_DUPLICATE"), payer.id, metadata)

    if not shift.is_available:
        _fail(BookingError(MSG_SHIFT_UNAVAILABLE, 409, "BOOKING_FAIL_SHIFT_UNAVAILABLE"), payer.id, metadata)

    try:
        subject = text_field(data, "subject") or shift.subject
    except FieldError as exc:
        raise BookingError(str(exc), 400)
    if not subject:
        raise BookingError("subject required", 400)

    claimed = (
        TutorShift.query
        .filter_by(id=shift.id, is_available=True)
        .update({"is_available": False}, synchronize_session=False)
    )
    if claimed != 1:
        # another request took the shift after our read
        _fail(BookingError(MSG_SHIFT_UNAVAILABLE, 409, "BOOKING_FAIL_SHIFT_UNAVAILABLE"), payer.id, metadata)

    # billed to the parent who owns the student, also when the student books from their own login
    booking = Booking(
        user_id=student.user_id,
        student_id=student.id,
        tutor_id=tutor_id,
        tutor_shift_id=shift.id,
        date=date,
        time_slot=time_slot,
        subject=subject,
        status=BOOKING_CONFIRMED,
    )
    db.session.add(booking)
    try:
        db.session.flush()
        tickets.debit(student.id, 1, f"Lesson {date.isoformat()} {time_slot}", booking_id=booking.id)
        db.session.commit()
    except IntegrityError:
        # uq_booking_student_slot_active fired: a concurrent duplicate committed first
        _fail(BookingError(MSG_DUPLICATE, 409, "BOOKING_FAIL_DUPLICATE"), payer.id, metadata)

    log_event("BOOKING_CREATE", user_id=payer.id, entity="booking", entity_id=booking.id, metadata=metadata)
    _notify("confirmation", notifications.send_booking_confirmation, booking, payer.id)
    return booking


def cancel_booking(requester, booking_id: int) -> Booking:
    """Cancel a confirmed booking: refund its ticket and reopen the shift."""
    booking = db.session.get(Booking, booking_id)
    if not booking or not can_manage(requester, booking):
        raise BookingError("Booking not found", 404)
    if booking.status != BOOKING_CONFIRMED:
        raise BookingError("Booking not cancellable", 400)

    booking.status = BOOKING_CANCELLED
    booking.cancelled_at = datetime.utcnow()
    tickets.credit(booking.student_id, 1, f"Cancelled lesson {booking.date.isoformat()} {booking.time_slot}",
                   booking_id=booking.id)
    TutorShift.query.filter_by(id=booking.tutor_shift_id).update(
        {"is_available": True}, synchronize_session=False
    )
    db.session.commit()

    log_event("BOOKING_CANCEL", user_id=requester.id, entity="booking", entity_id=booking.id,
              metadata={"by_admin": is_admin(requester) and booking.user_id != requester.id})
    _notify("cancellation", notifications.send_booking_cancellation, booking, requester.id)
    return booking


def format_report(unit: str, message: str, goal: str) -> str:
    return (
        f"【単元】\n{unit}\n\n"
        f"【伝言事項】\n{message}\n\n"
        f"【来週までの目標(課題)】\n{goal}"
    )


def save_report(user, booking_id: int, data: dict) -> LessonReport:
    """Create or update the lesson report of a booking taught by user."""
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise BookingError("Booking not found", 404)

    if not is_admin(user):
        tutor = Tutor.query.filter_by(user_id=user.id).first()
        if not tutor or tutor.id != booking.tutor_id:
            raise BookingError("Only the booking's tutor can write its report", 403)
    if booking.status != BOOKING_CONFIRMED:
        raise BookingError("Cannot report a cancelled booking", 400)

    try:
        unit = text_field(data, "unit") or ""
        message = text_field(data, "message") or ""
        goal = text_field(data, "goal") or ""
    except FieldError as exc:
        raise BookingError(str(exc), 400)
    if not (unit or message or goal):
        raise BookingError("unit, message or goal required", 400)

    report = LessonReport.query.filter_by(booking_id=booking.id).first()
    if not report:
        report = LessonReport(booking_id=booking.id, tutor_id=booking.tutor_id, student_id=booking.student_id)
        db.session.add(report)
    report.unit_content = unit
    report.message_content = message
    report.goal_content = goal

    booking.report_status = REPORT_COMPLETED
    booking.report_content = format_report(unit, message, goal)
    db.session.commit()

    log_event("REPORT_SAVE", user_id=user.id, entity="booking", entity_id=booking.id)
    return report
