"""Booking emails. Each sender returns a list of failure strings, empty on success."""
from models import db
from models.student import Student
from models.tutor import Tutor
from models.user import User
from utils.emailer import EMAIL_NOT_CONFIGURED, send_email


def _parties(booking):
    payer = db.session.get(User, booking.user_id)
    student = db.session.get(Student, booking.student_id)
    tutor = db.session.get(Tutor, booking.tutor_id)
    tutor_user = db.session.get(User, tutor.user_id) if tutor else None
    return payer, student, tutor, tutor_user


def _when(booking) -> str:
    return f"{booking.date.year}年{booking.date.month}月{booking.date.day}日 {booking.time_slot}"


def _send_all(messages):
    failures = []
    for to_email, subject, body in messages:
        ok, err = send_email(to_email, subject, body)
        # an unconfigured mailer is a skip, not a failure
        if not ok and err != EMAIL_NOT_CONFIGURED:
            failures.append(f"{to_email}: {err}")
    return failures


def send_booking_confirmation(booking):
    payer, student, tutor, tutor_user = _parties(booking)
    student_name = student.full_name if student else "-"
    tutor_name = tutor.full_name if tutor else "-"

    messages = []
    if payer and payer.email_notifications:
        messages.append((
            payer.email,
            "【予約完了】授業のご予約を承りました",
            f"{student_name} さんの授業予約が完了しました。\n\n"
            f"日時: {_when(booking)}\n科目: {booking.subject}\n講師: {tutor_name}\n",
        ))
    if tutor_user and tutor_user.email_notifications:
        messages.append((
            tutor_user.email,
            "【新規予約】授業の予約が入りました",
            f"日時: {_when(booking)}\n科目: {booking.subject}\n生徒: {student_name}\n",
        ))
    return _send_all(messages)


def send_booking_cancellation(booking):
    payer, student, tutor, tutor_user = _parties(booking)
    student_name = student.full_name if student else "-"

    messages = []
    if payer and payer.email_notifications:
        messages.append((
            payer.email,
            "【予約キャンセル】授業の予約をキャンセルしました",
            f"{student_name} さんの以下の授業をキャンセルしました。チケットは返却されています。\n\n"
            f"日時: {_when(booking)}\n科目: {booking.subject}\n",
        ))
    if tutor_user and tutor_user.email_notifications:
        messages.append((
            tutor_user.email,
            "【予約キャンセル】授業がキャンセルされました",
            f"日時: {_when(booking)}\n科目: {booking.subject}\n生徒: {student_name}\n",
        ))
    return _send_all(messages)
