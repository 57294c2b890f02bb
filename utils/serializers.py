from models import db
from models.lesson_report import LessonReport
from models.student import Student
from models.tutor import Tutor


def shift_to_dict(s):
    return {
        "id": s.id,
        "tutor_id": s.tutor_id,
        "date": s.date.isoformat(),
        "time_slot": s.time_slot,
        "subject": s.subject,
        "is_available": s.is_available,
    }


def student_to_dict(s, balance=None):
    out = {
        "id": s.id,
        "last_name": s.last_name,
        "first_name": s.first_name,
        "school": s.school,
        "grade": s.grade,
        "school_level": s.school_level,
    }
    if balance is not None:
        out["ticket_balance"] = balance
    return out


def report_to_dict(r):
    if not r:
        return None
    return {
        "unit": r.unit_content,
        "message": r.message_content,
        "goal": r.goal_content,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }


def booking_to_dict(b, with_report=False):
    tutor = db.session.get(Tutor, b.tutor_id)
    student = db.session.get(Student, b.student_id)
    out = {
        "id": b.id,
        "user_id": b.user_id,
        "student_id": b.student_id,
        "tutor_id": b.tutor_id,
        "shift_id": b.tutor_shift_id,
        "date": b.date.isoformat(),
        "time_slot": b.time_slot,
        "subject": b.subject,
        "status": b.status,
        "report_status": b.report_status,
        "report_content": b.report_content,
        "tutor_name": tutor.full_name if tutor else None,
        "student_name": student.full_name if student else None,
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
    }
    if with_report:
        out["report"] = report_to_dict(LessonReport.query.filter_by(booking_id=b.id).first())
    return out
