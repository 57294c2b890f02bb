from flask import Blueprint, request, jsonify, g

from models import db
from models.session import REVOKED_STUDENT_REMOVED
from models.student import Student
from security.rbac import require_roles
from security.session import revoke_student_sessions
from services import tickets
from utils.audit import log_event
from utils.fields import FieldError, text_field
from utils.roles import PARENT
from utils.serializers import student_to_dict
from utils.slots import SCHOOL_LEVELS

students_bp = Blueprint("students", __name__, url_prefix="/api/students")

EDITABLE_FIELDS = ("last_name", "first_name", "school", "grade", "school_level")


def _own_student(student_id: int):
    student = db.session.get(Student, student_id)
    if not student or not student.is_active or student.user_id != g.user.id:
        return None
    return student


def _clean(data: dict) -> dict:
    """Editable fields present in data. Raises FieldError on non-string values."""
    return {field: text_field(data, field) for field in EDITABLE_FIELDS if field in data}


@students_bp.get("")
@require_roles(PARENT)
def list_students():
    balances = tickets.balances_for_user(g.user.id)
    rows = (
        Student.query
        .filter_by(user_id=g.user.id, is_active=True)
        .order_by(Student.id.asc())
        .all()
    )
    return jsonify([student_to_dict(s, balances.get(s.id, 0)) for s in rows]), 200


@students_bp.post("")
@require_roles(PARENT)
def create_student():
    try:
        fields = _clean(request.get_json(silent=True) or {})
    except FieldError as exc:
        return jsonify(error=str(exc)), 400
    if not fields.get("last_name") or not fields.get("first_name"):
        return jsonify(error="last_name and first_name are required"), 400
    if fields.get("school_level") and fields["school_level"] not in SCHOOL_LEVELS:
        return jsonify(error="school_level must be one of 小学, 中学, 高校"), 400

    student = Student(user_id=g.user.id, **fields)
    db.session.add(student)
    db.session.commit()

    log_event("STUDENT_CREATE", user_id=g.user.id, entity="student", entity_id=student.id)
    return jsonify(student_to_dict(student, 0)), 201


@students_bp.patch("/<int:student_id>")
@require_roles(PARENT)
def update_student(student_id: int):
    student = _own_student(student_id)
    if not student:
        return jsonify(error="Student not found"), 404

    try:
        fields = _clean(request.get_json(silent=True) or {})
    except FieldError as exc:
        return jsonify(error=str(exc)), 400
    if "last_name" in fields and not fields["last_name"]:
        return jsonify(error="last_name cannot be empty"), 400
    if "first_name" in fields and not fields["first_name"]:
        return jsonify(error="first_name cannot be empty"), 400
    if fields.get("school_level") and fields["school_level"] not in SCHOOL_LEVELS:
        return jsonify(error="school_level must be one of 小学, 中学, 高校"), 400

    for key, value in fields.items():
        setattr(student, key, value)
    db.session.commit()

    log_event("STUDENT_UPDATE", user_id=g.user.id, entity="student", entity_id=student.id)
    return jsonify(student_to_dict(student, tickets.balance(student.id))), 200


@students_bp.delete("/<int:student_id>")
@require_roles(PARENT)
def delete_student(student_id: int):
    student = _own_student(student_id)
    if not student:
        return jsonify(error="Student not found"), 404

    # logical delete; bookings and ledger rows keep their reference
    student.is_active = False
    db.session.commit()
    revoked = revoke_student_sessions(student.id, REVOKED_STUDENT_REMOVED)

    log_event("STUDENT_DELETE", user_id=g.user.id, entity="student", entity_id=student.id,
              metadata={"revoked_sessions": revoked})
    return jsonify(message="Student removed"), 200
