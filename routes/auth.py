from datetime import datetime

from flask import Blueprint, request, jsonify, g

from models import db
from models.student import Student
from models.user import User, Role
from models.session import REVOKED_LOGOUT, REVOKED_NEW_LOGIN, REVOKED_PASSWORD_CHANGE
from security.csrf import issue_csrf_token, clear_csrf_token
from security.password import hash_password, verify_password, needs_rehash, password_problem
from security.rbac import require_roles
from security.session import (
    create_session, revoke_session, revoke_all_sessions, set_session_cookie, clear_session_cookie, cookie_name,
)
from utils.audit import log_event
from utils.fields import FieldError, text_field
from utils.auth_context import login_required
from utils.roles import PARENT, STUDENT, SELF_SERVICE_ROLES, filter_role_names


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _new_user(email: str, password: str, role_name: str, display_name=None, student_id=None) -> User:
    user = User(
        email=email,
        password_hash=hash_password(password),
        display_name=display_name,
        student_id=student_id,
    )
    db.session.add(user)
    db.session.flush()

    role = Role.query.filter_by(name=role_name).first()
    if role:
        user.roles.append(role)
    return user


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    try:
        email = (text_field(data, "email") or "").lower()
        role_name = (text_field(data, "role") or PARENT).upper()
        display_name = text_field(data, "display_name")
    except FieldError as exc:
        return jsonify(error=str(exc)), 400
    password = data.get("password") or ""

    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    problem = password_problem(password)
    if problem:
        return jsonify(error=problem), 400
    if role_name not in SELF_SERVICE_ROLES:
        return jsonify(error="role must be PARENT or TUTOR"), 400

    if User.query.filter_by(email=email).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": email})
        return jsonify(error="Email already registered"), 409

    user = _new_user(email, password, role_name, display_name)
    db.session.commit()
    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": role_name})

    return jsonify(message="Registered successfully", id=user.id), 201


@auth_bp.post("/student-account")
@require_roles(PARENT)
def create_student_account():
    """Parent creates a login for one of their students."""
    data = request.get_json(silent=True) or {}
    try:
        email = (text_field(data, "email") or "").lower()
    except FieldError as exc:
        return jsonify(error=str(exc)), 400
    password = data.get("password") or ""
    student_id = data.get("student_id")

    student = db.session.get(Student, int(student_id)) if str(student_id or "").isdigit() else None
    if not student or not student.is_active or student.user_id != g.user.id:
        return jsonify(error="Student not found"), 404
    if not _is_valid_email(email):
        return jsonify(error="Invalid email"), 400
    problem = password_problem(password)
    if problem:
        return jsonify(error=problem), 400
    if User.query.filter_by(email=email).first():
        return jsonify(error="Email already registered"), 409
    if User.query.filter_by(student_id=student.id).first():
        return jsonify(error="Student already has an account"), 409

    user = _new_user(email, password, STUDENT, student.full_name, student_id=student.id)
    db.session.commit()
    log_event("STUDENT_ACCOUNT_CREATE", user_id=g.user.id, entity="student", entity_id=student.id)

    return jsonify(message="Student account created", id=user.id), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    try:
        email = (text_field(data, "email") or "").lower()
    except FieldError as exc:
        return jsonify(error=str(exc)), 400
    password = data.get("password") or ""

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        return jsonify(error="Invalid credentials"), 401

    if user.student_id:
        student = db.session.get(Student, user.student_id)
        if not student or not student.is_active:
            log_event("LOGIN_FAIL_STUDENT_REMOVED", user_id=user.id)
            return jsonify(error="Invalid credentials"), 401

    if needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        db.session.commit()

    # one live session per account
    revoked_count = revoke_all_sessions(user.id, REVOKED_NEW_LOGIN)

    resp = jsonify(message="Login OK", roles=filter_role_names(user.roles))
    set_session_cookie(resp, create_session(user.id))
    issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(
        id=g.user.id,
        email=g.user.email,
        display_name=g.user.display_name,
        phone=g.user.phone,
        roles=filter_role_names(g.user.roles),
        student_id=g.user.student_id,
        email_notifications=g.user.email_notifications,
        password_changed_at=g.user.password_changed_at.isoformat() if g.user.password_changed_at else None,
    ), 200


@auth_bp.patch("/me")
@login_required
def update_me():
    data = request.get_json(silent=True) or {}

    display_name = data.get("display_name")
    if display_name is not None:
        if not isinstance(display_name, str) or len(display_name.strip()) > 120:
            return jsonify(error="Invalid display_name"), 400
        g.user.display_name = display_name.strip() or None

    phone = data.get("phone")
    if phone is not None:
        if not isinstance(phone, str) or len(phone.strip()) > 30:
            return jsonify(error="Invalid phone"), 400
        g.user.phone = phone.strip() or None

    email_notifications = data.get("email_notifications")
    if email_notifications is not None:
        if not isinstance(email_notifications, bool):
            return jsonify(error="email_notifications must be a boolean"), 400
        g.user.email_notifications = email_notifications

    db.session.commit()
    log_event("PROFILE_UPDATE", user_id=g.user.id)
    return jsonify(message="Profile updated"), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(request.cookies.get(cookie_name()), REVOKED_LOGOUT)
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    clear_session_cookie(resp)
    clear_csrf_token(resp)
    return resp, 200


@auth_bp.post("/change-password")
@login_required
def change_password():
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password") or ""
    new_password = data.get("new_password") or ""

    if not verify_password(current_password, g.user.password_hash):
        log_event("PASSWORD_CHANGE_FAIL", user_id=g.user.id)
        return jsonify(error="Invalid current password"), 401
    problem = password_problem(new_password)
    if problem:
        return jsonify(error=problem), 400

    g.user.password_hash = hash_password(new_password)
    g.user.password_changed_at = datetime.utcnow()
    db.session.commit()

    # other devices must log in again
    revoked = revoke_all_sessions(g.user.id, REVOKED_PASSWORD_CHANGE, keep_session_id=g.session.id)
    log_event("PASSWORD_CHANGED", user_id=g.user.id, metadata={"revoked_sessions": revoked})
    return jsonify(message="Password updated"), 200
