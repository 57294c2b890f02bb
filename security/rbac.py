from functools import wraps
from flask import g, jsonify

from utils.roles import ADMIN


def has_role(role_name: str) -> bool:
    user = getattr(g, "user", None)
    return bool(user and user.has_role(role_name))


def is_admin(user) -> bool:
    return bool(user and user.has_role(ADMIN))


def owns_student(user, student) -> bool:
    """The parent who registered the student, or the student's own login."""
    if not user or not student:
        return False
    return student.user_id == user.id or (user.student_id is not None and user.student_id == student.id)


def require_roles(*role_names: str):
    """
    Usage: @require_roles(TUTOR) or @require_roles(PARENT, STUDENT)
    ADMIN passes every role check.
    """
    allowed = set(role_names) | {ADMIN}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401
            if not any(r.name in allowed for r in user.roles):
                return jsonify(error="Forbidden"), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
