from functools import wraps
from flask import g, jsonify

from models import db
from models.student import Student
from models.user import User
from security.session import get_session_from_request
from utils.roles import STUDENT


def load_current_user():
    """Populate g.user / g.session from the auth cookie, or None."""
    g.user = None
    g.session = None

    sess = get_session_from_request()
    if not sess:
        return
    user = db.session.get(User, sess.user_id)
    if not user:
        return
    if user.student_id and user.has_role(STUDENT):
        # a student login stops working once the parent removes the student
        student = db.session.get(Student, user.student_id)
        if not student or not student.is_active:
            return

    g.session = sess
    g.user = user


def current_student_id():
    """Student id when the caller is logged in with a student account."""
    user = getattr(g, "user", None)
    if user and user.student_id and user.has_role(STUDENT):
        return user.student_id
    return None


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
