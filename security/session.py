"""Cookie sessions backed by the sessions table.

The browser only ever sees the raw token; lookups go through its sha256.
A session dies at expires_at, after IDLE_TIMEOUT_SECONDS without a request,
or when revoked (logout, a newer login, or the parent removing the student
the account belongs to).
"""
import hashlib
import secrets
from datetime import datetime, timedelta

from flask import request, current_app

from models import db
from models.session import Session, REVOKED_LOGOUT
from models.user import User


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def cookie_name() -> str:
    return current_app.config.get("AUTH_COOKIE_NAME", "tutorbook_session")


def create_session(user_id: int) -> str:
    """Store a new session for user_id and return the raw token for the cookie."""
    raw_token = secrets.token_urlsafe(32)
    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60)
    now = datetime.utcnow()

    db.session.add(Session(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        last_seen_at=now,
        expires_at=now + timedelta(seconds=lifetime),
        ip=request.headers.get("X-Forwarded-For", request.remote_addr),
        user_agent=(request.headers.get("User-Agent") or "")[:255] or None,
    ))
    db.session.commit()
    return raw_token


def set_session_cookie(resp, raw_token: str):
    resp.set_cookie(
        cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    return resp


def clear_session_cookie(resp):
    resp.delete_cookie(cookie_name(), path="/")
    return resp


def get_session_from_request():
    raw_token = request.cookies.get(cookie_name())
    if not raw_token:
        return None

    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    now = datetime.utcnow()
    if not sess or sess.is_revoked or sess.expires_at <= now:
        return None

    idle = timedelta(seconds=current_app.config.get("IDLE_TIMEOUT_SECONDS", 60 * 60))
    if (sess.last_seen_at or sess.created_at) + idle <= now:
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_session(raw_token: str, reason: str = REVOKED_LOGOUT) -> bool:
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked_at=None).first()
    if not sess:
        return False
    sess.revoked_at = datetime.utcnow()
    sess.revoke_reason = reason
    db.session.commit()
    return True


def _revoke_where(reason: str, *criteria) -> int:
    count = (
        Session.query
        .filter(Session.revoked_at.is_(None), *criteria)
        .update({"revoked_at": datetime.utcnow(), "revoke_reason": reason}, synchronize_session=False)
    )
    db.session.commit()
    return count


def revoke_all_sessions(user_id: int, reason: str, keep_session_id=None) -> int:
    criteria = [Session.user_id == user_id]
    if keep_session_id is not None:
        criteria.append(Session.id != keep_session_id)
    return _revoke_where(reason, *criteria)


def revoke_student_sessions(student_id: int, reason: str) -> int:
    """Log out every account that signs in as this student."""
    user_ids = [u.id for u in User.query.filter_by(student_id=student_id).all()]
    if not user_ids:
        return 0
    return _revoke_where(reason, Session.user_id.in_(user_ids))
