from datetime import datetime
from models.db import db

# revoke_reason values
REVOKED_LOGOUT = "logout"
REVOKED_NEW_LOGIN = "new_login"
REVOKED_STUDENT_REMOVED = "student_removed"
REVOKED_PASSWORD_CHANGE = "password_change"


class Session(db.Model):
    """Server-side login session. The cookie holds the raw token, this row its sha256."""
    __tablename__ = "sessions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    token_hash = db.Column(db.String(64), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_seen_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)

    revoked_at = db.Column(db.DateTime, nullable=True)
    revoke_reason = db.Column(db.String(30), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None
