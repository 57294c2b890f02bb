from datetime import datetime
from models.db import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    # null for stripe webhooks and failed logins of unknown emails
    user_id = db.Column(db.Integer, nullable=True, index=True)
    action = db.Column(db.String(80), nullable=False, index=True)
    entity = db.Column(db.String(40), nullable=True)
    entity_id = db.Column(db.String(40), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # admin lookups by booking / payment / student
        db.Index("ix_audit_logs_entity", "entity", "entity_id"),
    )
