from datetime import datetime
from models.db import db

class TutorShift(db.Model):
    __tablename__ = "tutor_shifts"

    id = db.Column(db.Integer, primary_key=True)

    tutor_id = db.Column(db.Integer, db.ForeignKey("tutors.id"), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False, index=True)
    time_slot = db.Column(db.String(20), nullable=False)  # one of utils.slots.TIME_SLOTS
    subject = db.Column(db.String(40), nullable=True)     # empty = any subject the tutor teaches

    # flipped to False when a booking claims the shift, back to True on cancel
    is_available = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        # One shift per tutor per slot; toggling updates this row
        db.UniqueConstraint("tutor_id", "date", "time_slot", name="uq_tutor_shift_slot"),
    )
