from datetime import datetime
from models.db import db

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"

REPORT_PENDING = "pending"
REPORT_COMPLETED = "completed"

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    # payer (parent account, or the student account itself)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    tutor_id = db.Column(db.Integer, db.ForeignKey("tutors.id"), nullable=False, index=True)
    tutor_shift_id = db.Column(db.Integer, db.ForeignKey("tutor_shifts.id"), nullable=False, index=True)

    date = db.Column(db.Date, nullable=False)
    time_slot = db.Column(db.String(20), nullable=False)
    subject = db.Column(db.String(40), nullable=False)

    status = db.Column(db.String(20), nullable=False, default=BOOKING_CONFIRMED)
    # status values: confirmed, cancelled

    report_status = db.Column(db.String(20), nullable=False, default=REPORT_PENDING)
    report_content = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        # One live booking per student per slot; cancelled rows are kept as history
        db.Index(
            "uq_booking_student_slot_active",
            "student_id", "date", "time_slot",
            unique=True,
            sqlite_where=db.text("status = 'confirmed'"),
            postgresql_where=db.text("status = 'confirmed'"),
        ),
    )
