from datetime import datetime
from models.db import db

class LessonReport(db.Model):
    __tablename__ = "lesson_reports"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, unique=True, index=True)
    tutor_id = db.Column(db.Integer, db.ForeignKey("tutors.id"), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)

    unit_content = db.Column(db.Text, nullable=True)
    message_content = db.Column(db.Text, nullable=True)
    goal_content = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
