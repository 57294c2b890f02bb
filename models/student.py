from datetime import datetime
from models.db import db

class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)

    # parent account that pays for this student's lessons
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    last_name = db.Column(db.String(60), nullable=False)
    first_name = db.Column(db.String(60), nullable=False)
    school = db.Column(db.String(120), nullable=True)
    grade = db.Column(db.String(30), nullable=True)
    school_level = db.Column(db.String(10), nullable=True)  # 小学, 中学, 高校

    # logical delete only; bookings and ticket history keep pointing here
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}"
