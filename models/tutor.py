from datetime import datetime
from models.db import db

class Tutor(db.Model):
    __tablename__ = "tutors"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True, index=True)

    last_name = db.Column(db.String(60), nullable=False)
    first_name = db.Column(db.String(60), nullable=False)
    university = db.Column(db.String(120), nullable=True)
    bio = db.Column(db.Text, nullable=True)

    # comma separated subject tags, e.g. "小学算数,中学数学,高校数学"
    subjects = db.Column(db.Text, nullable=False, default="")

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}"

    def subject_list(self) -> list[str]:
        return [s.strip() for s in (self.subjects or "").split(",") if s.strip()]
