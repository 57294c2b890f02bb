from datetime import datetime
from models.db import db

class StudentTicket(db.Model):
    """One signed movement in a student's ticket ledger.

    Purchases and refunds are positive, lesson bookings negative. The balance
    is always the sum of quantity for the student.
    """
    __tablename__ = "student_tickets"

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True, index=True)
    payment_id = db.Column(db.Integer, db.ForeignKey("payment_transactions.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
