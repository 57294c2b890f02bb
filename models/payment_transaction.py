from datetime import datetime
from models.db import db

class PaymentTransaction(db.Model):
    __tablename__ = "payment_transactions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    # student credited on completion (online checkout buys for one student)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=True)

    provider = db.Column(db.String(20), nullable=False, default="manual")  # manual, stripe
    amount = db.Column(db.Integer, nullable=False)   # yen
    currency = db.Column(db.String(10), nullable=False, default="JPY")
    tickets_purchased = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(20), nullable=False, default="pending")  # pending, completed, failed
    provider_transaction_id = db.Column(db.String(255), nullable=True, unique=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    paid_at = db.Column(db.DateTime, nullable=True)
