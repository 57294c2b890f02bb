"""Per-student ticket ledger.

Every movement is an inserted StudentTicket row; nothing here commits, so
debits and credits join the caller's transaction.
"""
from sqlalchemy import func

from models import db
from models.student import Student
from models.student_ticket import StudentTicket


def balance(student_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(StudentTicket.quantity), 0))
        .filter(StudentTicket.student_id == student_id)
        .scalar()
    )
    return int(total or 0)


def balances_for_user(user_id: int) -> dict[int, int]:
    """Balance per active student of a parent account (students with no entries report 0)."""
    student_ids = [
        s.id for s in Student.query.filter_by(user_id=user_id, is_active=True).all()
    ]
    if not student_ids:
        return {}

    rows = (
        db.session.query(StudentTicket.student_id, func.sum(StudentTicket.quantity))
        .filter(StudentTicket.student_id.in_(student_ids))
        .group_by(StudentTicket.student_id)
        .all()
    )
    out = {sid: 0 for sid in student_ids}
    out.update({sid: int(total or 0) for sid, total in rows})
    return out


def account_balance(user_id: int) -> int:
    # derived view over the per-student ledger, never stored
    return sum(balances_for_user(user_id).values())


def _entry(student_id: int, quantity: int, description: str, booking_id=None, payment_id=None) -> StudentTicket:
    row = StudentTicket(
        student_id=student_id,
        quantity=quantity,
        description=description,
        booking_id=booking_id,
        payment_id=payment_id,
    )
    db.session.add(row)
    return row


def credit(student_id: int, amount: int, description: str, booking_id=None, payment_id=None) -> StudentTicket:
    if amount <= 0:
        raise ValueError("credit amount must be positive")
    return _entry(student_id, amount, description, booking_id, payment_id)


def debit(student_id: int, amount: int, description: str, booking_id=None) -> StudentTicket:
    if amount <= 0:
        raise ValueError("debit amount must be positive")
    return _entry(student_id, -amount, description, booking_id)


def reset(student_id: int, description: str = "Reset"):
    """Insert the entry that brings the balance back to zero. Returns it, or None if already zero."""
    current = balance(student_id)
    if current == 0:
        return None
    return _entry(student_id, -current, description)
