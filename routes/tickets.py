from functools import wraps
from datetime import datetime

from flask import Blueprint, request, jsonify, g, current_app

from models import db
from models.payment_transaction import PaymentTransaction
from models.student import Student
from security.rbac import has_role
from services import tickets
from services.reconciler import BookingError, resolve_student
from utils.audit import log_event
from utils.auth_context import current_student_id, login_required
from utils.roles import ADMIN

tickets_bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")


def _positive_int(value):
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def dev_only(fn):
    """Ticket top-up/reset without payment: allowed for ADMIN or when dev endpoints are enabled."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_app.config.get("ENABLE_DEV_TICKET_ENDPOINTS", False) and not has_role(ADMIN):
            return jsonify(error="Not available"), 404
        return fn(*args, **kwargs)
    return wrapper


def _student_for(data: dict):
    student_id = data.get("student_id")
    try:
        student_id = int(student_id) if student_id not in (None, "") else None
    except (TypeError, ValueError):
        raise BookingError("student_id must be an integer", 400)
    if student_id is not None and has_role(ADMIN):
        student = db.session.get(Student, student_id)
        if not student:
            raise BookingError("Student not found", 404)
        return student
    return resolve_student(g.user, student_id)


@tickets_bp.get("")
@login_required
def get_balances():
    own_id = current_student_id()
    if own_id:
        # student account: only its own balance
        student = db.session.get(Student, own_id)
        rows = [student] if student else []
        balances = {s.id: tickets.balance(s.id) for s in rows}
    else:
        balances = tickets.balances_for_user(g.user.id)
        rows = Student.query.filter(Student.id.in_(list(balances))).order_by(Student.id.asc()).all() if balances else []

    return jsonify(
        students=[
            {"student_id": s.id, "name": s.full_name, "balance": balances.get(s.id, 0)}
            for s in rows
        ],
        total=sum(balances.values()),
    ), 200


@tickets_bp.post("/add")
@login_required
@dev_only
def add_tickets():
    data = request.get_json(silent=True) or {}
    quantity = _positive_int(data.get("quantity"))
    if quantity is None:
        return jsonify(error="Invalid ticket quantity"), 400
    try:
        student = _student_for(data)
    except BookingError as err:
        return jsonify(error=err.message), err.status_code

    tickets.credit(student.id, quantity, "Manual top-up")
    db.session.commit()

    log_event("TICKETS_ADD", user_id=g.user.id, entity="student", entity_id=student.id,
              metadata={"quantity": quantity})
    return jsonify(
        student_id=student.id,
        balance=tickets.balance(student.id),
        message=f"{quantity} tickets added successfully",
    ), 200


@tickets_bp.post("/reset")
@login_required
@dev_only
def reset_tickets():
    data = request.get_json(silent=True) or {}
    try:
        student = _student_for(data)
    except BookingError as err:
        return jsonify(error=err.message), err.status_code

    entry = tickets.reset(student.id)
    db.session.commit()

    log_event("TICKETS_RESET", user_id=g.user.id, entity="student", entity_id=student.id,
              metadata={"offset": entry.quantity if entry else 0})
    return jsonify(student_id=student.id, balance=0, message="Tickets reset"), 200


@tickets_bp.post("/purchase")
@login_required
def purchase_tickets():
    data = request.get_json(silent=True) or {}
    items = data.get("items")

    if items is None:
        # single-student form: {quantity, student_id?}
        items = [{"student_id": data.get("student_id"), "quantity": data.get("quantity")}]
    if not isinstance(items, list) or not items:
        return jsonify(error="Invalid request: must provide items or quantity"), 400

    lines = []
    for item in items:
        if not isinstance(item, dict):
            return jsonify(error="Invalid item"), 400
        quantity = _positive_int(item.get("quantity"))
        if quantity is None:
            return jsonify(error="Invalid ticket quantity"), 400
        try:
            student_id = item.get("student_id")
            student = resolve_student(g.user, int(student_id) if student_id not in (None, "") else None)
        except (TypeError, ValueError):
            return jsonify(error="student_id must be an integer"), 400
        except BookingError as err:
            return jsonify(error=err.message), err.status_code
        lines.append((student, quantity))

    total = sum(q for _, q in lines)
    price = current_app.config.get("TICKET_PRICE_JPY", 1000)
    payment = PaymentTransaction(
        user_id=g.user.id,
        student_id=lines[0][0].id if len(lines) == 1 else None,
        provider="manual",
        amount=total * price,
        currency="JPY",
        tickets_purchased=total,
        status="completed",
        paid_at=datetime.utcnow(),
    )
    db.session.add(payment)
    db.session.flush()
    for student, quantity in lines:
        tickets.credit(student.id, quantity, "Ticket purchase", payment_id=payment.id)
    db.session.commit()

    log_event("TICKETS_PURCHASE", user_id=g.user.id, entity="payment", entity_id=payment.id,
              metadata={"tickets": total, "amount": payment.amount})
    return jsonify(
        message="Tickets purchased successfully",
        transaction_id=payment.id,
        tickets_purchased=total,
        balances={str(s.id): tickets.balance(s.id) for s, _ in lines},
    ), 200
