import stripe
from flask import Blueprint, request, jsonify, g, current_app

from models import db
from models.payment_transaction import PaymentTransaction
from services.reconciler import BookingError, resolve_student
from utils.auth_context import login_required
from utils.audit import log_event

payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.post("/checkout")
@login_required
def start_checkout():
    stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")
    success_url = current_app.config.get("STRIPE_SUCCESS_URL")
    cancel_url = current_app.config.get("STRIPE_CANCEL_URL")
    if not stripe.api_key:
        return jsonify(error="Stripe secret key missing (STRIPE_SECRET_KEY)"), 500
    if not success_url or not cancel_url:
        return jsonify(error="Stripe success/cancel URLs not configured"), 500

    data = request.get_json(silent=True) or {}
    quantity = data.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return jsonify(error="Invalid ticket quantity"), 400
    try:
        student_id = data.get("student_id")
        student = resolve_student(g.user, int(student_id) if student_id not in (None, "") else None)
    except (TypeError, ValueError):
        return jsonify(error="student_id must be an integer"), 400
    except BookingError as err:
        return jsonify(error=err.message), err.status_code

    price = current_app.config.get("TICKET_PRICE_JPY", 1000)
    payment = PaymentTransaction(
        user_id=g.user.id,
        student_id=student.id,
        provider="stripe",
        amount=quantity * price,
        currency="JPY",
        tickets_purchased=quantity,
        status="pending",
    )
    db.session.add(payment)
    db.session.commit()

    # JPY is a zero-decimal currency for Stripe: unit_amount is in yen
    session = stripe.checkout.Session.create(
        mode="payment",
        line_items=[{
            "price_data": {
                "currency": "jpy",
                "product_data": {"name": f"Lesson tickets for {student.full_name}"},
                "unit_amount": price,
            },
            "quantity": quantity,
        }],
        success_url=success_url,
        cancel_url=cancel_url,
        metadata={
            "payment_id": str(payment.id),
            "user_id": str(g.user.id),
            "student_id": str(student.id),
        },
    )

    payment.provider_transaction_id = session["id"]
    db.session.commit()

    log_event("PAYMENT_SESSION_CREATED", user_id=g.user.id, entity="payment", entity_id=payment.id,
              metadata={"stripe_session_id": session["id"]})
    return jsonify(checkout_url=session["url"], transaction_id=payment.id), 200
