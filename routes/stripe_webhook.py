from datetime import datetime

import stripe
from flask import Blueprint, request, jsonify, current_app

from models import db
from models.payment_transaction import PaymentTransaction
from services import tickets
from utils.audit import log_event

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


def _find_payment(session_obj):
    meta = session_obj.get("metadata", {}) or {}
    payment = None
    if meta.get("payment_id"):
        payment = db.session.get(PaymentTransaction, int(meta["payment_id"]))
    if not payment and session_obj.get("id"):
        payment = PaymentTransaction.query.filter_by(provider_transaction_id=session_obj["id"]).first()
    return payment


@webhook_bp.post("/stripe")
def stripe_webhook():
    endpoint_secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not endpoint_secret:
        return jsonify(error="Webhook secret not configured"), 500

    try:
        event = stripe.Webhook.construct_event(
            request.data, request.headers.get("Stripe-Signature"), endpoint_secret
        )
    except (ValueError, stripe.SignatureVerificationError):
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event.get("type")
    if event_type not in ("checkout.session.completed", "checkout.session.expired"):
        return jsonify(received=True), 200

    session_obj = event["data"]["object"]
    payment = _find_payment(session_obj)
    if not payment or payment.status == "completed":
        # unknown session or a redelivered event; tickets were already credited
        return jsonify(received=True), 200

    if event_type == "checkout.session.completed":
        payment.status = "completed"
        payment.paid_at = datetime.utcnow()
        payment.provider_transaction_id = session_obj.get("id") or payment.provider_transaction_id
        tickets.credit(payment.student_id, payment.tickets_purchased, "Online ticket purchase",
                       payment_id=payment.id)
        db.session.commit()
        log_event("PAYMENT_PAID", entity="payment", entity_id=payment.id,
                  metadata={"stripe_session_id": session_obj.get("id"), "tickets": payment.tickets_purchased})
    else:
        payment.status = "failed"
        db.session.commit()
        log_event("PAYMENT_EXPIRED", entity="payment", entity_id=payment.id,
                  metadata={"stripe_session_id": session_obj.get("id")})

    return jsonify(received=True), 200
