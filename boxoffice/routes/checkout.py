# boxoffice/routes/checkout.py
from flask import Blueprint, request, jsonify, current_app
from ..extensions import db
from ..models import Event, Order
from ..schemas import CheckoutQuoteSchema, CheckoutSchema, OrderSchema, PricingResultSchema
from ..services.checkout import (
    create_checkout_session, create_payment_intent, quote_checkout, resolve_promo, verify_checkout,
)
from ..services.fee_settings import get_fee_provider

bp = Blueprint("checkout", __name__)


def _customer(obj):
    return {
        "name": obj["customer_name"].strip(),
        "email": obj["customer_email"],
        "phone": obj.get("customer_phone"),
    }


@bp.post("/quote")
def quote():
    """Price an order without creating anything; used to show the breakdown before paying."""
    obj = CheckoutQuoteSchema().load(request.get_json(silent=True) or {})
    event = db.get_or_404(Event, obj["event_id"])
    promo = resolve_promo(event, obj.get("promo_code"))
    pricing = quote_checkout(event, obj["quantity"], get_fee_provider(), promo)
    out = PricingResultSchema().dump(pricing.as_dollars())
    out["is_free"] = pricing.is_free
    return jsonify(out)


@bp.post("/session")
def checkout_session():
    obj = CheckoutSchema().load(request.get_json(silent=True) or {})
    event = db.get_or_404(Event, obj["event_id"])
    result = create_checkout_session(
        event,
        obj["quantity"],
        _customer(obj),
        get_fee_provider(),
        app_url=current_app.config["APP_URL"],
        currency=current_app.config["CURRENCY"],
        promo_code=obj.get("promo_code"),
    )
    return jsonify(result), 201


@bp.post("/payment-intent")
def payment_intent():
    obj = CheckoutSchema().load(request.get_json(silent=True) or {})
    event = db.get_or_404(Event, obj["event_id"])
    result = create_payment_intent(
        event,
        obj["quantity"],
        _customer(obj),
        get_fee_provider(),
        currency=current_app.config["CURRENCY"],
        promo_code=obj.get("promo_code"),
    )
    if not result.get("free"):
        result["publishable_key"] = current_app.config["STRIPE_PUBLISHABLE_KEY"]
    return jsonify(result), 201


@bp.get("/verify")
def verify_session():
    """Success-page callback for Stripe Checkout: completes the order once Stripe reports it paid."""
    session_id = request.args.get("session_id")
    if not session_id:
        return jsonify({"error": "Session ID is required"}), 400
    order = Order.query.filter_by(stripe_session_id=session_id).first_or_404()
    return jsonify(OrderSchema().dump(verify_checkout(order)))


@bp.get("/verify-payment-intent")
def verify_payment_intent():
    # Stripe appends ?payment_intent= to the return URL
    intent_id = request.args.get("payment_intent_id") or request.args.get("payment_intent")
    if not intent_id:
        return jsonify({"error": "Missing payment intent ID"}), 400
    order = Order.query.filter_by(stripe_payment_intent_id=intent_id).first_or_404()
    return jsonify(OrderSchema().dump(verify_checkout(order)))
