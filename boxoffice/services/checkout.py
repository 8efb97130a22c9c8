# boxoffice/services/checkout.py
# Turns an event + quantity into a priced order and the Stripe request for it.
import logging
from typing import Dict, Optional

from sqlalchemy import or_

from ..errors import InsufficientInventory, InvalidConfiguration, InvalidPricingInput, PaymentNotCompleted
from ..extensions import db
from ..models import Event, Order, PromoCode
from . import stripe_client
from .fee_settings import FeeConfigProvider, business_fee_payers, business_tax_percentage
from .pricing import (
    PricingInput, PricingResult, compute_pricing, dollars_to_cents,
    to_decimal, validate_pricing_input, cents_to_dollars,
)
from .promotions import find_promo_code, promo_discount_cents, validate_promo_code

logger = logging.getLogger(__name__)


def ensure_inventory(event: Event, quantity: int) -> None:
    if event.status != "published":
        raise InvalidPricingInput("Tickets for this event are not on sale")
    if event.max_per_customer and quantity > event.max_per_customer:
        raise InvalidPricingInput(f"At most {event.max_per_customer} tickets per customer")
    if quantity > event.available_tickets:
        raise InsufficientInventory("Not enough tickets available")


def resolve_promo(event: Event, code: Optional[str]) -> Optional[PromoCode]:
    if not code:
        return None
    promo = find_promo_code(event.id, code)
    ok, reason = validate_promo_code(promo)
    if not ok:
        raise InvalidPricingInput(reason)
    return promo


def quote_checkout(
    event: Event,
    quantity: int,
    provider: FeeConfigProvider,
    promo: Optional[PromoCode] = None,
) -> PricingResult:
    business = event.business
    stripe_payer, platform_payer = business_fee_payers(business)
    unit_price = to_decimal(event.ticket_price)

    pricing_input = PricingInput(
        unit_price=unit_price,
        quantity=quantity,
        tax_percentage=business_tax_percentage(business),
        stripe_fee_payer=stripe_payer,
        platform_fee_payer=platform_payer,
    )
    validate_pricing_input(pricing_input)
    ensure_inventory(event, quantity)

    if promo is not None:
        gross = dollars_to_cents(unit_price * quantity)
        pricing_input = PricingInput(
            unit_price=pricing_input.unit_price,
            quantity=quantity,
            tax_percentage=pricing_input.tax_percentage,
            stripe_fee_payer=stripe_payer,
            platform_fee_payer=platform_payer,
            discount=promo_discount_cents(promo, gross),
        )

    return compute_pricing(pricing_input, provider.effective_config(business))


def _money(cents: int) -> str:
    return str(cents_to_dollars(cents))


def _pricing_metadata(event: Event, pricing: PricingResult, quantity: int,
                      customer: Dict, promo: Optional[PromoCode]) -> Dict[str, str]:
    # Stripe metadata values must be strings
    meta = {
        "eventId": str(event.id),
        "businessId": str(event.business_id),
        "quantity": str(quantity),
        "customerName": customer["name"],
        "customerEmail": customer["email"],
        "customerPhone": customer.get("phone") or "",
        "ticketSubtotal": _money(pricing.subtotal + pricing.discount),
        "taxAmount": _money(pricing.tax_amount),
        "platformFee": _money(pricing.platform_fee),
        "stripeFee": _money(pricing.stripe_fee),
        "stripeFeePayer": pricing.stripe_fee_payer,
        "platformFeePayer": pricing.platform_fee_payer,
        "businessReceives": _money(pricing.business_receives),
    }
    if promo is not None:
        meta.update({
            "promoCodeId": str(promo.id),
            "promoCode": promo.code,
            "discountAmount": _money(pricing.discount),
        })
    return meta


def _line_item(name: str, unit_amount: int, quantity: int, currency: str, description: str = None) -> Dict:
    product = {"name": name}
    if description:
        product["description"] = description
    return {
        "price_data": {"currency": currency, "product_data": product, "unit_amount": unit_amount},
        "quantity": quantity,
    }


def build_line_items(event: Event, pricing: PricingResult, quantity: int, currency: str,
                     promo: Optional[PromoCode] = None) -> list:
    """Line items whose amounts add up to pricing.total_charged."""
    if pricing.discount:
        items = [_line_item(f"{quantity}x {event.title} ({promo.code if promo else 'discount'})",
                            pricing.subtotal, 1, currency)]
    else:
        items = [_line_item(event.title, dollars_to_cents(event.ticket_price), quantity, currency,
                            event.description or f"Ticket for {event.title}")]
    if pricing.tax_amount:
        items.append(_line_item("Tax", pricing.tax_amount, 1, currency))
    if pricing.platform_fee_payer == "customer" and pricing.platform_fee:
        items.append(_line_item("Service fee", pricing.platform_fee, 1, currency))
    if pricing.stripe_fee_payer == "customer" and pricing.stripe_fee:
        items.append(_line_item("Processing fee", pricing.stripe_fee, 1, currency))
    return items


def build_checkout_session_params(
    event: Event,
    pricing: PricingResult,
    quantity: int,
    customer: Dict,
    app_url: str,
    currency: str = "usd",
    promo: Optional[PromoCode] = None,
) -> Dict:
    business = event.business
    metadata = _pricing_metadata(event, pricing, quantity, customer, promo)
    return {
        "payment_method_types": ["card"],
        "line_items": build_line_items(event, pricing, quantity, currency, promo),
        "mode": "payment",
        "success_url": f"{app_url}/{business.slug}/events/{event.id}/success?session_id={{CHECKOUT_SESSION_ID}}",
        "cancel_url": f"{app_url}/{business.slug}/events/{event.id}/checkout",
        "customer_email": customer["email"],
        "metadata": metadata,
        "payment_intent_data": {
            # the platform keeps everything the business does not receive,
            # and Stripe's own fee is taken from the platform's share
            "application_fee_amount": pricing.platform_take,
            "transfer_data": {"destination": business.stripe_account_id},
            "metadata": metadata,
        },
    }


def build_payment_intent_params(
    event: Event,
    pricing: PricingResult,
    quantity: int,
    customer: Dict,
    currency: str = "usd",
    promo: Optional[PromoCode] = None,
) -> Dict:
    business = event.business
    return {
        "amount": pricing.total_charged,
        "currency": currency,
        "automatic_payment_methods": {"enabled": True, "allow_redirects": "never"},
        "on_behalf_of": business.stripe_account_id,
        "transfer_data": {
            "destination": business.stripe_account_id,
            "amount": pricing.business_receives,
        },
        "metadata": _pricing_metadata(event, pricing, quantity, customer, promo),
        "description": f"[{business.name}] {quantity}x {event.title}",
    }


def _record_order(event: Event, pricing: PricingResult, quantity: int, customer: Dict,
                  promo: Optional[PromoCode]) -> Order:
    order = Order(
        event_id=event.id,
        business_id=event.business_id,
        promo_code_id=promo.id if promo else None,
        customer_name=customer["name"],
        customer_email=customer["email"],
        customer_phone=customer.get("phone"),
        quantity=quantity,
        subtotal_cents=pricing.subtotal,
        discount_cents=pricing.discount,
        tax_cents=pricing.tax_amount,
        platform_fee_cents=pricing.platform_fee,
        stripe_fee_cents=pricing.stripe_fee,
        total_cents=pricing.total_charged,
        platform_take_cents=pricing.platform_take,
        business_receives_cents=pricing.business_receives,
    )
    db.session.add(order)
    return order


def reserve_tickets(event: Event, quantity: int) -> None:
    """Decrement inventory only if enough is left, in a single UPDATE."""
    updated = (
        Event.query
        .filter(Event.id == event.id, Event.available_tickets >= quantity)
        .update({Event.available_tickets: Event.available_tickets - quantity}, synchronize_session=False)
    )
    if not updated:
        raise InsufficientInventory("Not enough tickets available")
    db.session.expire(event, ["available_tickets"])


def _use_promo(promo_code_id: Optional[int]) -> None:
    if promo_code_id is None:
        return
    used = PromoCode.query.filter(
        PromoCode.id == promo_code_id,
        or_(PromoCode.max_uses.is_(None), PromoCode.current_uses < PromoCode.max_uses),
    ).update({PromoCode.current_uses: PromoCode.current_uses + 1}, synchronize_session=False)
    if not used:
        # the customer was already charged the discounted price
        logger.warning("Promo code %s used past its limit", promo_code_id)


def complete_order(order: Order) -> Order:
    """
    Mark a pending order completed, take its tickets out of inventory and
    count its promo use. Runs at most once per order; calling it again on a
    completed order is a no-op.
    """
    claimed = (
        Order.query
        .filter(Order.id == order.id, Order.status == "pending")
        .update({Order.status: "completed"}, synchronize_session=False)
    )
    if not claimed:
        db.session.refresh(order)
        return order

    try:
        reserve_tickets(order.event, order.quantity)
    except InsufficientInventory:
        db.session.rollback()
        logger.error("Order %s paid but event %s is sold out", order.id, order.event_id)
        raise
    _use_promo(order.promo_code_id)
    db.session.commit()
    logger.info("Completed order %s for event %s (%d tickets)", order.id, order.event_id, order.quantity)
    return order


def verify_checkout(order: Order) -> Order:
    """Ask Stripe whether the order's session or intent has been paid, then complete it."""
    if order.status == "completed":
        return order

    client = stripe_client.get_client()
    if order.stripe_session_id:
        session = client.checkout.Session.retrieve(order.stripe_session_id)
        paid = session.payment_status == "paid"
    elif order.stripe_payment_intent_id:
        intent = client.PaymentIntent.retrieve(order.stripe_payment_intent_id)
        paid = intent.status == "succeeded"
    else:
        paid = False
    if not paid:
        raise PaymentNotCompleted("Payment not completed")
    return complete_order(order)


def _complete_free_order(order: Order) -> Dict:
    complete_order(order)
    return {"free": True, "order_id": order.id}


def _require_payments(event: Event) -> None:
    if not event.business.can_accept_payments:
        raise InvalidConfiguration("Payment processing not available for this event")


def create_checkout_session(event: Event, quantity: int, customer: Dict, provider: FeeConfigProvider,
                            app_url: str, currency: str = "usd", promo_code: Optional[str] = None) -> Dict:
    promo = resolve_promo(event, promo_code)
    pricing = quote_checkout(event, quantity, provider, promo)
    if not pricing.is_free:
        _require_payments(event)

    order = _record_order(event, pricing, quantity, customer, promo)
    db.session.flush()
    if pricing.is_free:
        return _complete_free_order(order)

    params = build_checkout_session_params(event, pricing, quantity, customer, app_url, currency, promo)
    session = stripe_client.get_client().checkout.Session.create(**params)
    order.stripe_session_id = session.id
    db.session.commit()
    logger.info(
        "Checkout session %s for event %s: total=%d platform_take=%d business_receives=%d",
        session.id, event.id, pricing.total_charged, pricing.platform_take, pricing.business_receives,
    )
    return {"url": session.url, "order_id": order.id}


def create_payment_intent(event: Event, quantity: int, customer: Dict, provider: FeeConfigProvider,
                          currency: str = "usd", promo_code: Optional[str] = None) -> Dict:
    promo = resolve_promo(event, promo_code)
    pricing = quote_checkout(event, quantity, provider, promo)
    if not pricing.is_free:
        _require_payments(event)

    order = _record_order(event, pricing, quantity, customer, promo)
    db.session.flush()
    if pricing.is_free:
        return _complete_free_order(order)

    params = build_payment_intent_params(event, pricing, quantity, customer, currency, promo)
    intent = stripe_client.get_client().PaymentIntent.create(**params)
    order.stripe_payment_intent_id = intent.id
    db.session.commit()
    logger.info(
        "Payment intent %s for event %s: total=%d transfer=%d",
        intent.id, event.id, pricing.total_charged, pricing.business_receives,
    )
    return {"client_secret": intent.client_secret, "order_id": order.id}
