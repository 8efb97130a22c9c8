from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable

from ..models import Order
from .pricing import calculate_business_payout, calculate_stripe_fee, cents_to_dollars, round_cents

SETTLED_STATUSES = {"completed"}


def order_payout(order: Order) -> Decimal:
    """Estimated net the connected account received for one order, in dollars."""
    if not order.total_cents:
        return Decimal("0.00")
    payout = calculate_business_payout(cents_to_dollars(order.total_cents),
                                       cents_to_dollars(order.platform_fee_cents))
    return payout.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def settlement_summary(orders: Iterable[Order]) -> Dict:
    """
    Gross sales vs. what the business actually keeps.
    Only completed orders count; free orders carry no Stripe fee.
    """
    gross = tax = platform = stripe_fees = net = 0
    count = tickets = 0
    for order in orders:
        if order.status not in SETTLED_STATUSES:
            continue
        count += 1
        tickets += order.quantity
        gross += order.total_cents
        tax += order.tax_cents
        platform += order.platform_fee_cents
        if order.total_cents:
            fee = round_cents(calculate_stripe_fee(cents_to_dollars(order.total_cents)) * 100)
            stripe_fees += fee
            net += order.total_cents - fee - order.platform_fee_cents
    return {
        "orders": count,
        "tickets": tickets,
        "gross_sales": cents_to_dollars(gross),
        "tax_collected": cents_to_dollars(tax),
        "platform_fees": cents_to_dollars(platform),
        "stripe_fees": cents_to_dollars(stripe_fees),
        "net_revenue": cents_to_dollars(net),
    }
