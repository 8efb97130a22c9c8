from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from ..models import PromoCode
from .pricing import dollars_to_cents, round_cents, to_decimal


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def find_promo_code(event_id: int, code: str) -> Optional[PromoCode]:
    return PromoCode.query.filter_by(event_id=event_id, code=normalize_code(code), is_active=True).first()


def validate_promo_code(promo: Optional[PromoCode], now: Optional[datetime] = None) -> Tuple[bool, str]:
    if promo is None:
        return False, "Invalid promo code"
    if not promo.is_active:
        return False, "This promo code is no longer active"
    if promo.max_uses is not None and promo.current_uses >= promo.max_uses:
        return False, "This promo code has reached its usage limit"
    now = now or datetime.utcnow()
    if promo.valid_from and now < promo.valid_from:
        return False, "This promo code is not yet valid"
    if promo.valid_until and now > promo.valid_until:
        return False, "This promo code has expired"
    return True, ""


def promo_discount_cents(promo: Optional[PromoCode], subtotal_cents: int) -> int:
    """
    percentage: value% of the subtotal; fixed: value dollars.
    Never more than the subtotal.
    """
    if promo is None or subtotal_cents <= 0:
        return 0
    value = to_decimal(promo.discount_value)
    if promo.discount_type == "percentage":
        discount = round_cents(Decimal(subtotal_cents) * value / Decimal("100"))
    elif promo.discount_type == "fixed":
        discount = dollars_to_cents(value)
    else:
        return 0
    return max(0, min(discount, subtotal_cents))
