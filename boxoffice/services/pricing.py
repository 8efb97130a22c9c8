# boxoffice/services/pricing.py
# Fee engine: platform fee, Stripe processing fee, tax, and who absorbs what.
#
# Everything here is pure. Amounts are integer cents internally and Decimal
# dollars at the boundary. Each fee component is rounded half-up to the cent
# exactly once, before any summation.
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict, Optional, Union

from ..errors import InvalidConfiguration, InvalidPricingInput, NegativePayoutWarning

Number = Union[Decimal, int, float, str]

# Stripe standard US pricing: 2.9% + $0.30 per transaction
STRIPE_PERCENTAGE_FEE = Decimal("0.029")
STRIPE_FIXED_FEE = Decimal("0.30")
STRIPE_FIXED_FEE_CENTS = 30

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


class FeeType(str, Enum):
    FLAT = "flat"
    PERCENTAGE = "percentage"
    HIGHER_OF_BOTH = "higher_of_both"


class FeePayer(str, Enum):
    CUSTOMER = "customer"
    BUSINESS = "business"


@dataclass(frozen=True)
class FeeConfiguration:
    platform_fee_type: Optional[str]
    flat_fee_amount: Decimal = Decimal("0")
    percentage_fee: Decimal = Decimal("0")


@dataclass(frozen=True)
class PricingInput:
    unit_price: Decimal
    quantity: int
    tax_percentage: Decimal = Decimal("0")
    stripe_fee_payer: str = FeePayer.CUSTOMER.value
    platform_fee_payer: str = FeePayer.CUSTOMER.value
    discount: int = 0  # promo discount in cents, taken off the ticket subtotal


@dataclass(frozen=True)
class PricingResult:
    subtotal: int
    tax_amount: int
    platform_fee: int
    stripe_fee: int
    total_charged: int
    business_receives: int
    discount: int = 0
    stripe_fee_payer: str = FeePayer.CUSTOMER.value
    platform_fee_payer: str = FeePayer.CUSTOMER.value

    @property
    def is_free(self) -> bool:
        return self.total_charged == 0

    @property
    def platform_take(self) -> int:
        """
        Everything the business does not get: platform fee plus Stripe fee.
        Sent to Stripe as application_fee_amount. Not the application_fee
        argument of calculate_business_payout, which is the platform fee alone.
        """
        return self.total_charged - self.business_receives

    def as_dollars(self) -> Dict[str, Decimal]:
        out = {}
        for k, v in asdict(self).items():
            out[k] = cents_to_dollars(v) if isinstance(v, int) else v
        return out


def to_decimal(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as 0.1 instead of its binary expansion
    return Decimal(str(value))


def round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def dollars_to_cents(amount: Number) -> int:
    return round_cents(to_decimal(amount) * _HUNDRED)


def cents_to_dollars(cents: int) -> Decimal:
    return (Decimal(cents) / _HUNDRED).quantize(_CENT)


def _fee_type(value) -> Optional[FeeType]:
    try:
        return FeeType(value)
    except ValueError:
        return None


def validate_fee_configuration(fee_config: FeeConfiguration) -> FeeConfiguration:
    if fee_config is None or not fee_config.platform_fee_type:
        raise InvalidConfiguration("platform_fee_type is not set")
    if _fee_type(fee_config.platform_fee_type) is None:
        raise InvalidConfiguration(f"Unknown platform_fee_type '{fee_config.platform_fee_type}'")
    if fee_config.flat_fee_amount is None or to_decimal(fee_config.flat_fee_amount) < 0:
        raise InvalidConfiguration("flat_fee_amount must be >= 0")
    if fee_config.percentage_fee is None or to_decimal(fee_config.percentage_fee) < 0:
        raise InvalidConfiguration("percentage_fee must be >= 0")
    return fee_config


def validate_pricing_input(pricing_input: PricingInput) -> PricingInput:
    quantity = pricing_input.quantity
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
        raise InvalidPricingInput("quantity must be an integer >= 1")
    if pricing_input.unit_price is None or to_decimal(pricing_input.unit_price) < 0:
        raise InvalidPricingInput("unit_price must be >= 0")
    tax = to_decimal(pricing_input.tax_percentage or 0)
    if tax < 0 or tax > _HUNDRED:
        raise InvalidPricingInput("tax_percentage must be between 0 and 100")
    if (pricing_input.discount or 0) < 0:
        raise InvalidPricingInput("discount must be >= 0")
    for name in ("stripe_fee_payer", "platform_fee_payer"):
        try:
            FeePayer(getattr(pricing_input, name))
        except ValueError:
            raise InvalidPricingInput(f"{name} must be 'customer' or 'business'")
    return pricing_input


def calculate_platform_fee(
    unit_price: Number,
    quantity: int,
    fee_config: FeeConfiguration,
    taxable_amount_in_cents: Optional[int] = None,
) -> int:
    """
    Platform (application) fee in cents.

    flat:           the flat amount, charged once per order regardless of quantity.
    percentage:     percentage_fee of `taxable_amount_in_cents` when given,
                    otherwise of unit_price * quantity.
    higher_of_both: whichever of the two is larger.
    Anything else yields 0.
    """
    fee_type = _fee_type(fee_config.platform_fee_type)
    if fee_type is None:
        return 0

    flat = dollars_to_cents(fee_config.flat_fee_amount or 0)
    if fee_type is FeeType.FLAT:
        return flat

    if taxable_amount_in_cents is not None:
        base = Decimal(taxable_amount_in_cents)
    else:
        base = Decimal(dollars_to_cents(to_decimal(unit_price) * int(quantity)))
    percentage = round_cents(base * to_decimal(fee_config.percentage_fee or 0) / _HUNDRED)

    if fee_type is FeeType.PERCENTAGE:
        return percentage
    return max(flat, percentage)


def calculate_stripe_fee(amount: Number) -> Decimal:
    """Estimated Stripe fee in dollars for a charge of `amount` dollars (unrounded)."""
    return to_decimal(amount) * STRIPE_PERCENTAGE_FEE + STRIPE_FIXED_FEE


def stripe_fee_cents(amount_cents: int) -> int:
    return round_cents(Decimal(amount_cents) * STRIPE_PERCENTAGE_FEE) + STRIPE_FIXED_FEE_CENTS


def calculate_customer_pays_amount(base_amount: Number, platform_fee: Number) -> Dict[str, Decimal]:
    """
    Customer is charged base + platform fee + Stripe fee.
    Stripe takes its cut from everything charged, so its fee is computed on
    base + platform fee, not on the base alone.
    """
    base = to_decimal(base_amount)
    platform = to_decimal(platform_fee)
    stripe_fee = calculate_stripe_fee(base + platform)
    return {
        "subtotal": base,
        "stripe_fee": stripe_fee,
        "platform_fee": platform,
        "total": base + platform + stripe_fee,
    }


def calculate_business_pays_amount(base_amount: Number, platform_fee: Number) -> Dict[str, Decimal]:
    """Customer pays exactly the base; both fees come out of the business payout."""
    base = to_decimal(base_amount)
    platform = to_decimal(platform_fee)
    stripe_fee = calculate_stripe_fee(base)
    return {
        "subtotal": base,
        "stripe_fee": stripe_fee,
        "platform_fee": platform,
        "total": base,
        "business_receives": base - stripe_fee - platform,
    }


def calculate_business_payout(charged_amount: Number, application_fee: Number) -> Decimal:
    charged = to_decimal(charged_amount)
    return charged - calculate_stripe_fee(charged) - to_decimal(application_fee)


def _price(pricing_input: PricingInput, fee_config: FeeConfiguration) -> PricingResult:
    unit_price = to_decimal(pricing_input.unit_price)
    quantity = int(pricing_input.quantity)
    stripe_payer = FeePayer(pricing_input.stripe_fee_payer)
    platform_payer = FeePayer(pricing_input.platform_fee_payer)

    gross = dollars_to_cents(unit_price * quantity)
    discount = min(int(pricing_input.discount or 0), gross)
    subtotal = gross - discount
    tax = round_cents(Decimal(subtotal) * to_decimal(pricing_input.tax_percentage or 0) / _HUNDRED)
    taxable_base = subtotal + tax

    if taxable_base == 0:
        # nothing to collect, so nothing to take a cut of
        return PricingResult(0, 0, 0, 0, 0, 0, discount, stripe_payer.value, platform_payer.value)

    platform_fee = calculate_platform_fee(unit_price, quantity, fee_config, taxable_base)

    charged = taxable_base
    if platform_payer is FeePayer.CUSTOMER:
        charged += platform_fee
    stripe_fee = stripe_fee_cents(charged)
    total = charged + stripe_fee if stripe_payer is FeePayer.CUSTOMER else charged

    return PricingResult(
        subtotal=subtotal,
        tax_amount=tax,
        platform_fee=platform_fee,
        stripe_fee=stripe_fee,
        total_charged=total,
        business_receives=total - stripe_fee - platform_fee,
        discount=discount,
        stripe_fee_payer=stripe_payer.value,
        platform_fee_payer=platform_payer.value,
    )


def compute_pricing(pricing_input: PricingInput, fee_config: FeeConfiguration) -> PricingResult:
    """
    Full checkout pipeline:
      subtotal -> tax on subtotal -> platform fee on (subtotal + tax)
      -> Stripe fee on whatever is actually charged -> payout.

    The two payer flags are independent. A customer-paid platform fee is added
    to the charge (and so to Stripe's base); a customer-paid Stripe fee is added
    on top of the charge. Business-paid components are only deducted from the
    payout.

    Raises InvalidPricingInput / InvalidConfiguration before any fee math, and
    NegativePayoutWarning when the business would end up owing money.
    """
    validate_pricing_input(pricing_input)
    validate_fee_configuration(fee_config)

    result = _price(pricing_input, fee_config)
    if result.business_receives < 0:
        raise NegativePayoutWarning(
            f"Fees exceed the order amount; business would receive "
            f"{cents_to_dollars(result.business_receives)}",
            result.business_receives,
        )
    return result


def worst_case_payout(
    fee_config: FeeConfiguration,
    min_ticket_price: Number,
    tax_percentage: Number = 0,
    stripe_fee_payer: str = FeePayer.CUSTOMER.value,
    platform_fee_payer: str = FeePayer.CUSTOMER.value,
) -> int:
    """Payout in cents for a single ticket at the cheapest paid price."""
    pricing_input = validate_pricing_input(PricingInput(
        unit_price=to_decimal(min_ticket_price),
        quantity=1,
        tax_percentage=to_decimal(tax_percentage),
        stripe_fee_payer=stripe_fee_payer,
        platform_fee_payer=platform_fee_payer,
    ))
    return _price(pricing_input, validate_fee_configuration(fee_config)).business_receives


def check_payout_floor(
    fee_config: FeeConfiguration,
    min_ticket_price: Number,
    tax_percentage: Number = 0,
    stripe_fee_payer: str = FeePayer.CUSTOMER.value,
    platform_fee_payer: str = FeePayer.CUSTOMER.value,
) -> int:
    payout = worst_case_payout(fee_config, min_ticket_price, tax_percentage,
                               stripe_fee_payer, platform_fee_payer)
    if payout < 0:
        raise NegativePayoutWarning(
            f"A {cents_to_dollars(dollars_to_cents(min_ticket_price))} ticket would pay out "
            f"{cents_to_dollars(payout)} under these fee settings",
            payout,
        )
    return payout
