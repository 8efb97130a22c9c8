# Fee engine tests. Pure functions, no app or database needed.
from decimal import Decimal

import pytest

from boxoffice.errors import InvalidConfiguration, InvalidPricingInput, NegativePayoutWarning
from boxoffice.services.pricing import (
    FeeConfiguration, PricingInput, PricingResult,
    calculate_business_pays_amount, calculate_business_payout, calculate_customer_pays_amount,
    calculate_platform_fee, calculate_stripe_fee, check_payout_floor, compute_pricing,
    stripe_fee_cents, worst_case_payout,
)

FLAT_2 = FeeConfiguration("flat", Decimal("2.00"), Decimal("0"))
PCT_10 = FeeConfiguration("percentage", Decimal("0"), Decimal("10"))
HIGHER_1_OR_5 = FeeConfiguration("higher_of_both", Decimal("1.00"), Decimal("5"))

PAYERS = ["customer", "business"]


def pricing(unit_price, quantity, tax="0", stripe="customer", platform="customer", discount=0):
    return PricingInput(
        unit_price=Decimal(unit_price),
        quantity=quantity,
        tax_percentage=Decimal(tax),
        stripe_fee_payer=stripe,
        platform_fee_payer=platform,
        discount=discount,
    )


# ─────────────────────────────────────────────────────────────────────────────
# calculate_platform_fee
# ─────────────────────────────────────────────────────────────────────────────

class TestPlatformFee:
    def test_flat_fee_is_once_per_order(self):
        assert calculate_platform_fee(Decimal("25"), 1, FLAT_2) == 200
        assert calculate_platform_fee(Decimal("25"), 10, FLAT_2) == 200

    def test_percentage_of_price_times_quantity(self):
        assert calculate_platform_fee(Decimal("10.00"), 3, PCT_10) == 300

    def test_percentage_uses_taxable_amount_when_given(self):
        assert calculate_platform_fee(Decimal("10.00"), 1, PCT_10, taxable_amount_in_cents=1080) == 108

    def test_higher_of_both_flat_wins(self):
        # $10.00 base: flat 100¢ vs 5% = 50¢
        assert calculate_platform_fee(Decimal("10.00"), 1, HIGHER_1_OR_5) == 100

    def test_higher_of_both_percentage_wins(self):
        # $50.00 base: flat 100¢ vs 5% = 250¢
        assert calculate_platform_fee(Decimal("50.00"), 1, HIGHER_1_OR_5) == 250

    @pytest.mark.parametrize("unit_price,quantity", [("1.00", 1), ("10.00", 2), ("19.99", 3), ("250", 4)])
    def test_higher_of_both_is_max_of_each(self, unit_price, quantity):
        flat = calculate_platform_fee(Decimal(unit_price), quantity,
                                      FeeConfiguration("flat", Decimal("1.00"), Decimal("5")))
        pct = calculate_platform_fee(Decimal(unit_price), quantity,
                                     FeeConfiguration("percentage", Decimal("1.00"), Decimal("5")))
        assert calculate_platform_fee(Decimal(unit_price), quantity, HIGHER_1_OR_5) == max(flat, pct)

    def test_unknown_type_returns_zero(self):
        assert calculate_platform_fee(Decimal("10"), 1, FeeConfiguration("tiered", Decimal("1"), Decimal("5"))) == 0

    def test_rounds_half_up(self):
        # 1010¢ * 5% = 50.5¢ -> 51¢ (banker's rounding would give 50)
        cfg = FeeConfiguration("percentage", Decimal("0"), Decimal("5"))
        assert calculate_platform_fee(Decimal("10.10"), 1, cfg) == 51

    def test_float_prices_are_read_as_written(self):
        assert calculate_platform_fee(19.99, 3, PCT_10) == 600  # 5997¢ * 10% = 599.7


# ─────────────────────────────────────────────────────────────────────────────
# Stripe fee helpers
# ─────────────────────────────────────────────────────────────────────────────

class TestStripeFee:
    def test_dollar_estimate(self):
        assert calculate_stripe_fee(Decimal("100")) == Decimal("3.20")
        assert calculate_stripe_fee(0) == Decimal("0.30")

    def test_cents(self):
        assert stripe_fee_cents(5600) == 192
        assert stripe_fee_cents(1000) == 59

    def test_cents_round_half_up(self):
        # 500 * 0.029 = 14.5
        assert stripe_fee_cents(500) == 45

    def test_customer_pays_amount_includes_platform_fee_in_stripe_base(self):
        out = calculate_customer_pays_amount(Decimal("50.00"), Decimal("2.00"))
        assert out["stripe_fee"] == Decimal("1.808")
        assert out["total"] == Decimal("53.808")
        assert out["subtotal"] == Decimal("50.00")
        assert out["platform_fee"] == Decimal("2.00")

    def test_business_pays_amount(self):
        out = calculate_business_pays_amount(Decimal("10.00"), Decimal("1.00"))
        assert out["total"] == Decimal("10.00")
        assert out["stripe_fee"] == Decimal("0.59")
        assert out["business_receives"] == Decimal("8.41")

    def test_business_payout(self):
        # 57.92 - (57.92 * 0.029 + 0.30) - 2.00
        assert calculate_business_payout(Decimal("57.92"), Decimal("2.00")) == Decimal("53.94032")


# ─────────────────────────────────────────────────────────────────────────────
# compute_pricing
# ─────────────────────────────────────────────────────────────────────────────

class TestComputePricing:
    def test_customer_pays_both_flat_with_tax(self):
        result = compute_pricing(pricing("25.00", 2, tax="8"), FLAT_2)
        assert result.subtotal == 5000
        assert result.tax_amount == 400
        assert result.platform_fee == 200
        assert result.stripe_fee == 192          # on 5600¢
        assert result.total_charged == 5792
        assert result.business_receives == 5400
        assert result.platform_take == 392

    def test_business_pays_both_percentage(self):
        result = compute_pricing(pricing("10.00", 1, stripe="business", platform="business"), PCT_10)
        assert result.subtotal == 1000
        assert result.platform_fee == 100
        assert result.stripe_fee == 59
        assert result.total_charged == 1000
        assert result.business_receives == 841

    def test_customer_pays_platform_business_pays_stripe(self):
        cfg = FeeConfiguration("flat", Decimal("1.00"), Decimal("0"))
        result = compute_pricing(pricing("20.00", 1, stripe="business", platform="customer"), cfg)
        assert result.total_charged == 2100
        assert result.stripe_fee == 91           # on 2100¢
        assert result.business_receives == 1909

    def test_customer_pays_stripe_business_pays_platform(self):
        cfg = FeeConfiguration("flat", Decimal("1.00"), Decimal("0"))
        result = compute_pricing(pricing("20.00", 1, stripe="customer", platform="business"), cfg)
        assert result.stripe_fee == 88           # on 2000¢
        assert result.total_charged == 2088
        assert result.business_receives == 1900

    def test_tax_rounds_half_up(self):
        # 1050¢ * 7% = 73.5¢
        result = compute_pricing(pricing("10.50", 1, tax="7"), FLAT_2)
        assert result.tax_amount == 74

    def test_percentage_fee_includes_tax(self):
        result = compute_pricing(pricing("10.00", 1, tax="8"), PCT_10)
        assert result.platform_fee == 108

    def test_discount_comes_off_subtotal_before_tax_and_fees(self):
        result = compute_pricing(pricing("25.00", 2, tax="8", discount=1000), PCT_10)
        assert result.discount == 1000
        assert result.subtotal == 4000
        assert result.tax_amount == 320
        assert result.platform_fee == 432
        assert result.stripe_fee == 168          # on 4752¢
        assert result.total_charged == 4920
        assert result.business_receives == 4320

    def test_discount_is_clamped_and_makes_order_free(self):
        result = compute_pricing(pricing("25.00", 2, tax="8", discount=99999), FLAT_2)
        assert result.discount == 5000
        assert result.is_free
        assert result.platform_fee == 0
        assert result.stripe_fee == 0

    def test_free_tickets_carry_no_fees(self):
        result = compute_pricing(pricing("0", 2), FLAT_2)
        assert result == PricingResult(0, 0, 0, 0, 0, 0)
        assert result.is_free

    def test_as_dollars(self):
        dollars = compute_pricing(pricing("25.00", 2, tax="8"), FLAT_2).as_dollars()
        assert dollars["total_charged"] == Decimal("57.92")
        assert dollars["stripe_fee"] == Decimal("1.92")
        assert dollars["business_receives"] == Decimal("54.00")
        assert dollars["stripe_fee_payer"] == "customer"

    def test_identical_inputs_identical_results(self):
        args = (pricing("33.33", 3, tax="6.5", stripe="business"), HIGHER_1_OR_5)
        assert compute_pricing(*args) == compute_pricing(*args)

    @pytest.mark.parametrize("stripe_payer", PAYERS)
    @pytest.mark.parametrize("platform_payer", PAYERS)
    @pytest.mark.parametrize("cfg", [
        FeeConfiguration("flat", Decimal("1.50"), Decimal("0")),
        FeeConfiguration("percentage", Decimal("0"), Decimal("6")),
        FeeConfiguration("higher_of_both", Decimal("1.50"), Decimal("6")),
    ])
    def test_money_reconciles(self, cfg, stripe_payer, platform_payer):
        result = compute_pricing(pricing("37.50", 3, tax="8.25", stripe=stripe_payer, platform=platform_payer), cfg)
        assert result.business_receives == result.total_charged - result.stripe_fee - result.platform_fee
        assert result.platform_take == result.platform_fee + result.stripe_fee

        expected_total = result.subtotal + result.tax_amount
        if platform_payer == "customer":
            expected_total += result.platform_fee
        if stripe_payer == "customer":
            expected_total += result.stripe_fee
        assert result.total_charged == expected_total

    @pytest.mark.parametrize("cfg", [PCT_10, HIGHER_1_OR_5])
    def test_monotone_in_quantity(self, cfg):
        previous = None
        for quantity in range(1, 21):
            result = compute_pricing(pricing("12.34", quantity, tax="5", stripe="business", platform="business"), cfg)
            if previous is not None:
                assert result.subtotal >= previous.subtotal
                assert result.tax_amount >= previous.tax_amount
                assert result.platform_fee >= previous.platform_fee
            previous = result


class TestPricingErrors:
    @pytest.mark.parametrize("unit_price,quantity", [("10", 0), ("10", -1), ("-0.01", 1)])
    def test_invalid_input(self, unit_price, quantity):
        with pytest.raises(InvalidPricingInput):
            compute_pricing(pricing(unit_price, quantity), FLAT_2)

    def test_input_checked_before_configuration(self):
        with pytest.raises(InvalidPricingInput):
            compute_pricing(pricing("10", 0), FeeConfiguration(None))

    def test_tax_out_of_range(self):
        with pytest.raises(InvalidPricingInput):
            compute_pricing(pricing("10", 1, tax="100.5"), FLAT_2)

    def test_unknown_payer(self):
        with pytest.raises(InvalidPricingInput):
            compute_pricing(pricing("10", 1, stripe="platform"), FLAT_2)

    @pytest.mark.parametrize("cfg", [
        FeeConfiguration(None),
        FeeConfiguration("tiered", Decimal("1"), Decimal("1")),
        FeeConfiguration("flat", Decimal("-1"), Decimal("0")),
        FeeConfiguration("percentage", Decimal("0"), Decimal("-5")),
    ])
    def test_invalid_configuration(self, cfg):
        with pytest.raises(InvalidConfiguration):
            compute_pricing(pricing("10", 1), cfg)

    def test_negative_payout_rejected(self):
        # 100¢ ticket, 200¢ flat fee, 33¢ Stripe fee, all on the business
        with pytest.raises(NegativePayoutWarning) as exc:
            compute_pricing(pricing("1.00", 1, stripe="business", platform="business"), FLAT_2)
        assert exc.value.business_receives == -133


class TestPayoutFloor:
    def test_worst_case_payout(self):
        assert worst_case_payout(FLAT_2, "1.00", 0, "business", "business") == -133
        assert worst_case_payout(FLAT_2, "1.00", 0, "customer", "customer") == 100

    def test_check_payout_floor(self):
        assert check_payout_floor(FLAT_2, "25.00", 8, "business", "business") > 0
        with pytest.raises(NegativePayoutWarning):
            check_payout_floor(FLAT_2, "1.00", 0, "business", "business")
