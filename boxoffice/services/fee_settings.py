# boxoffice/services/fee_settings.py
# Resolves the fee configuration that applies to a business at checkout time.
# Providers are read-only and hold nothing between calls.
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Tuple

from flask import current_app

from ..models import PlatformSettings
from .pricing import FeeConfiguration, FeePayer, to_decimal, validate_fee_configuration


class FeeConfigProvider(ABC):
    @abstractmethod
    def platform_default(self) -> FeeConfiguration:
        """The global fee configuration."""

    def effective_config(self, business) -> FeeConfiguration:
        """
        A business with custom fee settings enabled gets its own configuration,
        replacing the platform default entirely. Unset custom amounts count as 0.
        """
        if business is not None and business.use_custom_fee_settings and business.platform_fee_type:
            cfg = FeeConfiguration(
                platform_fee_type=business.platform_fee_type,
                flat_fee_amount=to_decimal(business.flat_fee_amount or 0),
                percentage_fee=to_decimal(business.percentage_fee or 0),
            )
        else:
            cfg = self.platform_default()
        return validate_fee_configuration(cfg)


class StaticFeeConfigProvider(FeeConfigProvider):
    def __init__(self, default: FeeConfiguration):
        self.default = default

    def platform_default(self) -> FeeConfiguration:
        return self.default


class DatabaseFeeConfigProvider(FeeConfigProvider):
    """Reads the platform_settings row on every call; falls back to app config."""

    def platform_default(self) -> FeeConfiguration:
        row = PlatformSettings.query.order_by(PlatformSettings.id).first()
        if row is None:
            return config_default()
        return FeeConfiguration(
            platform_fee_type=row.platform_fee_type,
            flat_fee_amount=to_decimal(row.flat_fee_amount),
            percentage_fee=to_decimal(row.percentage_fee),
        )


def config_default() -> FeeConfiguration:
    cfg = current_app.config
    return FeeConfiguration(
        platform_fee_type=cfg["DEFAULT_PLATFORM_FEE_TYPE"],
        flat_fee_amount=to_decimal(cfg["DEFAULT_FLAT_FEE_AMOUNT"]),
        percentage_fee=to_decimal(cfg["DEFAULT_PERCENTAGE_FEE"]),
    )


def business_fee_payers(business) -> Tuple[str, str]:
    """(stripe_fee_payer, platform_fee_payer), defaulting to the customer."""
    return (
        business.stripe_fee_payer or FeePayer.CUSTOMER.value,
        business.platform_fee_payer or FeePayer.CUSTOMER.value,
    )


def business_tax_percentage(business) -> Decimal:
    return to_decimal(business.tax_percentage or 0)


def get_fee_provider() -> FeeConfigProvider:
    """Provider for the current app; tests may inject one via FEE_CONFIG_PROVIDER."""
    return current_app.config.get("FEE_CONFIG_PROVIDER") or DatabaseFeeConfigProvider()
