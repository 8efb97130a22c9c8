# boxoffice/routes/settings.py
import logging
from types import SimpleNamespace

from flask import Blueprint, request, jsonify
from sqlalchemy import func

from ..errors import NegativePayoutWarning
from ..extensions import db
from ..models import Business, Event, PlatformSettings
from ..schemas import BusinessFeeSettingsSchema, FeeConfigurationSchema
from ..services.auth import require_api_key
from ..services.fee_settings import (
    StaticFeeConfigProvider, business_fee_payers, business_tax_percentage, get_fee_provider,
)
from ..services.pricing import FeeConfiguration, check_payout_floor, validate_fee_configuration

bp = Blueprint("settings", __name__)
logger = logging.getLogger(__name__)

BUSINESS_FEE_FIELDS = (
    "stripe_fee_payer", "platform_fee_payer", "tax_percentage",
    "use_custom_fee_settings", "platform_fee_type", "flat_fee_amount", "percentage_fee",
)


def _config_json(cfg: FeeConfiguration):
    return {
        "platform_fee_type": cfg.platform_fee_type,
        "flat_fee_amount": str(cfg.flat_fee_amount),
        "percentage_fee": str(cfg.percentage_fee),
    }


def _min_paid_price(business_id: int):
    return (
        db.session.query(func.min(Event.ticket_price))
        .filter(Event.business_id == business_id, Event.ticket_price > 0, Event.status != "cancelled")
        .scalar()
    )


def _check_business(business, provider):
    """Reject settings under which the cheapest ticket this business sells would pay out < 0."""
    min_price = _min_paid_price(business.id)
    if min_price is None:
        return
    stripe_payer, platform_payer = business_fee_payers(business)
    try:
        check_payout_floor(
            provider.effective_config(business),
            min_price,
            business_tax_percentage(business),
            stripe_payer,
            platform_payer,
        )
    except NegativePayoutWarning:
        logger.warning("Rejected fee settings for business %s (min ticket price %s)", business.id, min_price)
        raise


@bp.get("/platform")
@require_api_key
def get_platform_settings():
    return jsonify(_config_json(get_fee_provider().platform_default()))


@bp.put("/platform")
@require_api_key
def update_platform_settings():
    obj = FeeConfigurationSchema().load(request.get_json(silent=True) or {})
    cfg = validate_fee_configuration(FeeConfiguration(**obj))

    # every business on the platform default has to stay payable
    provider = StaticFeeConfigProvider(cfg)
    for business in Business.query.filter(Business.use_custom_fee_settings.isnot(True)).all():
        _check_business(business, provider)

    row = PlatformSettings.query.order_by(PlatformSettings.id).first()
    if row is None:
        row = PlatformSettings()
        db.session.add(row)
    row.platform_fee_type = cfg.platform_fee_type
    row.flat_fee_amount = cfg.flat_fee_amount
    row.percentage_fee = cfg.percentage_fee
    db.session.commit()
    logger.info("Platform fee settings updated: %s", _config_json(cfg))
    return jsonify(_config_json(cfg))


@bp.put("/businesses/<int:business_id>/fees")
@require_api_key
def update_business_fees(business_id):
    business = db.get_or_404(Business, business_id)
    obj = BusinessFeeSettingsSchema().load(request.get_json(silent=True) or {}, partial=True)

    # validate the would-be settings before touching the row
    proposed = SimpleNamespace(**{
        f: obj[f] if f in obj else getattr(business, f) for f in BUSINESS_FEE_FIELDS
    }, id=business.id)
    provider = get_fee_provider()
    effective = provider.effective_config(proposed)
    _check_business(proposed, provider)

    for k, v in obj.items():
        setattr(business, k, v)
    db.session.commit()
    logger.info("Fee settings updated for business %s", business.id)

    stripe_payer, platform_payer = business_fee_payers(business)
    out = _config_json(effective)
    out.update({
        "use_custom_fee_settings": bool(business.use_custom_fee_settings),
        "stripe_fee_payer": stripe_payer,
        "platform_fee_payer": platform_payer,
        "tax_percentage": str(business.tax_percentage),
    })
    return jsonify(out)
