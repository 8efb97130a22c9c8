from flask import Blueprint, jsonify
from ..extensions import db
from ..models import Business, Order
from ..schemas import SettlementSchema
from ..services.auth import require_api_key
from ..services.pricing import cents_to_dollars
from ..services.settlement import order_payout, settlement_summary, SETTLED_STATUSES
from ..utils.currency import format_currency

bp = Blueprint("reports", __name__)


@bp.get("/businesses/<int:business_id>/settlement")
@require_api_key
def settlement(business_id):
    business = db.get_or_404(Business, business_id)
    orders = Order.query.filter_by(business_id=business.id).order_by(Order.created_at).all()
    out = SettlementSchema().dump(settlement_summary(orders))
    out["net_revenue_display"] = format_currency(out["net_revenue"])
    out["payouts"] = [
        {"order_id": o.id, "total": str(cents_to_dollars(o.total_cents)), "estimated_payout": str(order_payout(o))}
        for o in orders if o.status in SETTLED_STATUSES
    ]
    return jsonify(out)
