from datetime import datetime
from .extensions import db

FEE_TYPES = ("flat", "percentage", "higher_of_both")
FEE_PAYERS = ("customer", "business")


class PlatformSettings(db.Model):
    """Platform-wide default fee configuration (a single row)."""
    __tablename__ = "platform_settings"
    id = db.Column(db.Integer, primary_key=True)
    platform_fee_type = db.Column(db.String(20), nullable=False, default="percentage")
    flat_fee_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)   # dollars
    percentage_fee = db.Column(db.Numeric(6, 3), nullable=False, default=0)     # percentage points
    platform_stripe_account_id = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Business(db.Model):
    __tablename__ = "businesses"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(120), nullable=False, unique=True, index=True)
    is_active = db.Column(db.Boolean, default=True)

    # Stripe Connect account receiving ticket proceeds
    stripe_account_id = db.Column(db.String(120), nullable=True)
    stripe_onboarding_complete = db.Column(db.Boolean, default=False)

    # Who absorbs each fee: customer / business
    stripe_fee_payer = db.Column(db.String(20), nullable=False, default="customer")
    platform_fee_payer = db.Column(db.String(20), nullable=False, default="customer")
    tax_percentage = db.Column(db.Numeric(6, 3), nullable=False, default=0)   # 0-100

    # Custom fee settings replace the platform settings in full when enabled
    use_custom_fee_settings = db.Column(db.Boolean, default=False)
    platform_fee_type = db.Column(db.String(20), nullable=True)
    flat_fee_amount = db.Column(db.Numeric(10, 2), nullable=True)
    percentage_fee = db.Column(db.Numeric(6, 3), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def can_accept_payments(self) -> bool:
        return bool(self.stripe_account_id) and bool(self.stripe_onboarding_complete)


class Event(db.Model):
    __tablename__ = "events"
    id = db.Column(db.Integer, primary_key=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(500), nullable=True)
    ticket_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    available_tickets = db.Column(db.Integer, nullable=False, default=0)
    total_tickets = db.Column(db.Integer, nullable=False, default=0)
    max_per_customer = db.Column(db.Integer, nullable=True)   # null = no limit
    status = db.Column(db.String(20), nullable=False, default="published")  # draft/published/cancelled
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    business = db.relationship("Business", backref="events")


class PromoCode(db.Model):
    __tablename__ = "promo_codes"
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False, index=True)
    code = db.Column(db.String(40), nullable=False)           # stored upper-case
    discount_type = db.Column(db.String(20), nullable=False)  # percentage / fixed
    discount_value = db.Column(db.Numeric(10, 2), nullable=False)
    max_uses = db.Column(db.Integer, nullable=True)           # null = unlimited
    current_uses = db.Column(db.Integer, nullable=False, default=0)
    valid_from = db.Column(db.DateTime, nullable=True)
    valid_until = db.Column(db.DateTime, nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    event = db.relationship("Event", backref="promo_codes")


class Order(db.Model):
    """One checkout attempt. Amounts are integer cents as priced at checkout."""
    __tablename__ = "orders"
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey("events.id"), nullable=False, index=True)
    business_id = db.Column(db.Integer, db.ForeignKey("businesses.id"), nullable=False, index=True)
    promo_code_id = db.Column(db.Integer, db.ForeignKey("promo_codes.id"), nullable=True)
    customer_name = db.Column(db.String(120), nullable=False)
    customer_email = db.Column(db.String(200), nullable=False)
    customer_phone = db.Column(db.String(40), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    platform_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    stripe_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    # platform fee + Stripe fee, i.e. the Stripe application_fee_amount
    platform_take_cents = db.Column(db.Integer, nullable=False, default=0)
    business_receives_cents = db.Column(db.Integer, nullable=False, default=0)

    stripe_session_id = db.Column(db.String(200), nullable=True)
    stripe_payment_intent_id = db.Column(db.String(200), nullable=True)
    status = db.Column(db.String(20), nullable=False, default="pending")  # pending/completed/refunded/cancelled
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    event = db.relationship("Event", backref="orders")
    business = db.relationship("Business", backref="orders")
