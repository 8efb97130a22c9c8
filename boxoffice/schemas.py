from marshmallow import Schema, fields, validates, ValidationError

from .models import FEE_PAYERS
from .services.pricing import cents_to_dollars


class CheckoutQuoteSchema(Schema):
    event_id = fields.Integer(required=True)
    # range checks happen in the fee engine so they surface as pricing errors
    quantity = fields.Integer(required=True)
    promo_code = fields.String(load_default=None)


class CheckoutSchema(CheckoutQuoteSchema):
    customer_name = fields.String(required=True)
    customer_email = fields.Email(required=True)
    customer_phone = fields.String(load_default=None)

    @validates("customer_name")
    def validate_name(self, v, **kwargs):
        if not v.strip():
            raise ValidationError("customer_name cannot be empty")


class FeeConfigurationSchema(Schema):
    platform_fee_type = fields.String(required=True)
    flat_fee_amount = fields.Decimal(load_default=0)
    percentage_fee = fields.Decimal(load_default=0)


class BusinessFeeSettingsSchema(Schema):
    # All fields optional; loaded with partial=True
    stripe_fee_payer = fields.String()
    platform_fee_payer = fields.String()
    tax_percentage = fields.Decimal()
    use_custom_fee_settings = fields.Boolean()
    platform_fee_type = fields.String(allow_none=True)
    flat_fee_amount = fields.Decimal(allow_none=True)
    percentage_fee = fields.Decimal(allow_none=True)

    @validates("stripe_fee_payer")
    def validate_stripe_payer(self, v, **kwargs):
        if v not in FEE_PAYERS:
            raise ValidationError(f"stripe_fee_payer must be one of {list(FEE_PAYERS)}")

    @validates("platform_fee_payer")
    def validate_platform_payer(self, v, **kwargs):
        if v not in FEE_PAYERS:
            raise ValidationError(f"platform_fee_payer must be one of {list(FEE_PAYERS)}")

    @validates("tax_percentage")
    def validate_tax(self, v, **kwargs):
        if v < 0 or v > 100:
            raise ValidationError("tax_percentage must be between 0 and 100")


class PricingResultSchema(Schema):
    subtotal = fields.Decimal(as_string=True)
    discount = fields.Decimal(as_string=True)
    tax_amount = fields.Decimal(as_string=True)
    platform_fee = fields.Decimal(as_string=True)
    stripe_fee = fields.Decimal(as_string=True)
    total_charged = fields.Decimal(as_string=True)
    business_receives = fields.Decimal(as_string=True)
    stripe_fee_payer = fields.String()
    platform_fee_payer = fields.String()


class SettlementSchema(Schema):
    orders = fields.Integer()
    tickets = fields.Integer()
    gross_sales = fields.Decimal(as_string=True)
    tax_collected = fields.Decimal(as_string=True)
    platform_fees = fields.Decimal(as_string=True)
    stripe_fees = fields.Decimal(as_string=True)
    net_revenue = fields.Decimal(as_string=True)


class OrderSchema(Schema):
    id = fields.Integer()
    event_id = fields.Integer()
    status = fields.String()
    quantity = fields.Integer()
    customer_email = fields.String()
    total = fields.Method("get_total")

    def get_total(self, obj):
        return str(cents_to_dollars(obj.total_cents))
