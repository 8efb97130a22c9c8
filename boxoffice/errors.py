# boxoffice/errors.py


class PricingError(Exception):
    """Base class for failures raised while pricing a checkout."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidConfiguration(PricingError):
    # missing/negative fee parameters, or a business that cannot take payments
    status_code = 422


class InvalidPricingInput(PricingError):
    status_code = 400


class NegativePayoutWarning(PricingError):
    """Fees would exceed what the business collects for an order."""
    status_code = 422

    def __init__(self, message: str, business_receives: int):
        super().__init__(message)
        self.business_receives = business_receives


class InsufficientInventory(PricingError):
    status_code = 409


class PaymentNotCompleted(PricingError):
    """Stripe has not confirmed the charge for an order yet."""
    status_code = 400
