# boxoffice/extensions.py
import logging

from flask_sqlalchemy import SQLAlchemy
from marshmallow import ValidationError
from flask import jsonify

from .errors import PricingError

db = SQLAlchemy()
logger = logging.getLogger(__name__)
# plain marshmallow is enough; schemas live in boxoffice/schemas.py


def handle_validation_error(err: ValidationError):
    return jsonify({"errors": err.messages}), 400


def handle_pricing_error(err: PricingError):
    return jsonify({"error": err.message}), err.status_code


def handle_stripe_error(err):
    logger.error("Stripe request failed: %s", err)
    return jsonify({"error": getattr(err, "user_message", None) or "Payment provider error"}), 502
