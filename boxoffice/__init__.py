# boxoffice/__init__.py
import logging

import stripe
from flask import Flask, jsonify
from dotenv import load_dotenv
from marshmallow import ValidationError

from .errors import PricingError
from .extensions import db, handle_validation_error, handle_pricing_error, handle_stripe_error
from .routes.checkout import bp as checkout_bp
from .routes.settings import bp as settings_bp
from .routes.reports import bp as reports_bp


def create_app(config_object="config.Config"):
    load_dotenv()
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    logging.getLogger(__name__).setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    with app.app_context():
        db.create_all()

    app.register_error_handler(ValidationError, handle_validation_error)
    app.register_error_handler(PricingError, handle_pricing_error)
    app.register_error_handler(stripe.StripeError, handle_stripe_error)

    app.register_blueprint(checkout_bp, url_prefix="/checkout")
    app.register_blueprint(settings_bp, url_prefix="/settings")
    app.register_blueprint(reports_bp, url_prefix="/reports")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    return app
