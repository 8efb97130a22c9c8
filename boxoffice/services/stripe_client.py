"""
Stripe SDK access for server-side calls. Keep Stripe calls out of the routes.
"""
import stripe
from flask import current_app


def is_configured() -> bool:
    """Return True if a Stripe secret key is set and non-empty."""
    key = current_app.config.get("STRIPE_SECRET_KEY") or ""
    return bool(key.strip())


def get_client():
    """
    Return the stripe module with the API key set,
    e.g. stripe_client.get_client().checkout.Session.create(...)
    """
    if not is_configured():
        raise RuntimeError("Stripe is not configured: STRIPE_SECRET_KEY is missing or empty.")
    stripe.api_key = current_app.config["STRIPE_SECRET_KEY"]
    return stripe
