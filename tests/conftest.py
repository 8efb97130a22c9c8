from decimal import Decimal

import pytest

from boxoffice import create_app
from boxoffice.extensions import db as _db
from boxoffice.models import Business, Event
from config import TestConfig


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def api_headers(app):
    return {"X-API-KEY": app.config["API_KEY"]}


@pytest.fixture
def make_business(app):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = dict(
            name=f"Venue {counter['n']}",
            slug=f"venue-{counter['n']}",
            stripe_account_id="acct_test123",
            stripe_onboarding_complete=True,
            stripe_fee_payer="customer",
            platform_fee_payer="customer",
            tax_percentage=Decimal("8"),
        )
        fields.update(overrides)
        business = Business(**fields)
        _db.session.add(business)
        _db.session.commit()
        return business

    return _make


@pytest.fixture
def make_event(app):
    def _make(business, **overrides):
        fields = dict(
            business_id=business.id,
            title="Friday Night Live",
            ticket_price=Decimal("25.00"),
            available_tickets=100,
            total_tickets=100,
            status="published",
        )
        fields.update(overrides)
        event = Event(**fields)
        _db.session.add(event)
        _db.session.commit()
        return event

    return _make


@pytest.fixture
def business(make_business):
    return make_business()


@pytest.fixture
def event(make_event, business):
    return make_event(business)
