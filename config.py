import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///boxoffice.sqlite")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Admin endpoints require this in the X-API-KEY header
    API_KEY = os.getenv("API_KEY")

    # Stripe Connect
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")
    CURRENCY = os.getenv("CURRENCY", "usd")
    APP_URL = os.getenv("APP_URL", "http://127.0.0.1:5000")

    # Platform fee used until an admin saves platform settings
    # (flat | percentage | higher_of_both; flat in dollars, percentage in points)
    DEFAULT_PLATFORM_FEE_TYPE = os.getenv("DEFAULT_PLATFORM_FEE_TYPE", "percentage")
    DEFAULT_FLAT_FEE_AMOUNT = os.getenv("DEFAULT_FLAT_FEE_AMOUNT", "0")
    DEFAULT_PERCENTAGE_FEE = os.getenv("DEFAULT_PERCENTAGE_FEE", "5")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    API_KEY = "test-key"
    STRIPE_SECRET_KEY = "sk_test_dummy"
    APP_URL = "https://tickets.example.com"
    DEFAULT_PLATFORM_FEE_TYPE = "flat"
    DEFAULT_FLAT_FEE_AMOUNT = "1.00"
    DEFAULT_PERCENTAGE_FEE = "0"
