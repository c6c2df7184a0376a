import os
from datetime import timedelta


def _env_int(name, default):
    raw = os.environ.get(name)
    return int(raw) if raw not in (None, "") else default


def _env_bool(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Amounts in minor units (paise). Coupon rewards issue a flat credit on redeem.
REWARD_CATALOG = [
    {
        "id": "coupon-50",
        "name": "₹50 Coupon",
        "description": "Use on your next purchase of ₹500 or more",
        "kind": "coupon",
        "cost": 100,
        "credit_value": 5000,
        "min_order_value": 50000,
        "available": True,
    },
    {
        "id": "plant-a-tree",
        "name": "Plant a Tree",
        "description": "We'll plant a tree in your name through our partner NGO",
        "kind": "environmental",
        "cost": 80,
        "available": True,
    },
    {
        "id": "coupon-100",
        "name": "₹100 Coupon",
        "description": "Use on your next purchase of ₹1000 or more",
        "kind": "coupon",
        "cost": 200,
        "credit_value": 10000,
        "min_order_value": 100000,
        "available": True,
    },
    {
        "id": "ocean-cleanup",
        "name": "Ocean Cleanup Donation",
        "description": "Support ocean cleanup efforts with ₹100 donation",
        "kind": "environmental",
        "cost": 120,
        "available": True,
    },
    {
        "id": "coupon-250",
        "name": "₹250 Coupon",
        "description": "Premium reward for dedicated eco-shoppers",
        "kind": "coupon",
        "cost": 500,
        "credit_value": 25000,
        "min_order_value": 0,
        "available": False,
    },
]


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CURRENCY = os.environ.get("CURRENCY", "INR")
    FREE_DELIVERY_THRESHOLD = _env_int("FREE_DELIVERY_THRESHOLD", 50000)
    FLAT_DELIVERY_FEE = _env_int("FLAT_DELIVERY_FEE", 4900)
    OFFSET_FEE_AMOUNT = _env_int("OFFSET_FEE_AMOUNT", 500)
    POINTS_PER_HUNDRED = _env_int("POINTS_PER_HUNDRED", 5)
    EARN_STEP = _env_int("EARN_STEP", 10000)
    OFFSET_BONUS_POINTS = _env_int("OFFSET_BONUS_POINTS", 5)
    STACK_FLAT_CREDITS = _env_bool("STACK_FLAT_CREDITS")
    REWARD_CATALOG = REWARD_CATALOG

    @staticmethod
    def init_app(app):
        if app.config.get("SQLALCHEMY_DATABASE_URI"):
            return
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'ecocreds.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-secret-key-with-enough-length-for-hs256"
    LOG_LEVEL = "WARNING"
