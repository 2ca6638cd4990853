# backend/vendorpos/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/vendorpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///vendorpos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # POS pricing and loyalty
    POS_TAX_RATE_BPS = int(os.environ.get("POS_TAX_RATE_BPS", "1500"))  # 15%
    POS_POINT_VALUE_DIVISOR = int(os.environ.get("POS_POINT_VALUE_DIVISOR", "200"))  # 1 point per 200.00
    POS_DEFAULT_LOW_STOCK_THRESHOLD = int(os.environ.get("POS_DEFAULT_LOW_STOCK_THRESHOLD", "5"))
    POS_CUSTOMER_HISTORY_LIMIT = int(os.environ.get("POS_CUSTOMER_HISTORY_LIMIT", "10"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    BCRYPT_ROUNDS = 4  # fast hashing for tests
