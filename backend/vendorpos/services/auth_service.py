# Overview: Service-layer operations for vendor accounts and credentials.

"""
Vendor Authentication Service

Vendors are the tenants: a vendor account owns its stock, customers and
sales. Passwords are hashed with bcrypt; session tokens are managed in
session_service.py.
"""

import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Vendor
from ..validation import ConflictError


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter and one digit
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt (BCRYPT_ROUNDS, default 12)."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # malformed hash
        return False


def create_vendor(name: str, email: str, password: str, tax_rate_bps: int | None = None) -> Vendor:
    name = (name or "").strip()
    email = (email or "").strip().lower()

    if not name:
        raise ValueError("name is required")
    if not _EMAIL_RE.match(email):
        raise ValueError("a valid email is required")

    if db.session.query(Vendor).filter_by(email=email).first():
        raise ConflictError(f"Vendor with email {email} already exists")

    vendor = Vendor(
        name=name,
        email=email,
        password_hash=hash_password(password),
        tax_rate_bps=tax_rate_bps,
        is_active=True,
    )
    db.session.add(vendor)
    db.session.commit()
    return vendor


def authenticate(email: str, password: str) -> Vendor | None:
    """
    Returns the Vendor if the credentials are valid and the account is
    active, None otherwise.
    """
    email = (email or "").strip().lower()
    vendor = db.session.query(Vendor).filter(
        Vendor.email == email,
        Vendor.is_active.is_(True),
    ).first()

    if not vendor:
        return None

    if verify_password(password, vendor.password_hash):
        return vendor

    return None
