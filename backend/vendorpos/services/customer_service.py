# Overview: Loyalty customer registration, lookup by phone and points balance.

"""
Customer Lookup

A lookup failure must never block a sale: store errors are logged and the
caller proceeds with a guest checkout.

Points use the ledger strategy only. The balance is SUM(points_earned)
over points_ledger for (vendor, customer); there is no counter column.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import CustomerProfile, CustomerPurchase, PointsLedgerEntry
from ..validation import ValidationError, ConflictError

logger = logging.getLogger(__name__)

MIN_PHONE_LENGTH = 5
GUEST_NAME = "Guest"


@dataclass
class CustomerLookupResult:
    profile: CustomerProfile
    points_balance: int
    history: list[CustomerPurchase] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "customer": self.profile.to_dict(),
            "points_balance": self.points_balance,
            "history": [purchase.to_dict() for purchase in self.history],
        }


def normalize_phone(phone: str | None) -> str:
    return "".join((phone or "").split())


def register_customer(vendor_id: int, name: str, phone: str) -> CustomerProfile:
    name = (name or "").strip()
    phone = normalize_phone(phone)

    if not name or not phone:
        raise ValidationError("name and phone are required")
    if name == GUEST_NAME:
        raise ValidationError(f"'{GUEST_NAME}' is reserved")
    if len(phone) < MIN_PHONE_LENGTH:
        raise ValidationError(f"phone must be at least {MIN_PHONE_LENGTH} characters")

    existing = db.session.query(CustomerProfile).filter_by(vendor_id=vendor_id, phone=phone).first()
    if existing:
        raise ConflictError("A customer with this phone is already registered")

    profile = CustomerProfile(vendor_id=vendor_id, name=name, phone=phone)
    db.session.add(profile)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ConflictError("A customer with this phone is already registered") from exc
    return profile


def list_customers(vendor_id: int) -> list[CustomerProfile]:
    return (
        db.session.query(CustomerProfile)
        .filter_by(vendor_id=vendor_id)
        .order_by(CustomerProfile.name.asc(), CustomerProfile.id.asc())
        .all()
    )


def points_balance(vendor_id: int, customer_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(PointsLedgerEntry.points_earned), 0))
        .filter(
            PointsLedgerEntry.vendor_id == vendor_id,
            PointsLedgerEntry.customer_id == customer_id,
        )
        .scalar()
    )
    return int(total or 0)


def purchase_history(vendor_id: int, phone: str, limit: int) -> list[CustomerPurchase]:
    return (
        db.session.query(CustomerPurchase)
        .filter(
            CustomerPurchase.vendor_id == vendor_id,
            CustomerPurchase.customer_phone == phone,
        )
        .order_by(CustomerPurchase.created_at.desc(), CustomerPurchase.id.desc())
        .limit(limit)
        .all()
    )


def lookup(vendor_id: int, phone: str, history_limit: int = 10) -> CustomerLookupResult | None:
    """
    Resolve a phone number to a registered customer, their points balance
    and most recent purchases (newest first).

    Returns None for no match, for phones too short to look up, and when
    the store fails (logged).
    """
    phone = normalize_phone(phone)
    if len(phone) < MIN_PHONE_LENGTH:
        return None

    try:
        profile = (
            db.session.query(CustomerProfile)
            .filter_by(vendor_id=vendor_id, phone=phone)
            .first()
        )
        if profile is None:
            logger.info("No registered customer for vendor %s with phone ending %s", vendor_id, phone[-4:])
            return None

        return CustomerLookupResult(
            profile=profile,
            points_balance=points_balance(vendor_id, profile.id),
            history=purchase_history(vendor_id, phone, history_limit),
        )
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Customer lookup failed for vendor %s; continuing as guest", vendor_id)
        return None
