# Overview: Service-layer operations for vendor sessions.

"""
Session Token Management Service

Tokens are random, hashed (SHA-256) before storage, time-limited and
revocable. A session pins the vendor_id that scopes every request.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, Vendor
from vendorpos.time_utils import utcnow


SESSION_IDLE_TIMEOUT = timedelta(hours=2)


@dataclass
class SessionContext:
    vendor: Vendor
    session: SessionToken
    vendor_id: int


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(vendor_id: int) -> tuple[SessionToken, str]:
    """
    Returns (session_record, plaintext_token).

    Raises ValueError if the vendor does not exist or is inactive.
    """
    vendor = db.session.query(Vendor).filter_by(id=vendor_id).first()
    if not vendor or not vendor.is_active:
        raise ValueError("Vendor is not active")

    plaintext_token = generate_token()
    now = utcnow()
    ttl = timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))

    session = SessionToken(
        vendor_id=vendor_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + ttl,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str) -> SessionContext | None:
    """
    Returns None if the token is unknown, expired, revoked, idle for too
    long, or belongs to a deactivated vendor.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        session.is_revoked = True
        session.revoked_reason = "Idle timeout"
        db.session.commit()
        return None

    vendor = session.vendor
    if not vendor or not vendor.is_active:
        session.is_revoked = True
        session.revoked_reason = "Vendor deactivated"
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(vendor=vendor, session=session, vendor_id=vendor.id)


def revoke_session(token: str, reason: str = "Vendor logout") -> bool:
    """Returns True if a live session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    session.is_revoked = True
    session.revoked_reason = reason
    db.session.commit()
    return True
