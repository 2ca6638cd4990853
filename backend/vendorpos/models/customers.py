from __future__ import annotations

from ..extensions import db
from vendorpos.time_utils import to_utc_z


class CustomerProfile(db.Model):
    """
    Loyalty-program customer, looked up by phone within a vendor.

    Points are NOT stored here; the balance is always derived from
    PointsLedgerEntry rows.
    """
    __tablename__ = "customer_profiles"
    __table_args__ = (
        db.UniqueConstraint("vendor_id", "phone", name="uq_customer_profiles_vendor_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=False)

    first_purchase_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_purchase_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    vendor = db.relationship("Vendor", backref=db.backref("customers", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "name": self.name,
            "phone": self.phone,
            "first_purchase_at": to_utc_z(self.first_purchase_at),
            "last_purchase_at": to_utc_z(self.last_purchase_at),
            "created_at": to_utc_z(self.created_at),
        }


class PointsLedgerEntry(db.Model):
    """
    Append-only ledger of loyalty points granted per sale.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "points_ledger"
    __table_args__ = (
        db.Index("ix_points_ledger_vendor_customer", "vendor_id", "customer_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customer_profiles.id"), nullable=False, index=True)

    points_earned = db.Column(db.Integer, nullable=False)
    purchase_total_cents = db.Column(db.Integer, nullable=False)

    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    reference_code = db.Column(db.String(16), nullable=False)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)

    customer = db.relationship("CustomerProfile", backref=db.backref("points_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "customer_id": self.customer_id,
            "points_earned": self.points_earned,
            "purchase_total_cents": self.purchase_total_cents,
            "sale_id": self.sale_id,
            "reference_code": self.reference_code,
            "occurred_at": to_utc_z(self.occurred_at),
        }
