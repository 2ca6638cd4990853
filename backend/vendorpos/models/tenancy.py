from __future__ import annotations

from ..extensions import db
from vendorpos.time_utils import to_utc_z


class Vendor(db.Model):
    """
    Vendor (tenant) account.

    MULTI-TENANT: Every stock item, customer profile and sale carries a
    vendor_id. All queries are filtered by the authenticated vendor.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_vendors_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Basis points (1500 = 15%). NULL falls back to POS_TAX_RATE_BPS.
    tax_rate_bps = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "is_active": self.is_active,
            "tax_rate_bps": self.tax_rate_bps,
            "created_at": to_utc_z(self.created_at),
        }
