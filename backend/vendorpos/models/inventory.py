from __future__ import annotations

from ..extensions import db
from vendorpos.time_utils import to_utc_z


class StockItem(db.Model):
    """
    Sellable unit owned by one vendor.

    quantity is the on-hand count. It is only decremented by a completed
    checkout (or edited directly by the vendor) and may never go negative.
    """
    __tablename__ = "stock_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_items_quantity_non_negative"),
        db.Index("ix_stock_items_vendor_name", "vendor_id", "name"),
        db.Index("ix_stock_items_vendor_category", "vendor_id", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents
    cost_cents = db.Column(db.Integer, nullable=True)
    price_cents = db.Column(db.Integer, nullable=False)

    category = db.Column(db.String(128), nullable=True)
    low_stock_threshold = db.Column(db.Integer, nullable=True)  # NULL -> default (5)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    vendor = db.relationship("Vendor", backref=db.backref("stock_items", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<StockItem id={self.id} name={self.name!r} qty={self.quantity} vendor_id={self.vendor_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "name": self.name,
            "quantity": self.quantity,
            "cost_cents": self.cost_cents,
            "price_cents": self.price_cents,
            "category": self.category,
            "low_stock_threshold": self.low_stock_threshold,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
