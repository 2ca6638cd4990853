from __future__ import annotations

from ..extensions import db
from vendorpos.time_utils import to_utc_z


class Sale(db.Model):
    """
    Completed sale (append-only).

    Created exactly once per finalized checkout, in the same DB transaction
    as the stock decrements. No code path updates or deletes a sale.

    INVARIANT: total_cents = subtotal_cents + tax_cents
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_vendor_created", "vendor_id", "created_at"),
        db.Index("ix_sales_reference_code", "reference_code"),
        db.CheckConstraint("total_cents = subtotal_cents + tax_cents", name="ck_sales_total"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)

    # Human-readable reference (e.g., "#M512345")
    reference_code = db.Column(db.String(16), nullable=False)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(32), nullable=False, default="Cash")
    amount_paid_cents = db.Column(db.Integer, nullable=True)
    change_due_cents = db.Column(db.Integer, nullable=True)

    customer_name = db.Column(db.String(255), nullable=False, default="Guest")
    customer_phone = db.Column(db.String(32), nullable=False, default="")
    customer_id = db.Column(db.Integer, db.ForeignKey("customer_profiles.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    vendor = db.relationship("Vendor", backref=db.backref("sales", lazy=True))
    lines = db.relationship(
        "SaleLine",
        backref="sale",
        lazy=True,
        order_by="SaleLine.position",
    )

    def items_snapshot(self) -> list[dict]:
        return [line.to_item() for line in self.lines]

    def to_dict(self, include_lines: bool = True) -> dict:
        data = {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "reference_code": self.reference_code,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "payment_method": self.payment_method,
            "amount_paid_cents": self.amount_paid_cents,
            "change_due_cents": self.change_due_cents,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_id": self.customer_id,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["items"] = self.items_snapshot()
        return data


class SaleLine(db.Model):
    """Line item on a sale, in cart order."""
    __tablename__ = "sale_lines"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "position", name="uq_sale_lines_sale_position"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    stock_item_id = db.Column(db.Integer, db.ForeignKey("stock_items.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    unit_cost_cents = db.Column(db.Integer, nullable=True)
    line_total_cents = db.Column(db.Integer, nullable=False)

    def to_item(self) -> dict:
        # unit_cost_cents is omitted rather than emitted as null
        item = {
            "id": self.stock_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
        if self.unit_cost_cents is not None:
            item["unit_cost_cents"] = self.unit_cost_cents
        return item


class CustomerPurchase(db.Model):
    """
    Denormalized copy of a sale for a named customer.

    Written alongside the Sale so purchase history can be queried by
    (vendor_id, customer_phone) without touching the sales ledger.
    """
    __tablename__ = "customer_purchases"
    __table_args__ = (
        db.Index("ix_customer_purchases_vendor_phone_created", "vendor_id", "customer_phone", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=False)
    reference_code = db.Column(db.String(16), nullable=False)

    items = db.Column(db.JSON, nullable=False)
    subtotal_cents = db.Column(db.Integer, nullable=False)
    tax_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "sale_id": self.sale_id,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "reference_code": self.reference_code,
            "items": self.items,
            "subtotal_cents": self.subtotal_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }
