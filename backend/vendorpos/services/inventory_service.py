# Overview: Vendor-scoped stock item management.

"""
Inventory Service

MULTI-TENANT: every read and write is filtered by vendor_id. A stock item
id that belongs to another vendor behaves exactly like a missing one.
"""
from __future__ import annotations

from ..extensions import db
from ..models import StockItem, SaleLine
from ..validation import ConflictError
from .concurrency import run_with_retry

STOCK_MUTABLE_FIELDS = {"name", "quantity", "price_cents", "cost_cents", "category", "low_stock_threshold"}


class StockItemNotFound(Exception):
    """Stock item does not exist for this vendor."""


def apply_stock_patch(item: StockItem, patch: dict) -> None:
    for k, v in patch.items():
        if k not in STOCK_MUTABLE_FIELDS:
            continue
        setattr(item, k, v)


def list_stock_items(vendor_id: int, category: str | None = None) -> list[StockItem]:
    query = db.session.query(StockItem).filter(StockItem.vendor_id == vendor_id)
    if category:
        query = query.filter(StockItem.category == category)
    return query.order_by(StockItem.name.asc(), StockItem.id.asc()).all()


def get_stock_item(vendor_id: int, item_id: int) -> StockItem:
    item = db.session.query(StockItem).filter_by(id=item_id, vendor_id=vendor_id).first()
    if item is None:
        raise StockItemNotFound(f"Stock item {item_id} not found")
    return item


def create_stock_item(vendor_id: int, patch: dict) -> StockItem:
    item = StockItem(vendor_id=vendor_id, quantity=0)
    apply_stock_patch(item, patch)
    db.session.add(item)
    db.session.commit()
    return item


def update_stock_item(vendor_id: int, item_id: int, patch: dict) -> StockItem:
    def _op():
        item = get_stock_item(vendor_id, item_id)
        apply_stock_patch(item, patch)
        db.session.commit()
        return item

    return run_with_retry(_op)


def delete_stock_item(vendor_id: int, item_id: int) -> None:
    """Items that appear on a sale are kept; set quantity to 0 instead."""
    item = get_stock_item(vendor_id, item_id)
    if db.session.query(SaleLine.id).filter_by(stock_item_id=item.id).first():
        raise ConflictError("Stock item has sales history and cannot be deleted")
    db.session.delete(item)
    db.session.commit()
