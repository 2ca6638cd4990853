# Overview: Vendor catalog snapshot used by POS terminals for the product grid and cart validation.

"""
Catalog Cache

Loaded once per terminal session and held in memory. It is NOT refreshed
after a sale; callers reload explicitly. Checkout never trusts these
quantities and re-reads the live rows inside its own transaction.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StockItem
from ..domain.stock import StockSnapshot, stock_status, DEFAULT_LOW_STOCK_THRESHOLD, STATUS_LOW_STOCK

logger = logging.getLogger(__name__)

ALL_CATEGORIES = "All"


class DataUnavailable(Exception):
    """Raised when the store cannot be read."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class CatalogCache:
    def __init__(self, vendor_id: int, default_low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD):
        self.vendor_id = vendor_id
        self.default_low_stock_threshold = default_low_stock_threshold
        self._items: list[StockSnapshot] = []
        self._by_id: dict[int, StockSnapshot] = {}
        self.loaded = False

    def load(self) -> list[StockSnapshot]:
        try:
            rows = (
                db.session.query(StockItem)
                .filter(StockItem.vendor_id == self.vendor_id)
                .order_by(StockItem.name.asc(), StockItem.id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            db.session.rollback()
            logger.exception("Failed to load catalog for vendor %s", self.vendor_id)
            raise DataUnavailable("Stock data is unavailable", details={"vendor_id": self.vendor_id}) from exc

        self._items = [StockSnapshot.from_model(row) for row in rows]
        self._by_id = {item.id: item for item in self._items}
        self.loaded = True
        return list(self._items)

    @property
    def items(self) -> list[StockSnapshot]:
        return list(self._items)

    def get(self, item_id: int) -> StockSnapshot | None:
        return self._by_id.get(item_id)

    def categories(self) -> list[str]:
        distinct = {item.category for item in self._items if item.category}
        return [ALL_CATEGORIES, *sorted(distinct)]

    def filter(self, category: str | None = None, search: str | None = None) -> list[StockSnapshot]:
        items = self._items
        if category and category != ALL_CATEGORIES:
            items = [item for item in items if item.category == category]
        if search:
            needle = search.strip().lower()
            items = [item for item in items if needle in item.name.lower()]
        return list(items)

    def stock_status(self, item: StockSnapshot) -> str:
        return stock_status(item, self.default_low_stock_threshold)

    def low_stock(self) -> list[StockSnapshot]:
        return [item for item in self._items if self.stock_status(item) == STATUS_LOW_STOCK]

    def to_dict(self, items: list[StockSnapshot] | None = None) -> dict:
        items = self._items if items is None else items
        return {
            "items": [dict(item.to_dict(), status=self.stock_status(item)) for item in items],
            "count": len(items),
            "categories": self.categories(),
            "has_low_stock": bool(self.low_stock()),
        }


def suggest_names(vendor_id: int, prefix: str, limit: int = 10) -> list[str]:
    """
    Ordered prefix range query over the vendor's stock item names,
    for search-as-you-type suggestions.
    """
    prefix = (prefix or "").strip()
    if not prefix:
        return []

    rows = (
        db.session.query(StockItem.name)
        .filter(
            StockItem.vendor_id == vendor_id,
            StockItem.name >= prefix,
            StockItem.name < prefix + "\uffff",
        )
        .order_by(StockItem.name.asc())
        .limit(limit)
        .all()
    )
    return [name for (name,) in rows]
