from __future__ import annotations

from dataclasses import dataclass

DEFAULT_LOW_STOCK_THRESHOLD = 5

STATUS_OUT_OF_STOCK = "OUT_OF_STOCK"
STATUS_LOW_STOCK = "LOW_STOCK"
STATUS_IN_STOCK = "IN_STOCK"


@dataclass(frozen=True)
class StockSnapshot:
    """Read-only view of a StockItem row as loaded into the catalog."""
    id: int
    name: str
    quantity: int
    price_cents: int
    cost_cents: int | None = None
    category: str | None = None
    low_stock_threshold: int | None = None

    @classmethod
    def from_model(cls, item) -> "StockSnapshot":
        return cls(
            id=item.id,
            name=item.name,
            quantity=item.quantity,
            price_cents=item.price_cents,
            cost_cents=item.cost_cents,
            category=item.category,
            low_stock_threshold=item.low_stock_threshold,
        )

    def threshold(self, default: int = DEFAULT_LOW_STOCK_THRESHOLD) -> int:
        # 0 and None both fall back to the default
        return self.low_stock_threshold or default

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
            "category": self.category,
            "low_stock_threshold": self.low_stock_threshold,
        }


def stock_status(item: StockSnapshot, default_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD) -> str:
    if item.quantity <= 0:
        return STATUS_OUT_OF_STOCK
    if item.quantity < item.threshold(default_threshold):
        return STATUS_LOW_STOCK
    return STATUS_IN_STOCK
