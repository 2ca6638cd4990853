"""
In-progress POS cart.

One line per stock item; the line id is the stock item id. Price and cost
are copied from the catalog snapshot when the item is added and are not
live-linked afterwards. The on-hand quantity at add time is kept as a
ceiling for quantity edits; it is an optimistic hint only; checkout
re-validates against the live row.
"""
from __future__ import annotations

from dataclasses import dataclass

from .stock import StockSnapshot


class CartValidationError(ValueError):
    """Rejected cart edit (unknown line, unsellable item)."""


@dataclass
class CartLine:
    stock_item_id: int
    name: str
    quantity: int
    unit_price_cents: int
    unit_cost_cents: int | None
    ceiling: int

    @property
    def line_id(self) -> int:
        return self.stock_item_id

    @property
    def line_total_cents(self) -> int:
        return self.unit_price_cents * self.quantity

    def to_dict(self) -> dict:
        return {
            "line_id": self.line_id,
            "stock_item_id": self.stock_item_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "unit_cost_cents": self.unit_cost_cents,
            "ceiling": self.ceiling,
            "line_total_cents": self.line_total_cents,
        }


class Cart:
    def __init__(self):
        # dict preserves insertion order
        self._lines: dict[int, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, line_id: int) -> bool:
        return line_id in self._lines

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines.values())

    def get(self, line_id: int) -> CartLine | None:
        return self._lines.get(line_id)

    def add_item(self, item: StockSnapshot) -> CartLine:
        """
        Add a stock item with quantity 1.

        Adding an item already in the cart is a no-op and returns the
        existing line; quantity is changed through set_quantity only.
        """
        existing = self._lines.get(item.id)
        if existing is not None:
            return existing

        if item.quantity < 1:
            raise CartValidationError(f"{item.name} is out of stock")

        line = CartLine(
            stock_item_id=item.id,
            name=item.name,
            quantity=1,
            unit_price_cents=item.price_cents,
            unit_cost_cents=item.cost_cents,
            ceiling=item.quantity,
        )
        self._lines[item.id] = line
        return line

    def set_quantity(self, line_id: int, new_quantity: int) -> bool:
        """
        Returns True when the cart changed, False when the edit was rejected
        because new_quantity exceeds the line's ceiling.
        """
        line = self._lines.get(line_id)
        if line is None:
            raise CartValidationError(f"Line {line_id} is not in the cart")

        if new_quantity < 1:
            self.remove_item(line_id)
            return True

        if new_quantity > line.ceiling:
            return False

        line.quantity = new_quantity
        return True

    def remove_item(self, line_id: int) -> None:
        self._lines.pop(line_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self._lines.values()],
            "line_count": len(self._lines),
        }
