# Overview: POS checkout coordinator; owns the cart and turns it into a persisted sale.

"""
Checkout Coordinator

States:
    IDLE -> AWAITING_PAYMENT -> FINALIZING -> COMPLETED
    AWAITING_PAYMENT -> IDLE   (cancel, or any cart edit)

Finalize invariants:
- Stock decrements, the Sale, its lines, the customer purchase copy and the
  points ledger entry are written in ONE database transaction. Either all
  of them commit or none do.
- Live on-hand quantities are re-read (locked) inside that transaction; the
  cart ceilings captured at add time are never trusted for the write.
- Each decrement is a conditional UPDATE (quantity >= n), so a concurrent
  terminal cannot drive quantity negative.
- Finalize is NOT idempotent. A non-blocking in-flight lock rejects a second
  concurrent finalize on the same session. While it is held, cart and
  customer edits raise CheckoutStateError; the write uses the SaleOrder
  captured before the transaction began.
- The cart is cleared only after a successful commit. Any failure returns
  the session to AWAITING_PAYMENT.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StockItem, Sale, SaleLine, CustomerPurchase, PointsLedgerEntry, CustomerProfile
from ..domain.cart import Cart, CartLine
from ..domain.stock import StockSnapshot
from ..domain.pricing import (
    Totals,
    compute_totals,
    change_due,
    points_for_total,
    validate_tax_rate,
    validate_point_divisor,
)
from vendorpos.time_utils import utcnow, epoch_seconds
from . import customer_service
from .concurrency import begin_immediate, lock_for_update, decrement_stock_if_available, run_with_retry
from .customer_service import GUEST_NAME
from .receipt_service import format_receipt

logger = logging.getLogger(__name__)

STATE_IDLE = "IDLE"
STATE_AWAITING_PAYMENT = "AWAITING_PAYMENT"
STATE_FINALIZING = "FINALIZING"
STATE_COMPLETED = "COMPLETED"

DEFAULT_PAYMENT_METHOD = "Cash"
PAYMENT_METHODS = ("Cash", "Card", "Mobile")


class CheckoutError(Exception):
    """Base class for checkout failures."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class EmptyCartError(CheckoutError):
    """Checkout attempted with no lines in the cart."""


class InsufficientStockError(CheckoutError):
    """A line asks for more units than are live on hand."""


class PersistenceError(CheckoutError):
    """The store write failed; nothing was committed."""


class CheckoutStateError(CheckoutError):
    """Operation not valid in the current checkout state."""


class CheckoutInProgressError(CheckoutError):
    """A finalize is already running for this session."""


class PaymentError(CheckoutError):
    """Invalid payment method or tendered amount."""


@dataclass
class CheckoutResult:
    sale: Sale
    points_earned: int
    print_receipt: bool = False
    receipt_text: str | None = None

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "points_earned": self.points_earned,
            "print_receipt": self.print_receipt,
            "receipt": self.receipt_text,
        }


@dataclass(frozen=True)
class SaleOrder:
    """Cart, customer and payment as captured when finalize starts."""
    lines: tuple[CartLine, ...]
    totals: Totals
    customer_name: str
    customer_phone: str
    customer_id: int | None
    payment_method: str
    amount_paid_cents: int | None
    change_due_cents: int | None


def generate_reference_code(timestamp) -> str:
    """'#M' followed by the last 6 digits of the epoch-seconds timestamp."""
    return f"#M{str(epoch_seconds(timestamp))[-6:]}"


def _sale_items(lines: tuple[CartLine, ...]) -> list[dict]:
    items = []
    for line in lines:
        item = {
            "id": line.stock_item_id,
            "name": line.name,
            "quantity": line.quantity,
            "unit_price_cents": line.unit_price_cents,
            "line_total_cents": line.line_total_cents,
        }
        if line.unit_cost_cents is not None:
            item["unit_cost_cents"] = line.unit_cost_cents
        items.append(item)
    return items


class CheckoutSession:
    """
    Session-scoped checkout state for one POS terminal: the cart, the
    customer attached to it and the payment details.
    """

    def __init__(
        self,
        vendor_id: int,
        tax_rate_bps: int,
        point_value_divisor: int = 200,
        history_limit: int = 10,
    ):
        self.vendor_id = vendor_id
        self.tax_rate_bps = validate_tax_rate(tax_rate_bps)
        self.point_value_divisor = validate_point_divisor(point_value_divisor)
        self.history_limit = history_limit

        self.cart = Cart()
        self.state = STATE_IDLE
        self.last_sale_id: int | None = None
        self._in_flight = threading.Lock()

        self._reset_customer()
        self._reset_payment()

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def totals(self) -> Totals:
        return compute_totals(self.cart.lines, self.tax_rate_bps)

    @property
    def is_finalizing(self) -> bool:
        return self._in_flight.locked()

    # ------------------------------------------------------------------
    # Cart edits (any edit while awaiting payment returns to IDLE)
    # ------------------------------------------------------------------

    def _ensure_not_finalizing(self) -> None:
        if self.is_finalizing or self.state == STATE_FINALIZING:
            raise CheckoutStateError("Checkout cannot change while a sale is being finalized")

    def _before_cart_edit(self) -> None:
        self._ensure_not_finalizing()
        if self.state in (STATE_AWAITING_PAYMENT, STATE_COMPLETED):
            self.state = STATE_IDLE

    def add_item(self, item: StockSnapshot) -> CartLine:
        self._before_cart_edit()
        return self.cart.add_item(item)

    def set_quantity(self, line_id: int, quantity: int) -> bool:
        self._before_cart_edit()
        return self.cart.set_quantity(line_id, quantity)

    def remove_item(self, line_id: int) -> None:
        self._before_cart_edit()
        self.cart.remove_item(line_id)

    def clear_cart(self) -> None:
        self._before_cart_edit()
        self.cart.clear()

    # ------------------------------------------------------------------
    # Customer
    # ------------------------------------------------------------------

    def _reset_customer(self) -> None:
        self.customer_name = GUEST_NAME
        self.customer_phone = ""
        self.customer_id: int | None = None
        self.customer_points: int | None = None
        self.purchase_history: list[dict] = []

    def _reset_payment(self) -> None:
        self.payment_method = DEFAULT_PAYMENT_METHOD
        self.amount_paid_cents: int | None = None

    def lookup_customer(self, phone: str):
        """
        Attach a registered customer by phone. On no match (or a failed
        lookup) the sale stays a guest sale with the phone retained.
        """
        self._ensure_not_finalizing()
        self._reset_customer()
        self.customer_phone = customer_service.normalize_phone(phone)

        result = customer_service.lookup(self.vendor_id, phone, history_limit=self.history_limit)
        if result is None:
            return None

        self.customer_name = result.profile.name
        self.customer_id = result.profile.id
        self.customer_points = result.points_balance
        self.purchase_history = [purchase.to_dict() for purchase in result.history]
        return result

    def set_customer(self, name: str | None, phone: str | None) -> None:
        """Manual entry for an unregistered customer (no points linkage)."""
        self._ensure_not_finalizing()
        self._reset_customer()
        self.customer_name = (name or "").strip() or GUEST_NAME
        self.customer_phone = customer_service.normalize_phone(phone)

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def initiate_checkout(self) -> Totals:
        self._ensure_not_finalizing()
        if self.cart.is_empty:
            raise EmptyCartError("Your cart is empty")
        self.state = STATE_AWAITING_PAYMENT
        return self.totals

    def cancel_checkout(self) -> None:
        self._ensure_not_finalizing()
        if self.state != STATE_AWAITING_PAYMENT:
            raise CheckoutStateError(f"Cannot cancel checkout in state {self.state}")
        self.state = STATE_IDLE
        self.amount_paid_cents = None

    def finalize_sale(
        self,
        print_receipt: bool = False,
        payment_method: str | None = None,
        amount_paid_cents: int | None = None,
        vendor_name: str | None = None,
    ) -> CheckoutResult:
        if not self._in_flight.acquire(blocking=False):
            raise CheckoutInProgressError("This sale is already being finalized")

        try:
            if self.cart.is_empty:
                raise EmptyCartError("Your cart is empty")
            if self.state != STATE_AWAITING_PAYMENT:
                raise CheckoutStateError(f"Cannot finalize sale in state {self.state}")

            method = payment_method or self.payment_method
            if method not in PAYMENT_METHODS:
                raise PaymentError(f"Unsupported payment method: {method}", details={"allowed": list(PAYMENT_METHODS)})

            lines = tuple(replace(line) for line in self.cart.lines)
            totals = compute_totals(lines, self.tax_rate_bps)
            try:
                change = change_due(totals.total_cents, amount_paid_cents)
            except ValueError as exc:
                raise PaymentError(str(exc), details={
                    "total_cents": totals.total_cents,
                    "amount_paid_cents": amount_paid_cents,
                }) from exc

            order = SaleOrder(
                lines=lines,
                totals=totals,
                customer_name=self.customer_name or GUEST_NAME,
                customer_phone=self.customer_phone or "",
                customer_id=self.customer_id,
                payment_method=method,
                amount_paid_cents=amount_paid_cents,
                change_due_cents=change,
            )

            self.payment_method = method
            self.amount_paid_cents = amount_paid_cents
            self.state = STATE_FINALIZING

            try:
                sale, points = run_with_retry(lambda: self._persist_sale(order))
            except InsufficientStockError:
                self.state = STATE_AWAITING_PAYMENT
                raise
            except SQLAlchemyError as exc:
                self.state = STATE_AWAITING_PAYMENT
                logger.exception("Failed to finalize sale for vendor %s", self.vendor_id)
                raise PersistenceError("Sale could not be saved; nothing was recorded") from exc
            except Exception:
                self.state = STATE_AWAITING_PAYMENT
                logger.exception("Unexpected error finalizing sale for vendor %s", self.vendor_id)
                raise

            self.last_sale_id = sale.id
            self.state = STATE_COMPLETED
            self.cart.clear()
            self._reset_customer()
            self._reset_payment()

            logger.info(
                "Sale %s completed for vendor %s: total=%s points=%s",
                sale.reference_code, self.vendor_id, sale.total_cents, points,
            )

            receipt_text = format_receipt(sale, vendor_name) if print_receipt else None
            return CheckoutResult(
                sale=sale,
                points_earned=points,
                print_receipt=print_receipt,
                receipt_text=receipt_text,
            )
        finally:
            self._in_flight.release()

    # ------------------------------------------------------------------
    # Persistence (single transaction)
    # ------------------------------------------------------------------

    def _check_live_stock(self, lines: tuple[CartLine, ...]) -> None:
        ids = [line.stock_item_id for line in lines]
        rows = lock_for_update(
            db.session.query(StockItem).filter(
                StockItem.vendor_id == self.vendor_id,
                StockItem.id.in_(ids),
            )
        ).all()
        on_hand = {row.id: row.quantity for row in rows}

        insufficient = []
        for line in lines:
            available = on_hand.get(line.stock_item_id, 0)
            if available < line.quantity:
                insufficient.append({
                    "stock_item_id": line.stock_item_id,
                    "name": line.name,
                    "requested_quantity": line.quantity,
                    "on_hand": available,
                })

        if insufficient:
            raise InsufficientStockError(
                "Insufficient stock to complete sale",
                details={"items": insufficient},
            )

    def _persist_sale(self, order: SaleOrder) -> tuple[Sale, int]:
        lines = order.lines
        totals = order.totals
        try:
            begin_immediate()
            self._check_live_stock(lines)

            for line in lines:
                if not decrement_stock_if_available(self.vendor_id, line.stock_item_id, line.quantity):
                    raise InsufficientStockError(
                        "Insufficient stock to complete sale",
                        details={"items": [{
                            "stock_item_id": line.stock_item_id,
                            "name": line.name,
                            "requested_quantity": line.quantity,
                        }]},
                    )

            now = utcnow()
            reference_code = generate_reference_code(now)

            sale = Sale(
                vendor_id=self.vendor_id,
                reference_code=reference_code,
                subtotal_cents=totals.subtotal_cents,
                tax_cents=totals.tax_cents,
                total_cents=totals.total_cents,
                tax_rate_bps=self.tax_rate_bps,
                payment_method=order.payment_method,
                amount_paid_cents=order.amount_paid_cents,
                change_due_cents=order.change_due_cents,
                customer_name=order.customer_name,
                customer_phone=order.customer_phone,
                customer_id=order.customer_id,
                created_at=now,
            )
            db.session.add(sale)
            db.session.flush()

            for position, line in enumerate(lines, start=1):
                db.session.add(SaleLine(
                    sale_id=sale.id,
                    position=position,
                    stock_item_id=line.stock_item_id,
                    name=line.name,
                    quantity=line.quantity,
                    unit_price_cents=line.unit_price_cents,
                    unit_cost_cents=line.unit_cost_cents,
                    line_total_cents=line.line_total_cents,
                ))

            if order.customer_phone and order.customer_name != GUEST_NAME:
                db.session.add(CustomerPurchase(
                    vendor_id=self.vendor_id,
                    sale_id=sale.id,
                    customer_name=order.customer_name,
                    customer_phone=order.customer_phone,
                    reference_code=reference_code,
                    items=_sale_items(lines),
                    subtotal_cents=totals.subtotal_cents,
                    tax_cents=totals.tax_cents,
                    total_cents=totals.total_cents,
                    payment_method=order.payment_method,
                    created_at=now,
                ))

            points = 0
            if order.customer_id is not None:
                points = self._credit_points(sale, order.customer_id, now)

            db.session.commit()
            return sale, points
        except Exception:
            db.session.rollback()
            raise

    def _credit_points(self, sale: Sale, customer_id: int, now) -> int:
        profile = (
            db.session.query(CustomerProfile)
            .filter_by(id=customer_id, vendor_id=self.vendor_id)
            .first()
        )
        if profile is None:
            # profile removed since lookup; sale proceeds without points
            logger.warning("Customer %s no longer exists for vendor %s", customer_id, self.vendor_id)
            sale.customer_id = None
            return 0

        if profile.first_purchase_at is None:
            profile.first_purchase_at = now
        profile.last_purchase_at = now

        points = points_for_total(sale.total_cents, self.point_value_divisor)
        if points > 0:
            db.session.add(PointsLedgerEntry(
                vendor_id=self.vendor_id,
                customer_id=profile.id,
                points_earned=points,
                purchase_total_cents=sale.total_cents,
                sale_id=sale.id,
                reference_code=sale.reference_code,
                occurred_at=now,
            ))
        return points

    def to_dict(self) -> dict:
        return {
            "state": self.state,
            "cart": self.cart.to_dict(),
            "totals": self.totals.to_dict(),
            "tax_rate_bps": self.tax_rate_bps,
            "customer": {
                "name": self.customer_name,
                "phone": self.customer_phone,
                "customer_id": self.customer_id,
                "points_balance": self.customer_points,
                "history": list(self.purchase_history),
            },
            "payment_method": self.payment_method,
            "is_finalizing": self.is_finalizing,
            "last_sale_id": self.last_sale_id,
        }
