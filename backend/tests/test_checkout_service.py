# Overview: Pytest coverage for the checkout coordinator's finalize transaction.

"""
Finalize writes stock, the sale, its lines, the customer purchase copy and
the points ledger entry together or not at all. These tests count rows
after each failure to prove nothing leaked.
"""

import re
import pytest
from datetime import datetime
from sqlalchemy.exc import SQLAlchemyError

from vendorpos.models import CustomerProfile, CustomerPurchase, PointsLedgerEntry, Sale, SaleLine, StockItem
from vendorpos.services.catalog_service import CatalogCache
from vendorpos.services.checkout_service import (
    CheckoutSession,
    CheckoutInProgressError,
    CheckoutStateError,
    EmptyCartError,
    InsufficientStockError,
    PaymentError,
    PersistenceError,
    STATE_AWAITING_PAYMENT,
    STATE_COMPLETED,
    STATE_IDLE,
    generate_reference_code,
)
from conftest import make_stock


def _session(vendor, tax_rate_bps=1500):
    catalog = CatalogCache(vendor.id)
    catalog.load()
    return catalog, CheckoutSession(vendor_id=vendor.id, tax_rate_bps=tax_rate_bps)


def _counts(db_session):
    return {
        "sales": db_session.query(Sale).count(),
        "lines": db_session.query(SaleLine).count(),
        "purchases": db_session.query(CustomerPurchase).count(),
        "ledger": db_session.query(PointsLedgerEntry).count(),
    }


NOTHING_WRITTEN = {"sales": 0, "lines": 0, "purchases": 0, "ledger": 0}


def _quantity(db_session, item_id):
    db_session.expire_all()
    return db_session.get(StockItem, item_id).quantity


class TestFinalizeSale:
    def test_two_lipsticks_guest_sale(self, db_session, vendor_a, lipstick, soap):
        """2 x 500.00 at 15% tax: stock 10 -> 8 and one sale of 1,150.00."""
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        assert checkout.set_quantity(lipstick.id, 2) is True

        checkout.initiate_checkout()
        result = checkout.finalize_sale()

        assert result.sale.subtotal_cents == 100000
        assert result.sale.tax_cents == 15000
        assert result.sale.total_cents == 115000
        assert result.sale.customer_name == "Guest"
        assert result.points_earned == 0

        assert _quantity(db_session, lipstick.id) == 8
        assert _quantity(db_session, soap.id) == 3
        assert _counts(db_session) == {"sales": 1, "lines": 1, "purchases": 0, "ledger": 0}

        sale = db_session.query(Sale).one()
        assert sale.items_snapshot() == [{
            "id": lipstick.id,
            "name": "Lipstick A",
            "quantity": 2,
            "unit_price_cents": 50000,
            "line_total_cents": 100000,
            "unit_cost_cents": 30000,
        }]

    def test_each_line_decrements_its_own_stock(self, db_session, vendor_a, lipstick, soap, serum_b):
        gloss = make_stock(db_session, vendor_a, "Lip Gloss", 6, 30000, category="Lips")
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.add_item(catalog.get(soap.id))
        checkout.add_item(catalog.get(gloss.id))
        checkout.set_quantity(lipstick.id, 4)
        checkout.set_quantity(soap.id, 3)
        checkout.initiate_checkout()

        result = checkout.finalize_sale()

        assert result.sale.subtotal_cents == 4 * 50000 + 3 * 20000 + 30000
        assert [line.quantity for line in result.sale.lines] == [4, 3, 1]
        assert [line.position for line in result.sale.lines] == [1, 2, 3]
        assert _quantity(db_session, lipstick.id) == 6
        assert _quantity(db_session, soap.id) == 0
        assert _quantity(db_session, gloss.id) == 5
        assert _quantity(db_session, serum_b.id) == 7
        assert _counts(db_session) == {"sales": 1, "lines": 3, "purchases": 0, "ledger": 0}

    def test_success_resets_session(self, db_session, vendor_a, lipstick):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.set_customer("Walk In", "0770000000")
        checkout.initiate_checkout()

        result = checkout.finalize_sale()

        assert checkout.state == STATE_COMPLETED
        assert checkout.cart.is_empty
        assert checkout.customer_name == "Guest"
        assert checkout.customer_phone == ""
        assert checkout.last_sale_id == result.sale.id

    def test_cost_omitted_when_unknown(self, db_session, vendor_a, soap):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(soap.id))
        checkout.initiate_checkout()
        result = checkout.finalize_sale()

        assert "unit_cost_cents" not in result.sale.items_snapshot()[0]

    def test_reference_code_format(self, db_session, vendor_a, lipstick):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.initiate_checkout()
        result = checkout.finalize_sale()

        assert re.fullmatch(r"#M\d{6}", result.sale.reference_code)
        assert generate_reference_code(datetime(2026, 1, 1)) == "#M" + "1767225600"[-6:]

    def test_receipt_text(self, db_session, vendor_a, lipstick):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.set_quantity(lipstick.id, 2)
        checkout.initiate_checkout()

        result = checkout.finalize_sale(print_receipt=True, amount_paid_cents=120000, vendor_name="Glow Cosmetics")

        assert result.print_receipt is True
        assert "Glow Cosmetics" in result.receipt_text
        assert "1,150.00" in result.receipt_text
        assert "Tax (15%)" in result.receipt_text
        assert "50.00" in result.receipt_text
        assert result.sale.change_due_cents == 5000


class TestCustomerLinkage:
    def test_registered_customer_earns_points(self, db_session, vendor_a, lipstick, customer_a):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.set_quantity(lipstick.id, 2)
        assert checkout.lookup_customer("0771234567") is not None
        assert checkout.customer_points == 0

        checkout.initiate_checkout()
        result = checkout.finalize_sale()

        assert result.points_earned == 5
        entry = db_session.query(PointsLedgerEntry).one()
        assert entry.points_earned == 5
        assert entry.customer_id == customer_a.id
        assert entry.sale_id == result.sale.id
        assert entry.purchase_total_cents == 115000

        purchase = db_session.query(CustomerPurchase).one()
        assert purchase.customer_phone == "0771234567"
        assert purchase.total_cents == 115000

        db_session.expire_all()
        profile = db_session.get(CustomerProfile, customer_a.id)
        assert profile.first_purchase_at is not None
        assert profile.last_purchase_at == profile.first_purchase_at

    def test_small_sale_writes_no_ledger_entry(self, db_session, vendor_a, soap, customer_a):
        """200.00 earns one point; 5.00 earns none and writes no ledger row."""
        pads = make_stock(db_session, vendor_a, "Cotton Pads", 5, 500)
        catalog, checkout = _session(vendor_a, tax_rate_bps=0)
        checkout.add_item(catalog.get(soap.id))
        checkout.lookup_customer(customer_a.phone)
        checkout.initiate_checkout()

        result = checkout.finalize_sale()

        assert result.sale.total_cents == 20000
        assert result.points_earned == 1

        checkout.add_item(catalog.get(pads.id))
        checkout.lookup_customer(customer_a.phone)
        checkout.initiate_checkout()
        result = checkout.finalize_sale()

        assert result.points_earned == 0
        assert db_session.query(PointsLedgerEntry).count() == 1

    def test_named_unregistered_sale(self, db_session, vendor_a, lipstick):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        assert checkout.lookup_customer("0779999999") is None
        checkout.set_customer("Kamal", "0779999999")
        checkout.initiate_checkout()

        result = checkout.finalize_sale()

        assert result.points_earned == 0
        assert result.sale.customer_id is None
        assert _counts(db_session) == {"sales": 1, "lines": 1, "purchases": 1, "ledger": 0}

    def test_deleted_profile_completes_without_points(self, db_session, vendor_a, lipstick, customer_a):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.lookup_customer(customer_a.phone)

        db_session.delete(customer_a)
        db_session.commit()

        checkout.initiate_checkout()
        result = checkout.finalize_sale()

        assert result.points_earned == 0
        assert result.sale.customer_id is None
        assert db_session.query(PointsLedgerEntry).count() == 0


class TestFinalizeFailures:
    def test_empty_cart(self, db_session, vendor_a, lipstick):
        _, checkout = _session(vendor_a)
        with pytest.raises(EmptyCartError):
            checkout.finalize_sale()
        with pytest.raises(EmptyCartError):
            checkout.initiate_checkout()
        assert checkout.state == STATE_IDLE
        assert _counts(db_session) == NOTHING_WRITTEN
        assert _quantity(db_session, lipstick.id) == 10

    def test_finalize_requires_awaiting_payment(self, db_session, vendor_a, lipstick):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        with pytest.raises(CheckoutStateError):
            checkout.finalize_sale()
        assert _counts(db_session) == NOTHING_WRITTEN

    def test_insufficient_live_stock(self, db_session, vendor_a, lipstick, soap):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.add_item(catalog.get(soap.id))
        assert checkout.set_quantity(lipstick.id, 5) is True

        # another terminal sold 7 after our catalog load
        lipstick.quantity = 3
        db_session.commit()

        checkout.initiate_checkout()
        with pytest.raises(InsufficientStockError) as exc:
            checkout.finalize_sale()

        assert exc.value.details["items"][0]["stock_item_id"] == lipstick.id
        assert exc.value.details["items"][0]["on_hand"] == 3
        assert _quantity(db_session, lipstick.id) == 3
        assert _quantity(db_session, soap.id) == 3
        assert _counts(db_session) == NOTHING_WRITTEN
        assert checkout.state == STATE_AWAITING_PAYMENT
        assert len(checkout.cart) == 2

    def test_five_soaps_with_three_on_hand(self, db_session, vendor_a):
        soap = make_stock(db_session, vendor_a, "Bar Soap", 5, 20000)
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(soap.id))
        checkout.set_quantity(soap.id, 5)

        soap.quantity = 3
        db_session.commit()

        checkout.initiate_checkout()
        with pytest.raises(InsufficientStockError):
            checkout.finalize_sale()
        assert _quantity(db_session, soap.id) == 3
        assert _counts(db_session) == NOTHING_WRITTEN

    def test_store_failure_rolls_back_everything(self, db_session, vendor_a, lipstick, customer_a, monkeypatch):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.lookup_customer(customer_a.phone)
        checkout.initiate_checkout()

        def failing_credit(self, sale, customer_id, now):
            raise SQLAlchemyError("disk I/O error")

        monkeypatch.setattr(CheckoutSession, "_credit_points", failing_credit)

        with pytest.raises(PersistenceError):
            checkout.finalize_sale()

        assert _quantity(db_session, lipstick.id) == 10
        assert _counts(db_session) == NOTHING_WRITTEN
        assert checkout.state == STATE_AWAITING_PAYMENT
        assert checkout.cart.get(lipstick.id).quantity == 1
        assert checkout.customer_id == customer_a.id

    def test_double_submit_rejected(self, db_session, vendor_a, lipstick, monkeypatch):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.initiate_checkout()

        original = CheckoutSession._persist_sale
        rejected = []

        def persist_with_second_click(self, order):
            assert self.is_finalizing
            with pytest.raises(CheckoutInProgressError):
                self.finalize_sale()
            rejected.append(True)
            return original(self, order)

        monkeypatch.setattr(CheckoutSession, "_persist_sale", persist_with_second_click)

        checkout.finalize_sale()

        assert rejected == [True]
        assert not checkout.is_finalizing
        assert db_session.query(Sale).count() == 1
        assert _quantity(db_session, lipstick.id) == 9

    def test_edits_rejected_while_saving(self, db_session, vendor_a, lipstick, soap, customer_a, monkeypatch):
        """The sale keeps the cart and customer captured when finalize started."""
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.set_quantity(lipstick.id, 2)
        checkout.lookup_customer(customer_a.phone)
        checkout.initiate_checkout()

        original = CheckoutSession._persist_sale
        rejected = []

        def persist_with_edits(self, order):
            edits = [
                lambda: self.set_customer("Someone Else", "0770000001"),
                lambda: self.lookup_customer("0770000001"),
                lambda: self.add_item(catalog.get(soap.id)),
                lambda: self.set_quantity(lipstick.id, 1),
                lambda: self.remove_item(lipstick.id),
                lambda: self.clear_cart(),
                lambda: self.cancel_checkout(),
            ]
            for edit in edits:
                with pytest.raises(CheckoutStateError):
                    edit()
                rejected.append(True)
            return original(self, order)

        monkeypatch.setattr(CheckoutSession, "_persist_sale", persist_with_edits)

        result = checkout.finalize_sale()

        assert len(rejected) == 7
        assert result.sale.customer_name == "Nimali Perera"
        assert result.sale.customer_id == customer_a.id
        assert result.sale.total_cents == 115000
        assert result.points_earned == 5
        assert [line.quantity for line in result.sale.lines] == [2]
        assert _quantity(db_session, lipstick.id) == 8
        assert _quantity(db_session, soap.id) == 3
        assert _counts(db_session) == {"sales": 1, "lines": 1, "purchases": 1, "ledger": 1}

    def test_unexpected_error_returns_to_awaiting_payment(self, db_session, vendor_a, lipstick, customer_a, monkeypatch):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.lookup_customer(customer_a.phone)
        checkout.initiate_checkout()

        def broken_credit(self, sale, customer_id, now):
            raise RuntimeError("points service misconfigured")

        monkeypatch.setattr(CheckoutSession, "_credit_points", broken_credit)

        with pytest.raises(RuntimeError):
            checkout.finalize_sale()

        assert checkout.state == STATE_AWAITING_PAYMENT
        assert not checkout.is_finalizing
        assert _quantity(db_session, lipstick.id) == 10
        assert _counts(db_session) == NOTHING_WRITTEN

        checkout.cancel_checkout()
        checkout.remove_item(lipstick.id)
        assert checkout.state == STATE_IDLE
        assert checkout.cart.is_empty

    @pytest.mark.parametrize("divisor", [0, -200, 2.5, True])
    def test_invalid_point_divisor(self, vendor_a, divisor):
        with pytest.raises(ValueError):
            CheckoutSession(vendor_id=vendor_a.id, tax_rate_bps=1500, point_value_divisor=divisor)

    @pytest.mark.parametrize("method,paid", [("Cheque", None), ("Cash", 1000)])
    def test_payment_errors(self, db_session, vendor_a, lipstick, method, paid):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.initiate_checkout()

        with pytest.raises(PaymentError):
            checkout.finalize_sale(payment_method=method, amount_paid_cents=paid)
        assert checkout.state == STATE_AWAITING_PAYMENT
        assert _counts(db_session) == NOTHING_WRITTEN


class TestStateTransitions:
    def test_cancel_returns_to_idle(self, db_session, vendor_a, lipstick):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.initiate_checkout()
        assert checkout.state == STATE_AWAITING_PAYMENT

        checkout.cancel_checkout()
        assert checkout.state == STATE_IDLE
        assert len(checkout.cart) == 1

        with pytest.raises(CheckoutStateError):
            checkout.cancel_checkout()

    def test_cart_edit_while_awaiting_payment(self, db_session, vendor_a, lipstick, soap):
        catalog, checkout = _session(vendor_a)
        checkout.add_item(catalog.get(lipstick.id))
        checkout.initiate_checkout()

        checkout.add_item(catalog.get(soap.id))

        assert checkout.state == STATE_IDLE
        assert checkout.totals.subtotal_cents == 70000

    def test_lookup_keeps_phone_for_guest(self, db_session, vendor_a):
        _, checkout = _session(vendor_a)
        assert checkout.lookup_customer("077 000 1111") is None
        assert checkout.customer_name == "Guest"
        assert checkout.customer_phone == "0770001111"
        assert checkout.customer_id is None
