# Overview: Flask API routes for POS terminals: catalog, cart, customer and checkout.

"""
A terminal is opened per operator session and holds the catalog snapshot
and the checkout session (cart, customer, payment state). Every terminal
route re-checks that the terminal belongs to g.vendor_id.

Cart and checkout responses always include freshly computed totals.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..services import terminal_service
from ..services.terminal_service import TerminalNotFound
from ..services.catalog_service import DataUnavailable
from ..services.checkout_service import (
    CheckoutError,
    EmptyCartError,
    InsufficientStockError,
    PersistenceError,
    CheckoutStateError,
    CheckoutInProgressError,
    PaymentError,
)
from ..domain.cart import CartValidationError
from ..validation import coerce_int, ValidationError
from ..decorators import require_auth

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos/terminals")


def _load_terminal(terminal_id: str):
    return terminal_service.get_terminal(terminal_id, g.vendor_id)


def _checkout_error_response(e: CheckoutError):
    if isinstance(e, (EmptyCartError, PaymentError)):
        status = 400
    elif isinstance(e, (InsufficientStockError, CheckoutStateError, CheckoutInProgressError)):
        status = 409
    elif isinstance(e, PersistenceError):
        status = 500
    else:
        status = 400
    return jsonify({"error": str(e), "details": e.details}), status


def _terminal_state(terminal):
    return jsonify({"terminal": terminal.to_dict()})


@pos_bp.errorhandler(TerminalNotFound)
def _terminal_not_found(e):
    return jsonify({"error": "Terminal not found"}), 404


@pos_bp.errorhandler(CheckoutError)
def _checkout_error(e):
    return _checkout_error_response(e)


@pos_bp.errorhandler(ValidationError)
def _validation_error(e):
    return jsonify({"error": str(e)}), 400


@pos_bp.post("")
@require_auth
def open_terminal():
    try:
        terminal = terminal_service.open_terminal(g.vendor)
    except DataUnavailable as e:
        return jsonify({"error": str(e), "details": e.details}), 503
    return jsonify({"terminal": terminal.to_dict()}), 201


@pos_bp.get("/<terminal_id>")
@require_auth
def get_terminal(terminal_id: str):
    return _terminal_state(_load_terminal(terminal_id)), 200


@pos_bp.delete("/<terminal_id>")
@require_auth
def close_terminal(terminal_id: str):
    terminal_service.close_terminal(terminal_id, g.vendor_id)
    return "", 204


# ----------------------------------------------------------------------
# Catalog
# ----------------------------------------------------------------------

@pos_bp.get("/<terminal_id>/catalog")
@require_auth
def get_catalog(terminal_id: str):
    """
    Query params:
    - category: str (optional) - "All" or omitted for every category
    - q: str (optional) - case-insensitive name search
    """
    terminal = _load_terminal(terminal_id)
    catalog = terminal.catalog
    items = catalog.filter(category=request.args.get("category"), search=request.args.get("q"))
    return jsonify(catalog.to_dict(items)), 200


@pos_bp.post("/<terminal_id>/catalog/reload")
@require_auth
def reload_catalog(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    try:
        terminal.catalog.load()
    except DataUnavailable as e:
        return jsonify({"error": str(e), "details": e.details}), 503
    return jsonify(terminal.catalog.to_dict()), 200


# ----------------------------------------------------------------------
# Cart
# ----------------------------------------------------------------------

@pos_bp.post("/<terminal_id>/cart/items")
@require_auth
def add_cart_item(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    data = request.get_json(silent=True) or {}
    if data.get("stock_item_id") is None:
        return jsonify({"error": "stock_item_id required"}), 400
    stock_item_id = coerce_int(data.get("stock_item_id"), "stock_item_id")

    item = terminal.catalog.get(stock_item_id)
    if item is None:
        return jsonify({"error": "Stock item not found"}), 404

    try:
        terminal.checkout.add_item(item)
    except CartValidationError as e:
        return jsonify({"error": str(e)}), 409
    return _terminal_state(terminal), 200


@pos_bp.patch("/<terminal_id>/cart/items/<int:line_id>")
@require_auth
def set_cart_quantity(terminal_id: str, line_id: int):
    terminal = _load_terminal(terminal_id)
    data = request.get_json(silent=True) or {}
    if data.get("quantity") is None:
        return jsonify({"error": "quantity required"}), 400
    quantity = coerce_int(data.get("quantity"), "quantity")

    try:
        applied = terminal.checkout.set_quantity(line_id, quantity)
    except CartValidationError as e:
        return jsonify({"error": str(e)}), 404

    if not applied:
        line = terminal.checkout.cart.get(line_id)
        return jsonify({
            "error": "Quantity exceeds available stock",
            "details": {"line_id": line_id, "requested_quantity": quantity, "available": line.ceiling},
        }), 409
    return _terminal_state(terminal), 200


@pos_bp.delete("/<terminal_id>/cart/items/<int:line_id>")
@require_auth
def remove_cart_item(terminal_id: str, line_id: int):
    terminal = _load_terminal(terminal_id)
    terminal.checkout.remove_item(line_id)
    return _terminal_state(terminal), 200


@pos_bp.delete("/<terminal_id>/cart")
@require_auth
def clear_cart(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    terminal.checkout.clear_cart()
    return _terminal_state(terminal), 200


# ----------------------------------------------------------------------
# Customer
# ----------------------------------------------------------------------

@pos_bp.post("/<terminal_id>/customer/lookup")
@require_auth
def lookup_customer(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    data = request.get_json(silent=True) or {}
    result = terminal.checkout.lookup_customer(data.get("phone") or "")
    return jsonify({"found": result is not None, "terminal": terminal.to_dict()}), 200


@pos_bp.put("/<terminal_id>/customer")
@require_auth
def set_customer(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    data = request.get_json(silent=True) or {}
    terminal.checkout.set_customer(data.get("name"), data.get("phone"))
    return _terminal_state(terminal), 200


# ----------------------------------------------------------------------
# Checkout
# ----------------------------------------------------------------------

@pos_bp.post("/<terminal_id>/checkout")
@require_auth
def initiate_checkout(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    terminal.checkout.initiate_checkout()
    return _terminal_state(terminal), 200


@pos_bp.post("/<terminal_id>/checkout/cancel")
@require_auth
def cancel_checkout(terminal_id: str):
    terminal = _load_terminal(terminal_id)
    terminal.checkout.cancel_checkout()
    return _terminal_state(terminal), 200


@pos_bp.post("/<terminal_id>/checkout/finalize")
@require_auth
def finalize_sale(terminal_id: str):
    """
    Body:
    - print_receipt: bool (optional)
    - payment_method: "Cash" | "Card" | "Mobile" (optional, default Cash)
    - amount_paid_cents: int (optional) - cash tendered, for change due
    """
    terminal = _load_terminal(terminal_id)
    data = request.get_json(silent=True) or {}

    print_receipt = data.get("print_receipt", False)
    if not isinstance(print_receipt, bool):
        return jsonify({"error": "print_receipt must be a boolean"}), 400

    amount_paid = data.get("amount_paid_cents")
    if amount_paid is not None:
        amount_paid = coerce_int(amount_paid, "amount_paid_cents")

    try:
        result = terminal.checkout.finalize_sale(
            print_receipt=print_receipt,
            payment_method=data.get("payment_method"),
            amount_paid_cents=amount_paid,
            vendor_name=g.vendor.name,
        )
    except PersistenceError as e:
        current_app.logger.error("Finalize failed on terminal %s: %s", terminal_id, e)
        return _checkout_error_response(e)

    return jsonify(dict(result.to_dict(), terminal=terminal.to_dict())), 201
