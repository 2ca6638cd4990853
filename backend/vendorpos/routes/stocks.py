# Overview: Flask API routes for vendor stock management.

"""
MULTI-TENANT: All stock operations are scoped to g.vendor_id (set by
@require_auth). Foreign ids return 404.
"""
from flask import Blueprint, request, g, jsonify

from ..models import StockItem
from ..services import inventory_service
from ..services.inventory_service import StockItemNotFound
from ..services.catalog_service import suggest_names
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_stock_item,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth

STOCK_POLICY = ModelValidationPolicy(
    writable_fields={"name", "quantity", "price_cents", "cost_cents", "category", "low_stock_threshold"},
    required_on_create={"name", "price_cents"},
)

stocks_bp = Blueprint("stocks", __name__, url_prefix="/api/stocks")


@stocks_bp.get("")
@require_auth
def list_stocks():
    category = request.args.get("category")
    items = inventory_service.list_stock_items(g.vendor_id, category=category)
    return {"items": [item.to_dict() for item in items], "count": len(items)}


@stocks_bp.get("/suggest")
@require_auth
def suggest():
    prefix = request.args.get("q", "")
    limit = max(min(request.args.get("limit", default=10, type=int), 50), 1)
    return {"suggestions": suggest_names(g.vendor_id, prefix, limit=limit)}


@stocks_bp.post("")
@require_auth
def create_stock():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=StockItem, payload=payload, policy=STOCK_POLICY, partial=False)
        enforce_rules_stock_item(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    item = inventory_service.create_stock_item(g.vendor_id, patch)
    return jsonify(item.to_dict()), 201


@stocks_bp.get("/<int:item_id>")
@require_auth
def get_stock(item_id: int):
    try:
        item = inventory_service.get_stock_item(g.vendor_id, item_id)
    except StockItemNotFound:
        return jsonify({"error": "Stock item not found"}), 404
    return jsonify(item.to_dict()), 200


@stocks_bp.patch("/<int:item_id>")
@require_auth
def update_stock(item_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=StockItem, payload=payload, policy=STOCK_POLICY, partial=True)
        enforce_rules_stock_item(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        item = inventory_service.update_stock_item(g.vendor_id, item_id, patch)
    except StockItemNotFound:
        return jsonify({"error": "Stock item not found"}), 404
    return jsonify(item.to_dict()), 200


@stocks_bp.delete("/<int:item_id>")
@require_auth
def delete_stock(item_id: int):
    try:
        inventory_service.delete_stock_item(g.vendor_id, item_id)
    except StockItemNotFound:
        return jsonify({"error": "Stock item not found"}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    return "", 204
