# Overview: Flask API routes for reading completed sales.

from flask import Blueprint, request, jsonify, g

from ..services import sales_service
from ..services.sales_service import SaleNotFound
from ..services.receipt_service import format_receipt
from ..decorators import require_auth

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
def list_sales():
    """
    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    return sales_service.list_sales(g.vendor_id, page=page, per_page=per_page)


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale(sale_id: int):
    try:
        sale = sales_service.get_sale(g.vendor_id, sale_id)
    except SaleNotFound:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.get("/<int:sale_id>/receipt")
@require_auth
def get_receipt(sale_id: int):
    try:
        sale = sales_service.get_sale(g.vendor_id, sale_id)
    except SaleNotFound:
        return jsonify({"error": "Sale not found"}), 404
    return format_receipt(sale, g.vendor.name), 200, {"Content-Type": "text/plain; charset=utf-8"}
