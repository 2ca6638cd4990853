# Overview: Flask API routes for loyalty customers.

from flask import Blueprint, request, jsonify, g, current_app

from ..extensions import db
from ..models import Vendor
from ..services import customer_service
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.post("/register/<int:vendor_id>")
def register_customer(vendor_id: int):
    """
    Public self-registration link shared by a vendor.

    No authentication: the vendor id in the link scopes the new profile.
    """
    vendor = db.session.query(Vendor).filter_by(id=vendor_id, is_active=True).first()
    if not vendor:
        return jsonify({"error": "Invalid vendor link. Please contact the store owner."}), 404

    data = request.get_json(silent=True) or {}
    try:
        profile = customer_service.register_customer(vendor.id, data.get("name"), data.get("phone"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"customer": profile.to_dict()}), 201


@customers_bp.post("")
@require_auth
def create_customer():
    """Manual registration by the vendor."""
    data = request.get_json(silent=True) or {}
    try:
        profile = customer_service.register_customer(g.vendor_id, data.get("name"), data.get("phone"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"customer": profile.to_dict()}), 201


@customers_bp.get("")
@require_auth
def list_customers():
    customers = customer_service.list_customers(g.vendor_id)
    return jsonify({
        "items": [
            dict(c.to_dict(), points_balance=customer_service.points_balance(g.vendor_id, c.id))
            for c in customers
        ],
        "count": len(customers),
    }), 200


@customers_bp.get("/lookup")
@require_auth
def lookup_customer():
    phone = request.args.get("phone", "")
    limit = current_app.config["POS_CUSTOMER_HISTORY_LIMIT"]
    result = customer_service.lookup(g.vendor_id, phone, history_limit=limit)
    if result is None:
        return jsonify({"found": False}), 200
    return jsonify(dict(result.to_dict(), found=True)), 200
