# Overview: Flask API routes for vendor login/logout.

from flask import Blueprint, request, jsonify, g, current_app

from ..services import auth_service, session_service
from ..decorators import require_auth, bearer_token

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login():
    """
    Exchange email/password for a bearer token.

    Returns 401 for unknown email, wrong password, or inactive vendor
    without distinguishing between them.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        vendor = auth_service.authenticate(email, password)
        if not vendor:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(vendor.id)
        return jsonify({
            "token": token,
            "expires_at": session.to_dict()["expires_at"],
            "vendor": vendor.to_dict(),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to login vendor")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me():
    return jsonify({"vendor": g.vendor.to_dict()}), 200
