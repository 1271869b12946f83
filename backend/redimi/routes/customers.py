# Overview: Flask API routes for customers; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_vendor
from ..services import customer_service
from .errors import BUSINESS_ERRORS, json_error


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
@require_vendor
def list_customers():
    customers = customer_service.list_customers(g.vendor_id)
    return jsonify([c.to_dict() for c in customers]), 200


@customers_bp.post("")
@require_vendor
def create_customer():
    data = request.get_json(silent=True) or {}
    try:
        customer = customer_service.create_customer(
            g.vendor_id,
            name=data.get("name"),
            contact=data.get("contact", data.get("whatsapp")),
            birthday=data.get("birthday"),
        )
        return jsonify(customer.to_dict()), 201
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to create customer")
        return jsonify({"error": "Internal server error"}), 500


@customers_bp.get("/<int:customer_id>")
@require_vendor
def get_customer(customer_id: int):
    try:
        customer = customer_service.get_customer(g.vendor_id, customer_id)
        return jsonify(customer.to_dict()), 200
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
