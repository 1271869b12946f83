# Overview: Flask API routes for the points ledger (earn, redeem, history, stats).

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_vendor
from ..services import ledger_service
from .errors import BUSINESS_ERRORS, json_error


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api")


@transactions_bp.get("/transactions")
@require_vendor
def list_transactions():
    try:
        rows = ledger_service.list_transactions(g.vendor_id, limit=request.args.get("limit"))
        return jsonify([t.to_dict() for t in rows]), 200
    except BUSINESS_ERRORS as exc:
        return json_error(exc)


@transactions_bp.post("/transactions/earn")
@require_vendor
def earn_points():
    """
    Accrue points for a purchase.

    Body: {"customer_id": int, "amount": number}
    "customerId" is accepted as an alias of "customer_id".
    Returns the created EARN transaction with the customer's name.
    """
    data = request.get_json(silent=True) or {}
    try:
        txn = ledger_service.earn(
            vendor_id=g.vendor_id,
            customer_id=data.get("customer_id", data.get("customerId")),
            purchase_amount=data.get("amount"),
        )
        return jsonify(txn.to_dict()), 201
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to earn points")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.post("/transactions/redeem")
@require_vendor
def redeem_points():
    """
    Redeem points.

    Body: {"customer_id": int, "points": int}
    409 when the balance is insufficient; nothing is written in that case.
    """
    data = request.get_json(silent=True) or {}
    try:
        txn = ledger_service.redeem(
            vendor_id=g.vendor_id,
            customer_id=data.get("customer_id", data.get("customerId")),
            points=data.get("points"),
        )
        return jsonify(txn.to_dict()), 201
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to redeem points")
        return jsonify({"error": "Internal server error"}), 500


@transactions_bp.get("/stats")
@require_vendor
def get_stats():
    return jsonify(ledger_service.get_stats(g.vendor_id)), 200
