# Overview: Flask API routes for vendor settings and branches.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_vendor
from ..services import settings_service
from .errors import BUSINESS_ERRORS, json_error


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_vendor
def get_settings():
    try:
        settings = settings_service.get_settings(g.vendor_id)
        return jsonify(settings.to_dict()), 200
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to load settings")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.put("")
@require_vendor
def update_settings():
    """
    Partial update.

    Body: {"rate"?: number, "branch_name"?: str}
    "franchise" is accepted as an alias of "branch_name".
    """
    data = request.get_json(silent=True) or {}
    try:
        settings = settings_service.update_settings(
            g.vendor_id,
            rate=data.get("rate"),
            branch_name=data.get("branch_name", data.get("franchise")),
        )
        return jsonify(settings.to_dict()), 200
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.post("/branches")
@require_vendor
def add_branch():
    data = request.get_json(silent=True) or {}
    try:
        branch = settings_service.add_branch(g.vendor_id, data.get("name"))
        branches = settings_service.list_branches(g.vendor_id)
        return jsonify({
            "branch": branch.to_dict(),
            "branches": [b.name for b in branches],
        }), 201
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
    except Exception:
        current_app.logger.exception("Failed to add branch")
        return jsonify({"error": "Internal server error"}), 500
