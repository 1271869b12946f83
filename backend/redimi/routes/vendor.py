# Overview: Flask API route describing the authenticated vendor.

from flask import Blueprint, jsonify, g

from ..decorators import require_vendor


vendor_bp = Blueprint("vendor", __name__, url_prefix="/api/vendor")


@vendor_bp.get("")
@require_vendor
def current_vendor():
    """The tenant the API key resolves to. The key digest is never returned."""
    return jsonify(g.vendor.to_dict()), 200
