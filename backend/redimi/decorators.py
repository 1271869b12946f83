# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import vendor_service


def require_vendor(f):
    """
    Require an API key and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.vendor: The authenticated VendorRecord
    - g.vendor_id: The vendor ID (tenant context) every service call is scoped by

    Returns 401 if:
    - No Authorization header
    - Unknown API key
    - Vendor deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        api_key = auth_header.split(" ", 1)[1].strip()
        vendor = vendor_service.authenticate(api_key)

        if not vendor:
            current_app.logger.warning("Rejected API key from %s on %s", request.remote_addr, request.path)
            return jsonify({"error": "Invalid API key"}), 401

        g.vendor = vendor
        g.vendor_id = vendor.id

        return f(*args, **kwargs)

    return decorated_function
