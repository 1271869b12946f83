# Overview: Maps service-layer exceptions to JSON error responses.

from flask import jsonify

from ..validation import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    ValidationError,
)


def json_error(exc: Exception):
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, InsufficientBalanceError):
        return jsonify({
            "error": "Insufficient balance",
            "available": exc.available,
            "requested": exc.requested,
        }), 409
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc)}), 409
    return jsonify({"error": "Internal server error"}), 500


BUSINESS_ERRORS = (ValidationError, NotFoundError, InsufficientBalanceError, ConflictError)
