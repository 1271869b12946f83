# Overview: Flask API routes for the vendor event log.

from flask import Blueprint, jsonify, request, g

from ..decorators import require_vendor
from ..services import event_service
from .errors import BUSINESS_ERRORS, json_error


events_bp = Blueprint("events", __name__, url_prefix="/api")


@events_bp.get("/events")
@require_vendor
def list_events():
    try:
        events = event_service.list_events(g.vendor_id, limit=request.args.get("limit"))
        return jsonify([e.to_dict() for e in events]), 200
    except BUSINESS_ERRORS as exc:
        return json_error(exc)
