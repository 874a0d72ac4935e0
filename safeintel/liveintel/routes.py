from flask import Blueprint, current_app, jsonify, request
import logging

from safeintel.profiles import get_profile_store
from safeintel.route_safety import check_route_safety
from .errors import PipelineTimeout, ReportSourceError
from .pipeline import error_result, get_intelligence_service

logger = logging.getLogger(__name__)

intel_bp = Blueprint("intel", __name__)


def _service():
    return current_app.config.get("INTEL_SERVICE") or get_intelligence_service()


def _profiles():
    return current_app.config.get("PROFILE_STORE") or get_profile_store()


def _bad_request(message):
    return jsonify({"success": False, "error": "Bad Request", "message": message}), 400


def _run(kind, fn, *args, **kwargs):
    try:
        return jsonify(fn(*args, **kwargs))
    except ReportSourceError as e:
        logger.warning(f"{kind} intelligence source failure: {e}")
        return jsonify(error_result(kind)), 502
    except PipelineTimeout as e:
        logger.warning(f"{kind} intelligence timed out: {e}")
        return jsonify(error_result(kind, "Intelligence is still loading, try again shortly")), 504


def _route_args(data):
    state_ids = data.get("state_ids")
    if not isinstance(state_ids, list) or not all(isinstance(s, str) and s.strip() for s in state_ids) or not state_ids:
        return None
    route_display = (data.get("route_display") or "").strip() or " to ".join(state_ids)
    return state_ids, route_display, data.get("risk_level")


@intel_bp.route("/intel/area", methods=["GET"])
def area_intelligence():
    location = (request.args.get("location") or "").strip()
    state = (request.args.get("state") or "").strip()
    if not location or not state:
        return _bad_request("location and state are required")

    return _run(
        "area", _service().get_area_intelligence, location, state,
        zone=request.args.get("zone") or None,
        risk_level=request.args.get("risk_level") or None
    )


@intel_bp.route("/intel/route", methods=["POST"])
def route_intelligence():
    data = request.get_json(silent=True) or {}
    args = _route_args(data)
    if args is None:
        return _bad_request("state_ids must be a non-empty list of state ids")

    state_ids, route_display, risk_level = args
    return _run("route", _service().get_route_intelligence, state_ids, route_display, risk_level=risk_level)


@intel_bp.route("/intel/refresh", methods=["POST"])
def refresh_intelligence():
    """Force a foreground run for an area ({location, state}) or a route ({state_ids})."""
    data = request.get_json(silent=True) or {}
    service = _service()

    if data.get("state_ids") is not None:
        args = _route_args(data)
        if args is None:
            return _bad_request("state_ids must be a non-empty list of state ids")
        state_ids, route_display, risk_level = args
        return _run("route", service.refresh_route, state_ids, route_display, risk_level=risk_level)

    location = (data.get("location") or "").strip()
    state = (data.get("state") or "").strip()
    if not location or not state:
        return _bad_request("location and state, or state_ids, are required")

    return _run(
        "area", service.refresh_area, location, state,
        zone=data.get("zone") or None, risk_level=data.get("risk_level") or None
    )


@intel_bp.route("/intel/cache/stats", methods=["GET"])
def cache_stats():
    return jsonify({"success": True, "stats": _service().cache.get_stats()})


@intel_bp.route("/route-safety", methods=["GET"])
def route_safety():
    origin = (request.args.get("from") or "").strip()
    destination = (request.args.get("to") or "").strip()
    if not origin or not destination:
        return _bad_request("from and to are required")

    result = check_route_safety(origin, destination, _profiles())
    if result is None:
        return jsonify({
            "success": False,
            "error": "Not Found",
            "message": f"No route found between {origin} and {destination}"
        }), 404
    return jsonify({"success": True, "result": result})
