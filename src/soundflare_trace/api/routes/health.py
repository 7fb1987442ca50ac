"""
Health Check Routes.
"""

from flask import Blueprint, jsonify

from ._context import get_registry

health_bp = Blueprint("health", __name__)


@health_bp.route("/api/health", methods=["GET"])
def health():
    """Health check endpoint."""
    return jsonify(
        {
            "success": True,
            "data": {
                "status": "ok",
                "service": "soundflare-trace-api",
                "open_traces": get_registry().trace_keys(),
            },
        }
    )
