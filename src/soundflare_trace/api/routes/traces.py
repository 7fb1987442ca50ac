"""
Trace Routes - load a trace page by page and read its derived views.
"""

from typing import Optional

from flask import Blueprint, jsonify, request

from ...errors import TraceNotOpenError
from ...tracing import find_turn
from ...utils.logger import error, log_context
from ..config import MAX_PAGES_PER_REQUEST
from ._context import get_registry

traces_bp = Blueprint("traces", __name__)


def _not_open(e: TraceNotOpenError):
    return jsonify({"success": False, "error": str(e)}), 404


def _parse_pages(raw: str) -> Optional[int]:
    """Parse the `pages` query argument; "all" means no limit."""
    if raw == "all":
        return None
    pages = int(raw)
    if pages < 1:
        raise ValueError("pages must be at least 1")
    return min(pages, MAX_PAGES_PER_REQUEST)


@traces_bp.route("/api/traces", methods=["GET"])
def list_traces():
    """List open trace keys."""
    return jsonify({"success": True, "data": get_registry().trace_keys()})


@traces_bp.route("/api/traces/<trace_key>/load", methods=["POST"])
def load_trace(trace_key: str):
    """Open a trace if needed and pull more pages into it.

    Query args:
        pages: number of pages to pull (default 1), or "all"
    """
    try:
        pages = _parse_pages(request.args.get("pages", "1"))
    except ValueError as e:
        return jsonify({"success": False, "error": f"Invalid pages: {e}"}), 400

    try:
        with log_context(trace_key=trace_key, auto_request_id=True):
            status = get_registry().load(trace_key, pages)
            return jsonify({"success": True, "data": status})
    except TraceNotOpenError as e:
        return _not_open(e)
    except Exception as e:
        error(f"[API] Error loading trace {trace_key}: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@traces_bp.route("/api/traces/<trace_key>/status", methods=["GET"])
def get_trace_status(trace_key: str):
    try:
        with get_registry().locked(trace_key) as viewer:
            return jsonify({"success": True, "data": viewer.session.status()})
    except TraceNotOpenError as e:
        return _not_open(e)
    except Exception as e:
        error(f"[API] Error getting trace status: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@traces_bp.route("/api/traces/<trace_key>/spans", methods=["GET"])
def get_trace_spans(trace_key: str):
    """Get the flattened span list with nesting levels."""
    try:
        with get_registry().locked(trace_key) as viewer:
            spans = [flat.to_dict() for flat in viewer.get_flat_spans()]
        return jsonify({"success": True, "data": spans})
    except TraceNotOpenError as e:
        return _not_open(e)
    except Exception as e:
        error(f"[API] Error getting trace spans: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@traces_bp.route("/api/traces/<trace_key>/turns", methods=["GET"])
def get_trace_turns(trace_key: str):
    """Get conversation turns with their member spans."""
    try:
        with get_registry().locked(trace_key) as viewer:
            turns = [turn.to_dict() for turn in viewer.get_turns()]
        return jsonify({"success": True, "data": turns})
    except TraceNotOpenError as e:
        return _not_open(e)
    except Exception as e:
        error(f"[API] Error getting trace turns: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@traces_bp.route("/api/traces/<trace_key>/spans/<span_id>", methods=["GET"])
def select_span(trace_key: str, span_id: str):
    """Select a span and return its full record and home turn."""
    try:
        with get_registry().locked(trace_key) as viewer:
            flat = viewer.session.view.find_span(span_id)
            if flat is None:
                return (
                    jsonify({"success": False, "error": f"Span {span_id!r} not found"}),
                    404,
                )
            viewer.on_span_selected(flat)
            turn = find_turn(viewer.get_turns(), flat.span.id)
            data = flat.to_dict()
            data["turn_id"] = turn.id if turn else None
        return jsonify({"success": True, "data": data})
    except TraceNotOpenError as e:
        return _not_open(e)
    except Exception as e:
        error(f"[API] Error selecting span: {e}")
        return jsonify({"success": False, "error": str(e)}), 500


@traces_bp.route("/api/traces/<trace_key>", methods=["DELETE"])
def close_trace(trace_key: str):
    """Close a trace and discard its spans."""
    if not get_registry().close(trace_key):
        return _not_open(TraceNotOpenError(trace_key))
    return jsonify({"success": True, "data": {"trace_key": trace_key, "closed": True}})
