"""
API Routes Package - Flask Blueprints for the trace API.

- health: Health check endpoint
- traces: Load, inspect and close traces
"""

from .health import health_bp
from .traces import traces_bp

__all__ = ["health_bp", "traces_bp"]
