"""
Trace API - HTTP access to reconstructed traces.

The server wraps a TraceRegistry of open traces and serves their status,
flattened spans and turns as JSON.
"""

from .config import API_HOST, API_PORT, get_base_url
from .registry import TraceRegistry
from .server import TraceAPIServer, create_app

__all__ = [
    "API_HOST",
    "API_PORT",
    "get_base_url",
    "TraceRegistry",
    "TraceAPIServer",
    "create_app",
]
