"""
Trace API Server - Flask server exposing reconstructed traces over HTTP.

Runs in a background thread. Requests are served one at a time
(threaded=False); the registry still locks per trace so the viewers can
also be driven from the owning process.
"""

import logging
import threading
from typing import Any, Optional

from flask import Flask
from werkzeug.serving import make_server

from ..sources.base import SpanSource
from ..tracing import DEFAULT_PAGE_SIZE
from ..utils.logger import info
from .config import API_HOST, API_PORT, SERVER_SHUTDOWN_TIMEOUT
from .registry import TraceRegistry
from .routes import health_bp, traces_bp
from .routes._context import RouteContext


def create_app(registry: TraceRegistry) -> Flask:
    """Build the Flask app and point the route context at `registry`."""
    app = Flask(__name__)
    RouteContext.get_instance().configure(registry)
    app.register_blueprint(health_bp)
    app.register_blueprint(traces_bp)
    return app


class TraceAPIServer:
    """Flask server for the trace API, running in a background thread."""

    def __init__(
        self,
        source: SpanSource,
        host: str = API_HOST,
        port: int = API_PORT,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """Initialize the API server.

        Args:
            source: Span source every opened trace reads from
            host: Host to bind to (default: localhost only)
            port: Port to listen on
            page_size: Spans per page fetched from the source
        """
        self._host = host
        self._port = port
        self.registry = TraceRegistry(source, page_size)
        self._app = create_app(self.registry)
        self._server: Any = None  # werkzeug BaseWSGIServer
        self._thread: Optional[threading.Thread] = None

    @property
    def app(self) -> Flask:
        return self._app

    def start(self) -> None:
        """Start the API server in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        # Werkzeug request logging is too verbose
        logging.getLogger("werkzeug").setLevel(logging.ERROR)

        self._server = make_server(self._host, self._port, self._app, threaded=False)

        def run_server():
            info(f"[API] Server started on {self.url}")
            self._server.serve_forever()

        self._thread = threading.Thread(target=run_server, daemon=True)
        self._thread.start()

    def serve_forever(self) -> None:
        """Run the server in the calling thread until interrupted."""
        logging.getLogger("werkzeug").setLevel(logging.ERROR)
        self._server = make_server(self._host, self._port, self._app, threaded=False)
        info(f"[API] Server started on {self.url}")
        try:
            self._server.serve_forever()
        finally:
            self.registry.close_all()

    def stop(self) -> None:
        """Stop the API server and close every open trace."""
        if self._server:
            self._server.shutdown()
            info("[API] Server stopped")
        if self._thread is not None:
            self._thread.join(timeout=SERVER_SHUTDOWN_TIMEOUT)
        self.registry.close_all()
        self._server = None
        self._thread = None

    @property
    def url(self) -> str:
        """Get the base URL of the API server."""
        return f"http://{self._host}:{self._port}"

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
