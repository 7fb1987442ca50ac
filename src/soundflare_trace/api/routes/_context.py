"""
Route Context - Shared dependencies for API routes.

Holds the TraceRegistry that the server creates, so blueprints can reach
it without importing the server module.
"""

import threading
from typing import Optional

from ..registry import TraceRegistry


class RouteContext:
    """Singleton holding shared dependencies for routes."""

    _instance: Optional["RouteContext"] = None
    _lock = threading.Lock()

    def __init__(self):
        self._registry: Optional[TraceRegistry] = None

    @classmethod
    def get_instance(cls) -> "RouteContext":
        """Get or create the singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def configure(self, registry: TraceRegistry) -> None:
        self._registry = registry

    def get_registry(self) -> TraceRegistry:
        if self._registry is None:
            raise RuntimeError("RouteContext not configured - call configure() first")
        return self._registry


def get_context() -> RouteContext:
    """Get the route context singleton."""
    return RouteContext.get_instance()


def get_registry() -> TraceRegistry:
    return get_context().get_registry()
