"""
Test Data Builders - Fluent API for creating span rows.

Usage:
    from tests.builders import SpanBuilder

    spans = SpanBuilder().turn("user_turn").add("stt").spans()
"""

from .spans import BASE_TIME_NS, SpanBuilder

__all__ = ["SpanBuilder", "BASE_TIME_NS"]
