"""
Pytest configuration and shared fixtures for soundflare_trace tests.

This module provides:
- An isolated log directory so tests never write to the user's state dir
- Span row builders and in-memory sources
- HTTP mocking for aiohttp and log capture for the "soundflare" logger
"""

import logging
import os
import sys
import tempfile
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Must be set before the logging system initializes
os.environ.setdefault("SOUNDFLARE_LOG_DIR", tempfile.mkdtemp(prefix="soundflare-logs-"))

from aioresponses import aioresponses  # noqa: E402

from soundflare_trace.sources import InMemorySpanSource  # noqa: E402
from soundflare_trace.utils.logger import get_logger  # noqa: E402

from tests.builders import SpanBuilder  # noqa: E402


# =============================================================================
# Span data
# =============================================================================


@pytest.fixture
def span_builder() -> SpanBuilder:
    return SpanBuilder()


@pytest.fixture
def three_turn_rows() -> list[dict]:
    """Session start, a user turn with children, an assistant turn with an LLM call."""
    return (
        SpanBuilder()
        .turn("start_agent_activity", span_id="start", duration_ms=5)
        .turn("user_turn", span_id="user", duration_ms=100)
        .add("stt", span_id="stt", parent="user", duration_ms=80)
        .add("eou_detection", span_id="eou", parent="user", duration_ms=10)
        .turn("assistant_turn", span_id="assistant", duration_ms=900)
        .add("llm_request", span_id="llm", parent="assistant", duration_ms=420)
        .add("tts", span_id="tts", parent="assistant", duration_ms=300)
        .rows()
    )


@pytest.fixture
def memory_source(three_turn_rows) -> InMemorySpanSource:
    return InMemorySpanSource(three_turn_rows)


# =============================================================================
# HTTP mocking
# =============================================================================


@pytest.fixture
def mock_aioresponse():
    """Intercept aiohttp requests for the duration of a test."""
    with aioresponses() as m:
        yield m


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture
def soundflare_logs(caplog):
    """Capture records of the "soundflare" logger tree.

    The logger does not propagate to the root logger, so caplog's handler
    is attached to it directly.
    """
    # Initialize first so setup_logging() cannot replace the capture handler
    logger = get_logger()
    old_level = logger.level
    logger.addHandler(caplog.handler)
    logger.setLevel(logging.DEBUG)
    caplog.handler.setLevel(logging.DEBUG)
    yield caplog
    logger.removeHandler(caplog.handler)
    logger.setLevel(old_level)
