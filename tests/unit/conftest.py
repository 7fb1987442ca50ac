"""
Unit test fixtures for pure functions and isolated components.

This module provides minimal fixtures for fast unit tests
that don't require real databases or network access.
"""

import pytest
from faker import Faker

fake = Faker()


@pytest.fixture
def sample_trace_key() -> str:
    """Generate a sample trace key for tests."""
    return f"tk_{fake.uuid4()}"


@pytest.fixture
def sample_span_id() -> str:
    return fake.hexify(text="^^^^^^^^^^^^^^^^")
