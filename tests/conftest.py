"""
Pytest configuration.

Adds the project root to the Python path so that tests can import the domain,
repositories, services and api packages, and provides an in-memory Supabase
fake.
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeSupabase  # noqa: E402


@pytest.fixture
def db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def now() -> datetime:
    """Wednesday 2024-03-06 12:00 UTC."""
    return datetime(2024, 3, 6, 12, 0, 0, tzinfo=timezone.utc)
