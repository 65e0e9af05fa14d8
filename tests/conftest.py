import os

os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

import pytest

from tests.mocks.fake_queries import FakeQueryService


@pytest.fixture
def queries():
    """In-memory query service with empty tables."""
    return FakeQueryService()
