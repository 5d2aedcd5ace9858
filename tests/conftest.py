"""Pytest configuration and fixtures."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.fakes.fake_llm import text_response

# Settings are read lazily, but modules under test may build them at import.
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("APP_ENV", "test")

EMBEDDING_DIM = 768


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["APP_ENV"] = "test"


@pytest.fixture
def fake_store():
    from tests.fakes.fake_store import FakeChatStore

    return FakeChatStore()


@pytest.fixture
def embedder():
    """Embedding gateway double returning a fixed 768-dim vector."""
    gateway = MagicMock()
    gateway.embed = AsyncMock(return_value=[0.1] * EMBEDDING_DIM)
    return gateway


@pytest.fixture
def anthropic_client():
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=text_response("Resposta."))
    return client
