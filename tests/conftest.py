"""Pytest configuration and shared fixtures."""
import os

import pytest

from chatstream.chat import GPT35, StreamingParams
from helpers import FakeClock


@pytest.fixture
def params():
    """Return minimal streaming parameters."""
    return StreamingParams(api_key="12345", model=GPT35.TURBO)


@pytest.fixture
def clock():
    """Return a deterministic clock."""
    return FakeClock()


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
    }
