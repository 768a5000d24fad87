"""Shared fixtures for botbuilder tests."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep host BOTBUILDER_* variables out of the tests."""
    # setenv first so teardown also removes values load_dotenv writes
    for var in ("BOTBUILDER_CONFIG_DIR", "BOTBUILDER_LOG_LEVEL"):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def fake_client():
    """Stand-in for a discord.Client that never touches the network."""
    client = MagicMock()
    client.user = SimpleNamespace(id=1, name="botbuilder", discriminator="0")
    client.start = AsyncMock()
    client.close = AsyncMock()
    client.is_closed = MagicMock(return_value=False)
    return client
