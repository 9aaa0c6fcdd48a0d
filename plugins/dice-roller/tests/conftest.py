"""Pytest configuration and fixtures for dice-roller plugin tests."""

import sys
from pathlib import Path

# Add plugin directory to path for local imports
PLUGIN_DIR = Path(__file__).parent.parent
if str(PLUGIN_DIR) not in sys.path:
    sys.path.insert(0, str(PLUGIN_DIR))

import json
import pytest
import random
from unittest.mock import AsyncMock, MagicMock

from dice import DiceRoller


class SequenceRNG:
    """RNG stand-in that returns a fixed sequence of rolls."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self.values.pop(0)


@pytest.fixture
def roller() -> DiceRoller:
    """Create a DiceRoller with default settings."""
    return DiceRoller()


@pytest.fixture
def seeded_roller() -> DiceRoller:
    """Create a DiceRoller with seeded RNG for deterministic tests."""
    rng = random.Random(42)
    return DiceRoller(rng=rng)


@pytest.fixture
def sequence_rng():
    """Factory for RNGs returning predetermined rolls."""
    return SequenceRNG


@pytest.fixture
def mock_nats():
    """Create mock NATS client for testing."""
    nats = AsyncMock()
    nats.subscribe = AsyncMock(return_value=MagicMock())
    nats.publish = AsyncMock()
    return nats


@pytest.fixture
def make_msg():
    """Factory for mock NATS command messages."""

    def _make(data, reply="test.reply"):
        msg = MagicMock()
        msg.data = json.dumps(data).encode() if isinstance(data, dict) else data
        msg.reply = reply
        msg.respond = AsyncMock()
        return msg

    return _make


@pytest.fixture
def plugin_config():
    """Default plugin configuration."""
    return {
        "platform": "cytube",
        "emit_events": True,
        "force_groups": True,
    }
