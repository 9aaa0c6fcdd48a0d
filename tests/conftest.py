"""
Global pytest configuration and fixtures for Dicebot tests

Provides:
- Mock NATS client
- Test configuration files
"""

import json
import pytest
from unittest.mock import AsyncMock
from typing import Any, Dict


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "plugin: Plugin tests")


# ============================================================================
# Mock NATS
# ============================================================================

@pytest.fixture
def mock_nats_client():
    """Mock NATS client instance as returned by NATS()"""
    nats = AsyncMock()
    nats.subscribe = AsyncMock(return_value=AsyncMock())
    nats.publish = AsyncMock()
    return nats


# ============================================================================
# Test Configuration
# ============================================================================

@pytest.fixture
def config_dict() -> Dict[str, Any]:
    """Valid v2 configuration dictionary"""
    return {
        "version": "2.0",
        "nats": {
            "url": "nats://test:4222",
            "max_reconnect_attempts": 3,
            "reconnect_delay": 1,
            "connection_timeout": 2,
        },
        "platform": "discord",
        "logging": {"level": "debug"},
        "plugins": {
            "dice-roller": {"emit_events": False},
        },
    }


@pytest.fixture
def config_file(tmp_path, config_dict):
    """Write config_dict to a JSON file and return its path"""
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config_dict), encoding="utf-8")
    return str(path)
