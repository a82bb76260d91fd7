"""
Pytest configuration and shared fixtures.
"""
import os
from unittest.mock import patch

import pytest

from options_thugs.core.config import get_config_manager
from options_thugs.core.config.manager import ENV_MAPPING
from options_thugs.core.connector import Portfolio, Security, SimulatedConnector
from options_thugs.core.notifications import reset_default_notifier
from tests.mocks import ConnectorMock, RecordingNotifier


# ===== SHARED FIXTURES =====

@pytest.fixture(autouse=True)
def isolated_config():
    """Give each test default settings untouched by the developer's environment."""
    clean_env = {k: v for k, v in os.environ.items()
                 if k not in ENV_MAPPING}
    manager = get_config_manager()
    manager.reset()
    reset_default_notifier()
    with patch.dict(os.environ, clean_env, clear=True):
        yield manager
    reset_default_notifier()
    manager.reset()


@pytest.fixture
def connector():
    """Provide a recording connector."""
    return ConnectorMock()


@pytest.fixture
def simulated_connector():
    """Provide an in-memory connector."""
    return SimulatedConnector()


@pytest.fixture
def notifier():
    """Provide a notifier that records every call."""
    return RecordingNotifier()


@pytest.fixture
def security():
    return Security(code="SiZ6", board="FORTS")


@pytest.fixture
def portfolio():
    return Portfolio(name="SPBFUT00001")
