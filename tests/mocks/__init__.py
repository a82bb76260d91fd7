"""
Mock infrastructure for external dependencies.
"""
from .connector_mock import ConnectorMock, RecordingNotifier

__all__ = [
    'ConnectorMock',
    'RecordingNotifier',
]
