"""Mock implementations for testing."""

from tests.snapsend.mocks.fetcher import MockFetcher
from tests.snapsend.mocks.notifier import MockNotifier
from tests.snapsend.mocks.storage import MockStorage

__all__ = [
    "MockFetcher",
    "MockNotifier",
    "MockStorage",
]
