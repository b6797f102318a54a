"""Shared pytest fixtures for SnapSend tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from snapsend.models.enums import BucketFolder
from snapsend.models.upload import IssueMeta
from tests.snapsend.mocks import MockFetcher, MockNotifier, MockStorage


@pytest.fixture
def mock_storage() -> MockStorage:
    return MockStorage()


@pytest.fixture
def mock_fetcher() -> MockFetcher:
    return MockFetcher()


@pytest.fixture
def mock_notifier() -> MockNotifier:
    return MockNotifier()


@pytest.fixture
def snap_send_meta() -> IssueMeta:
    """Form fields of a typical Snap & Send submission."""
    return IssueMeta.for_folder(
        BucketFolder.SNAP_SEND,
        full_name="Jed Orr",
        phone="0400 000 000",
        machine="John Deere 8R",
        issue_type="Hydraulics",
        issue="Leaking ram",
    )
