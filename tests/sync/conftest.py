"""Fixtures for sync tests."""

import pytest

from tests.sync.fakes import FakeDocumentIndex, FakeRecordStore, SyncHarness


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def documents() -> FakeDocumentIndex:
    return FakeDocumentIndex()


@pytest.fixture
def harness() -> SyncHarness:
    return SyncHarness()
