"""Pytest configuration and shared fixtures."""

import pytest

from tests.fakes import FakeConnector, FakeHost


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()
