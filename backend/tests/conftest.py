"""Shared pytest fixtures."""

import pytest

from tests.factories import FakeVideoSource, make_landmarks


@pytest.fixture
def standing_landmarks():
    return make_landmarks()


@pytest.fixture
def fake_source():
    return FakeVideoSource(duration=1.0)
