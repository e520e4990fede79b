"""Tests for the bundle freshness window."""

import pytest

from keyservice.constants import FRESHNESS_WINDOW_SECONDS
from keyservice.identity.freshness import is_fresh

NOW = 1_700_000_000
TWO_HOURS = 2 * 60 * 60


class TestIsFresh:

    def test_window_is_two_hours(self):
        assert FRESHNESS_WINDOW_SECONDS == TWO_HOURS

    @pytest.mark.parametrize(
        "generated, expected",
        [
            (NOW, True),
            (NOW - TWO_HOURS, True),
            (NOW - TWO_HOURS - 1, False),
            (NOW + TWO_HOURS, True),
            (NOW + TWO_HOURS + 1, False),
            (0, False),
        ],
    )
    def test_boundaries(self, generated, expected):
        assert is_fresh(generated, NOW) is expected

    def test_custom_window(self):
        assert is_fresh(NOW - 10, NOW, window_seconds=10)
        assert not is_fresh(NOW - 11, NOW, window_seconds=10)
