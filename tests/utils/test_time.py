"""Tests for clock helpers."""

from unittest.mock import patch

from repo_lifecycle.utils.time import is_expired, system_clock, unix_now


class TestUnixNow:
    """Test unix_now truncation."""

    def test_truncates_to_whole_seconds(self, clock):
        clock.advance(0.9)
        assert unix_now(clock) == 1_700_000_000

    def test_defaults_to_wall_clock(self):
        with patch("repo_lifecycle.utils.time.time.time", return_value=1234.5):
            assert system_clock() == 1234.5
            assert unix_now() == 1234


class TestIsExpired:
    """Test expiry boundary."""

    def test_boundary_is_expired(self, clock):
        assert is_expired(clock(), clock) is True
        assert is_expired(clock() + 1, clock) is False
