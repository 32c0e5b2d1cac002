"""Tests for state machine data models."""

import pytest

from repo_lifecycle.state.models import (
    BroadcastEntry,
    DetectionResult,
    ErrorContext,
    EventLogEntry,
    PluginState,
    parse_recoverable,
)


class TestPluginState:
    """Test PluginState enum."""

    def test_values(self):
        """Test state values used in storage and broadcast payloads."""
        assert PluginState.UNKNOWN.value == "unknown"
        assert PluginState.NOT_PLUGIN.value == "not_plugin"
        assert PluginState.INSTALLED_ACTIVE.value == "installed_active"
        assert len(PluginState) == 7

    def test_try_from_valid(self):
        assert PluginState.try_from("available") is PluginState.AVAILABLE

    @pytest.mark.parametrize("raw", ["installing", "", None, 3, ["error"]])
    def test_try_from_invalid(self, raw):
        """Test unrecognised stored values are rejected, not raised."""
        assert PluginState.try_from(raw) is None

    def test_is_installed(self):
        assert PluginState.INSTALLED_ACTIVE.is_installed()
        assert PluginState.INSTALLED_INACTIVE.is_installed()
        assert not PluginState.AVAILABLE.is_installed()
        assert not PluginState.ERROR.is_installed()


class TestErrorContext:
    """Test ErrorContext record."""

    def test_to_dict_omits_unset_retry_timestamp(self):
        context = ErrorContext(timestamp=100, message="boom", source="installer")

        data = context.to_dict()

        assert data == {
            "timestamp": 100,
            "message": "boom",
            "source": "installer",
            "recoverable": True,
            "retry_count": 0,
        }

    def test_from_dict_defaults(self):
        """Test partial contexts (e.g. retry-only) load with defaults."""
        context = ErrorContext.from_dict({"retry_count": 2, "last_retry_at": 50})

        assert context.timestamp == 0
        assert context.message == "Unknown error"
        assert context.source == "unknown"
        assert context.recoverable is True
        assert context.retry_count == 2
        assert context.last_retry_at == 50


class TestParseRecoverable:
    """Test loose recoverable flags."""

    @pytest.mark.parametrize("raw,expected", [
        (None, True),
        (True, True),
        (False, False),
        ("false", False),
        ("FALSE ", False),
        ("0", False),
        ("true", True),
        ("yes", True),
        (0, False),
        (1, True),
        ([], True),
    ])
    def test_parse(self, raw, expected):
        assert parse_recoverable(raw) is expected

    def test_from_dict_explicit_none_is_recoverable(self):
        assert ErrorContext.from_dict({"recoverable": None}).recoverable is True
        assert ErrorContext.from_dict({"recoverable": "false"}).recoverable is False


class TestEventLogEntry:
    """Test EventLogEntry record."""

    def test_from_dict(self):
        entry = EventLogEntry.from_dict({"timestamp": 5, "event_name": "transition", "data": {"to": "checking"}})

        assert entry.timestamp == 5
        assert entry.event_name == "transition"
        assert entry.data == {"to": "checking"}

    def test_from_dict_missing_field(self):
        with pytest.raises(KeyError):
            EventLogEntry.from_dict({"timestamp": 5})


class TestBroadcastEntry:
    """Test BroadcastEntry record."""

    def test_to_dict(self):
        entry = BroadcastEntry(id=7, event_name="state_changed", payload={"repository": "a/b"}, timestamp=9)

        assert entry.to_dict() == {
            "id": 7,
            "event_name": "state_changed",
            "payload": {"repository": "a/b"},
            "timestamp": 9,
        }


class TestDetectionResult:
    """Test DetectionResult parsing."""

    def test_from_mapping(self):
        result = DetectionResult.from_mapping({"is_plugin": True, "scan_method": "header_scan"})

        assert result.is_plugin is True
        assert result.scan_method == "header_scan"

    def test_from_mapping_non_bool_is_inconclusive(self):
        """Test truthy non-bool values do not count as a conclusion."""
        result = DetectionResult.from_mapping({"is_plugin": "yes"})

        assert result.is_plugin is None

    def test_from_mapping_passthrough(self):
        result = DetectionResult(is_plugin=False, scan_method="x")

        assert DetectionResult.from_mapping(result) is result

    def test_from_mapping_garbage(self):
        assert DetectionResult.from_mapping(None) == DetectionResult()
