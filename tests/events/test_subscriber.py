"""Tests for the polling broadcast subscriber."""

from unittest.mock import Mock

from repo_lifecycle.events.subscriber import BroadcastSubscriber
from repo_lifecycle.state.models import BroadcastEntry, PluginState


def _entry(id, repository="acme/widget", to="available", event_name="state_changed"):
    return BroadcastEntry(
        id=id,
        event_name=event_name,
        payload={"repository": repository, "from": "checking", "to": to},
        timestamp=1_700_000_000,
    )


class TestBroadcastSubscriber:
    """Test BroadcastSubscriber against a scripted source."""

    def test_poll_applies_state_changes(self):
        source = Mock(return_value=[_entry(1), _entry(2, repository="acme/other", to="not_plugin")])
        subscriber = BroadcastSubscriber(source)

        entries = subscriber.poll()

        assert len(entries) == 2
        source.assert_called_once_with(0)
        assert subscriber.last_id == 2
        assert subscriber.get("acme/widget") == PluginState.AVAILABLE
        assert subscriber.get("acme/other") == PluginState.NOT_PLUGIN

    def test_resumes_from_last_id(self):
        source = Mock(side_effect=[[_entry(4)], []])
        subscriber = BroadcastSubscriber(source, last_id=3)

        subscriber.poll()
        subscriber.poll()

        assert [c.args for c in source.call_args_list] == [(3,), (4,)]

    def test_listeners_notified(self):
        subscriber = BroadcastSubscriber(Mock(return_value=[_entry(1)]))
        listener = Mock()
        subscriber.on_change(listener)

        subscriber.poll()

        listener.assert_called_once_with("acme/widget", PluginState.AVAILABLE)

    def test_unsubscribe(self):
        subscriber = BroadcastSubscriber(Mock(return_value=[_entry(1)]))
        listener = Mock()
        unsubscribe = subscriber.on_change(listener)

        unsubscribe()
        unsubscribe()
        subscriber.poll()

        listener.assert_not_called()

    def test_other_events_advance_cursor_only(self):
        entry = BroadcastEntry(id=7, event_name="cache_cleared", payload={}, timestamp=0)
        subscriber = BroadcastSubscriber(Mock(return_value=[entry]))

        subscriber.poll()

        assert subscriber.last_id == 7
        assert subscriber.states == {}

    def test_malformed_payload_ignored(self):
        subscriber = BroadcastSubscriber(Mock(return_value=[_entry(1, to="bogus")]))

        subscriber.poll()

        assert subscriber.last_id == 1
        assert subscriber.get("acme/widget") is None

    def test_mirrors_engine_transitions(self, engine):
        subscriber = BroadcastSubscriber(engine.get_broadcast_events_since)
        engine.transition("acme/widget", PluginState.CHECKING)
        engine.transition("acme/widget", PluginState.AVAILABLE)

        subscriber.poll()

        assert subscriber.get("acme/widget") == PluginState.AVAILABLE
        assert subscriber.last_id == 2
        assert subscriber.poll() == []
