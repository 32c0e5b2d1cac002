"""
Allowed state transitions for the repository lifecycle.

Validated transitions consult this table; forced transitions (used by the
refresh pipeline) bypass it because detection may legitimately jump from any
state to any other.
"""

from types import MappingProxyType
from typing import Mapping

from .models import PluginState

ALLOWED_TRANSITIONS: Mapping[PluginState, frozenset[PluginState]] = MappingProxyType({
    PluginState.UNKNOWN: frozenset({
        PluginState.CHECKING,
        PluginState.AVAILABLE,
        PluginState.NOT_PLUGIN,
        PluginState.ERROR,
        PluginState.INSTALLED_INACTIVE,
        PluginState.INSTALLED_ACTIVE,
    }),
    PluginState.CHECKING: frozenset({
        PluginState.AVAILABLE,
        PluginState.NOT_PLUGIN,
        PluginState.ERROR,
    }),
    PluginState.AVAILABLE: frozenset({
        PluginState.INSTALLED_INACTIVE,
        PluginState.ERROR,
    }),
    PluginState.INSTALLED_INACTIVE: frozenset({
        PluginState.INSTALLED_ACTIVE,
        PluginState.ERROR,
    }),
    PluginState.INSTALLED_ACTIVE: frozenset({
        PluginState.INSTALLED_INACTIVE,
        PluginState.ERROR,
    }),
    PluginState.NOT_PLUGIN: frozenset({
        PluginState.CHECKING,
        PluginState.AVAILABLE,
    }),
    PluginState.ERROR: frozenset({
        PluginState.CHECKING,
        PluginState.AVAILABLE,
        PluginState.NOT_PLUGIN,
    }),
})


def allowed_targets(from_state: PluginState) -> frozenset[PluginState]:
    """States reachable from from_state without force."""
    return ALLOWED_TRANSITIONS.get(from_state, frozenset())


def is_transition_allowed(from_state: PluginState, to_state: PluginState) -> bool:
    """Check the allowed-transition table."""
    return to_state in allowed_targets(from_state)


def blocked_pairs() -> list[tuple[PluginState, PluginState]]:
    """Every (from, to) pair the table rejects, including self-transitions."""
    return [
        (from_state, to_state)
        for from_state in PluginState
        for to_state in PluginState
        if not is_transition_allowed(from_state, to_state)
    ]
