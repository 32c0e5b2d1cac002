"""
Repository lifecycle state machine.

Tracks repositories through UNKNOWN → CHECKING → AVAILABLE / NOT_PLUGIN →
INSTALLED_INACTIVE ⇄ INSTALLED_ACTIVE, with ERROR as a recoverable side state.
"""
