#!/usr/bin/env python3
"""
State Engine Demo - Repository Lifecycle

This script walks a handful of repositories through the lifecycle:
- Refresh from UNKNOWN through CHECKING to the detected state
- Validated install/activate transitions and a blocked transition
- An ERROR with retries and recovery
- A polling consumer following the broadcast queue

Run: python examples/state_engine_demo.py
"""

from repo_lifecycle.errors import DetectionError
from repo_lifecycle.events.subscriber import BroadcastSubscriber
from repo_lifecycle.integrations.base import (
    DetectionService,
    StaticAvailabilityCache,
    StaticPluginRegistry,
)
from repo_lifecycle.logging.config import configure_logging
from repo_lifecycle.state.engine import StateEngine
from repo_lifecycle.state.models import DetectionResult, PluginState


class DemoDetectionService(DetectionService):
    """Answers from a fixed table; raises for anything it has never seen."""

    KNOWN = {
        "hello-dolly": True,
        "dotfiles": False,
    }

    def detect(self, candidate, force_refresh=False):
        if candidate.slug not in self.KNOWN:
            raise DetectionError("repository not reachable", repository=candidate.identifier)
        return DetectionResult(is_plugin=self.KNOWN[candidate.slug], scan_method="header_scan")


def main():
    configure_logging(level="WARNING")

    registry = StaticPluginRegistry(
        installed={
            "akismet/akismet.php": {"Name": "Akismet"},
            "kiss-smart-batch-installer-mkii/main.php": {"Name": "Smart Batch Installer"},
        },
        active={"kiss-smart-batch-installer-mkii/main.php"},
    )
    engine = StateEngine(
        registry,
        DemoDetectionService(),
        availability_cache=StaticAvailabilityCache({"cached-plugin"}),
    )
    subscriber = BroadcastSubscriber(engine.get_broadcast_events_since)
    subscriber.on_change(lambda repo, state: print(f"  📡 {repo} -> {state.value}"))

    repositories = [
        "wp/akismet",
        "acme/hello-dolly",
        "me/dotfiles",
        "acme/cached-plugin",
        "acme/offline-thing",
        "kiss/kiss-smart-batch-installer-mkii",
    ]

    print("🔄 Refreshing repositories")
    for repo, state in engine.batch_refresh_states(repositories).items():
        protected = " 🛡️" if engine.is_self_protected(repo) else ""
        print(f"  {repo}: {state.value}{protected}")
    subscriber.poll()

    print("\n📦 Installing acme/hello-dolly")
    engine.transition("acme/hello-dolly", PluginState.INSTALLED_INACTIVE, {"source": "installer"})
    engine.transition("acme/hello-dolly", PluginState.INSTALLED_ACTIVE, {"source": "activator"})
    applied = engine.transition("acme/hello-dolly", PluginState.AVAILABLE, {"source": "demo"})
    print(f"  ACTIVE -> AVAILABLE applied: {applied}")
    subscriber.poll()

    print("\n💥 Error and recovery for wp/akismet")
    engine.transition("wp/akismet", PluginState.ERROR, {"error": "activation failed", "source": "activator"})
    while engine.can_retry("wp/akismet"):
        print(f"  retry #{engine.increment_retry_count('wp/akismet')}")
    engine.transition("wp/akismet", PluginState.AVAILABLE, {"source": "operator"})
    subscriber.poll()

    print("\n📜 Recent events for wp/akismet")
    for entry in engine.get_events("wp/akismet", limit=5):
        print(f"  {entry.timestamp} {entry.event_name}")

    print("\n📊 Statistics")
    for key, value in engine.get_statistics().items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    main()
