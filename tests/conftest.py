"""Pytest configuration and shared fixtures."""

import pytest
from typing import Dict, Optional, Union

from repo_lifecycle.errors import DetectionError
from repo_lifecycle.integrations.base import (
    DetectionService,
    StaticAvailabilityCache,
    StaticPluginRegistry,
)
from repo_lifecycle.persistence.memory_store import InMemoryOptionStore, InMemoryTTLStore
from repo_lifecycle.state.engine import StateEngine
from repo_lifecycle.state.models import DetectionCandidate, DetectionResult


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedDetectionService(DetectionService):
    """Detection double answering per slug and recording every call."""

    def __init__(self, results: Optional[Dict[str, Union[DetectionResult, Exception]]] = None):
        self.results = dict(results or {})
        self.calls = []

    def detect(self, candidate: DetectionCandidate, force_refresh: bool = False):
        self.calls.append((candidate, force_refresh))
        result = self.results.get(candidate.slug)
        if result is None:
            return DetectionResult(is_plugin=None, scan_method="no_headers")
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryTTLStore:
    return InMemoryTTLStore(clock)


@pytest.fixture
def options() -> InMemoryOptionStore:
    return InMemoryOptionStore()


@pytest.fixture
def registry() -> StaticPluginRegistry:
    return StaticPluginRegistry()


@pytest.fixture
def detection() -> ScriptedDetectionService:
    return ScriptedDetectionService()


@pytest.fixture
def availability() -> StaticAvailabilityCache:
    return StaticAvailabilityCache()


@pytest.fixture
def make_engine(registry, detection, availability, store, options, clock):
    """Factory building engines over the same backing stores (simulates new requests)."""

    def _make(**kwargs) -> StateEngine:
        params = dict(
            availability_cache=availability,
            store=store,
            options=options,
            clock=clock,
        )
        params.update(kwargs)
        return StateEngine(registry, detection, **params)

    return _make


@pytest.fixture
def engine(make_engine) -> StateEngine:
    return make_engine()


@pytest.fixture
def detection_error() -> DetectionError:
    return DetectionError("GitHub API rate limit exceeded", scan_method="header_scan")
