"""
Plugin detection pipeline.

Determines a repository's state from first principles by combining the
installed-package registry, the detection service and the availability cache.
Collaborator failures never escape: they degrade to UNKNOWN.
"""

import re
from pathlib import PurePosixPath
from typing import Mapping, Optional

from ..events.event_log import EventLog
from ..integrations.base import AvailabilityCache, DetectionService, PluginRegistry
from ..logging.config import get_detection_logger
from .models import DetectionCandidate, DetectionResult, PluginState

detection_logger = get_detection_logger(__name__)

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def extract_slug(repository: str) -> str:
    """Last path segment of an ``owner/name`` identifier."""
    return repository.split("/")[-1]


def normalize_slug(value: str) -> str:
    """Lowercase and strip separators so ``My_Plugin`` equals ``my-plugin``."""
    return _NON_ALNUM.sub("", value.lower())


def match_plugin_file(slug: str, installed: Mapping[str, object]) -> Optional[str]:
    """
    Find the installed plugin file for a slug.

    Exact matches on the normalized directory or file stem win; otherwise a
    prefix relationship in either direction between slug and directory is
    accepted, tolerating naming drift between repository and install dir.
    """
    norm_slug = normalize_slug(slug)
    if not norm_slug:
        return None

    candidates = []
    for plugin_file in installed:
        path = PurePosixPath(plugin_file)
        norm_dir = normalize_slug(path.parent.as_posix())
        if norm_slug in (norm_dir, normalize_slug(path.stem)):
            return plugin_file
        candidates.append((plugin_file, norm_dir))

    for plugin_file, norm_dir in candidates:
        if norm_dir and (
            norm_dir.startswith(norm_slug) or norm_slug.startswith(norm_dir)
        ):
            return plugin_file

    return None


def state_from_detection(result: Optional[DetectionResult]) -> PluginState:
    """Three-way mapping: plugin, explicitly not a plugin, or inconclusive."""
    if result is None:
        return PluginState.UNKNOWN
    if result.is_plugin is True:
        return PluginState.AVAILABLE
    if result.is_plugin is False:
        return PluginState.NOT_PLUGIN
    return PluginState.UNKNOWN


class PluginDetector:
    """Runs the detection pipeline for one repository at a time."""

    def __init__(
        self,
        registry: PluginRegistry,
        detection_service: DetectionService,
        event_log: EventLog,
        availability_cache: Optional[AvailabilityCache] = None,
    ):
        self.registry = registry
        self.detection_service = detection_service
        self.availability_cache = availability_cache
        self.event_log = event_log
        self.logger = detection_logger

    def find_plugin_file(self, slug: str) -> Optional[str]:
        if not slug:
            return None
        try:
            installed = self.registry.list_installed()
        except Exception as e:
            self.logger.warning("registry_unavailable", slug=slug, error=str(e))
            return None
        return match_plugin_file(slug, installed)

    def get_installed_plugin_file(self, repository: str) -> Optional[str]:
        return self.find_plugin_file(extract_slug(repository))

    def is_plugin_active(self, plugin_file: str) -> bool:
        try:
            return bool(self.registry.is_active(plugin_file))
        except Exception as e:
            self.logger.warning("registry_unavailable", plugin_file=plugin_file, error=str(e))
            return False

    def detect_plugin_info(
        self,
        candidate: DetectionCandidate,
        force_refresh: bool = False
    ) -> Optional[DetectionResult]:
        """
        Call the detection service, recording a breadcrumb in the event log.

        Returns:
            The detection result, or None if the service failed
        """
        try:
            result = DetectionResult.from_mapping(
                self.detection_service.detect(candidate, force_refresh=force_refresh)
            )
        except Exception as e:
            self.event_log.log_event(
                candidate.identifier, "detect_plugin_error", {"message": str(e)}
            )
            self.logger.warning(
                "detection_failed",
                repository=candidate.identifier,
                error=str(e),
            )
            return None

        if result.is_plugin is True:
            outcome = "is_plugin"
        elif result.is_plugin is False:
            outcome = "not_plugin"
        else:
            outcome = "inconclusive"

        self.event_log.log_event(
            candidate.identifier,
            "detect_plugin",
            {"result": outcome, "scan_method": result.scan_method},
        )
        return result

    def determine_plugin_state(self, repository: str) -> PluginState:
        """Primary path: installed registry first, then the detection service."""
        slug = extract_slug(repository)
        if not slug:
            return PluginState.UNKNOWN

        plugin_file = self.find_plugin_file(slug)
        if plugin_file is None:
            result = self.detect_plugin_info(DetectionCandidate(identifier=repository, slug=slug))
            return state_from_detection(result)

        if self.is_plugin_active(plugin_file):
            return PluginState.INSTALLED_ACTIVE
        return PluginState.INSTALLED_INACTIVE

    def check_cache_state(self, repository: str) -> bool:
        """Fast availability heuristic keyed by slug."""
        if self.availability_cache is None:
            return False
        try:
            return bool(self.availability_cache.contains(extract_slug(repository)))
        except Exception as e:
            self.logger.warning("availability_cache_unavailable", repository=repository, error=str(e))
            return False

    def detect_plugin_state(self, repository: str) -> PluginState:
        """Secondary path for still-unknown repositories."""
        if self.check_cache_state(repository):
            return PluginState.AVAILABLE

        slug = extract_slug(repository)
        if not slug:
            return PluginState.UNKNOWN

        result = self.detect_plugin_info(
            DetectionCandidate(identifier=repository, slug=slug),
            force_refresh=True,
        )
        return state_from_detection(result)
