"""Base classes for detection collaborators."""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Union

from ..state.models import DetectionCandidate, DetectionResult


class PluginRegistry(ABC):
    """Enumerates installed packages and their activation status."""

    @abstractmethod
    def list_installed(self) -> Mapping[str, Mapping[str, Any]]:
        """Installed packages keyed by plugin file path (``dir/main.php``)."""
        pass

    @abstractmethod
    def is_active(self, plugin_file: str) -> bool:
        """Whether the installed package is active."""
        pass


class DetectionService(ABC):
    """Inspects a candidate and reports whether it is installable."""

    @abstractmethod
    def detect(
        self,
        candidate: DetectionCandidate,
        force_refresh: bool = False
    ) -> Union[DetectionResult, Mapping[str, Any]]:
        """
        Inspect a candidate.

        Returns:
            DetectionResult, or a mapping with ``is_plugin`` and ``scan_method``

        Raises:
            DetectionError: If the candidate could not be inspected
        """
        pass


class AvailabilityCache(ABC):
    """Fast, externally maintained cache of slugs known to be installable."""

    @abstractmethod
    def contains(self, slug: str) -> bool:
        pass


class StaticPluginRegistry(PluginRegistry):
    """Registry backed by a fixed mapping."""

    def __init__(
        self,
        installed: Optional[Mapping[str, Mapping[str, Any]]] = None,
        active: Optional[Iterable[str]] = None
    ):
        self.installed = dict(installed or {})
        self.active = set(active or ())

    def list_installed(self) -> Mapping[str, Mapping[str, Any]]:
        return dict(self.installed)

    def is_active(self, plugin_file: str) -> bool:
        return plugin_file in self.active

    def install(self, plugin_file: str, metadata: Optional[Mapping[str, Any]] = None,
                active: bool = False) -> None:
        self.installed[plugin_file] = dict(metadata or {})
        if active:
            self.active.add(plugin_file)
        else:
            self.active.discard(plugin_file)


class StaticAvailabilityCache(AvailabilityCache):
    """Availability cache backed by a fixed set of slugs."""

    def __init__(self, slugs: Optional[Iterable[str]] = None):
        self.slugs = set(slugs or ())

    def contains(self, slug: str) -> bool:
        return slug in self.slugs
