"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    CacheParams,
    DefaultConfig,
    LimitParams,
    LockParams,
    ProtectionParams,
    RetryParams,
    StorageParams,
    get_default_config,
)
from .validation import ConfigValidator

CONFIG_FILENAME = "engine.yaml"

_SECTIONS = {
    "cache": CacheParams,
    "limits": LimitParams,
    "lock": LockParams,
    "retry": RetryParams,
    "protection": ProtectionParams,
    "storage": StorageParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from engine.yaml, if present."""
        config_file = self.config_dir / CONFIG_FILENAME

        if not config_file.exists():
            return {}

        with open(config_file) as f:
            file_config = yaml.safe_load(f)

        return file_config or {}

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Call-site overrides (highest priority)
        2. engine.yaml in the config directory
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)
        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if is_dataclass(obj):
            result = {}
            for f in fields(obj):
                value = getattr(obj, f.name)
                if is_dataclass(value):
                    result[f.name] = self._dataclass_to_dict(value)
                elif isinstance(value, tuple):
                    result[f.name] = list(value)
                else:
                    result[f.name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result


def build_config(merged: dict[str, Any]) -> DefaultConfig:
    """Build typed configuration from a merged dictionary, ignoring unknown keys."""
    sections = {}
    for name, section_cls in _SECTIONS.items():
        raw = merged.get(name) or {}
        known = {f.name for f in fields(section_cls)}
        kwargs = {}
        for key, value in raw.items():
            if key not in known:
                continue
            kwargs[key] = tuple(value) if isinstance(value, list) else value
        sections[name] = section_cls(**kwargs)
    return DefaultConfig(**sections)


def load_engine_config(
    config_dir: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None
) -> DefaultConfig:
    """
    Load, validate and build the engine configuration.

    Raises:
        ConfigurationError: If any parameter fails validation
    """
    merged = ConfigLoader.create(config_dir).merge_config(overrides)

    errors = ConfigValidator.validate_engine_params(merged)
    if errors:
        first = errors[0]
        raise ConfigurationError(
            f"{first.field}: {first.message} (got: {first.value!r})",
            field=first.field,
            context={"errors": [e.field for e in errors]},
        )

    return build_config(merged)
