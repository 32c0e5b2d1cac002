"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any

SUPPORTED_BACKENDS = ("memory", "sqlite")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_positive_ints(section: str, params: dict[str, Any]) -> list[ValidationError]:
        """Every value in the section must be a positive integer."""
        errors = []

        for key, value in params.items():
            if not _is_int(value) or value <= 0:
                errors.append(ValidationError(
                    field=f"{section}.{key}",
                    message="Must be a positive integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_retry_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate retry budget parameters."""
        errors = []

        if "max_retries" in params:
            value = params["max_retries"]
            if not _is_int(value) or value < 0:
                errors.append(ValidationError(
                    field="retry.max_retries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_storage_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate storage backend parameters."""
        errors = []

        backend = params.get("backend")
        if backend is not None and backend not in SUPPORTED_BACKENDS:
            errors.append(ValidationError(
                field="storage.backend",
                message=f"Must be one of {', '.join(SUPPORTED_BACKENDS)}",
                value=backend
            ))

        for key in ("sqlite_path", "key_prefix", "broadcast_counter_key"):
            if key in params:
                value = params[key]
                if not isinstance(value, str) or not value:
                    errors.append(ValidationError(
                        field=f"storage.{key}",
                        message="Must be a non-empty string",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_engine_params(config: dict[str, Any]) -> list[ValidationError]:
        """Validate a merged engine configuration dictionary."""
        errors = []

        for section in ("cache", "limits", "lock"):
            errors.extend(ConfigValidator.validate_positive_ints(section, config.get(section) or {}))

        errors.extend(ConfigValidator.validate_retry_params(config.get("retry") or {}))
        errors.extend(ConfigValidator.validate_storage_params(config.get("storage") or {}))

        return errors
