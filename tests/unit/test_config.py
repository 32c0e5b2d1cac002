"""Unit tests for configuration management."""

import pytest
from pathlib import Path

import yaml

from repo_lifecycle.config.defaults import get_default_config
from repo_lifecycle.config.loader import ConfigLoader, build_config, load_engine_config
from repo_lifecycle.config.validation import ConfigValidator
from repo_lifecycle.errors import ConfigurationError


def _write_yaml(directory: Path, data) -> None:
    (directory / "engine.yaml").write_text(yaml.safe_dump(data))


class TestDefaultConfig:
    """Test suite for default configuration."""

    def test_default_config_creation(self) -> None:
        """Test the built-in defaults."""
        config = get_default_config()
        assert config.cache.state_table_ttl == 300
        assert config.cache.event_log_ttl == 86400
        assert config.limits.event_log_limit == 30
        assert config.limits.broadcast_limit == 100
        assert config.lock.default_ttl == 60
        assert config.retry.max_retries == 3
        assert config.storage.backend == "memory"
        assert config.storage.broadcast_counter_key == "sbi_broadcast_last_id"

    def test_protection_defaults(self) -> None:
        protection = get_default_config().protection
        assert "kiss-smart-batch-installer" in protection.name_fragments
        assert protection.code_name_fragment == "mkii"


class TestConfigLoader:
    """Test suite for configuration loader."""

    def test_config_loader_creation(self) -> None:
        """Test that ConfigLoader points at the bundled config directory."""
        loader = ConfigLoader.create()
        assert isinstance(loader.config_dir, Path)
        assert loader.config_dir.name == "config"

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        config = ConfigLoader.create(tmp_path).merge_config()

        assert config["cache"]["state_table_ttl"] == 300
        assert config["protection"]["name_fragments"][0] == "kiss-smart-batch-installer"

    def test_file_overrides_defaults(self, tmp_path) -> None:
        _write_yaml(tmp_path, {"cache": {"state_table_ttl": 600}})

        config = ConfigLoader.create(tmp_path).merge_config()

        assert config["cache"]["state_table_ttl"] == 600
        assert config["cache"]["event_log_ttl"] == 86400

    def test_call_site_overrides_win(self, tmp_path) -> None:
        _write_yaml(tmp_path, {"lock": {"default_ttl": 120}})

        config = ConfigLoader.create(tmp_path).merge_config({"lock": {"default_ttl": 30}})

        assert config["lock"]["default_ttl"] == 30

    def test_empty_file(self, tmp_path) -> None:
        (tmp_path / "engine.yaml").write_text("")

        assert ConfigLoader.create(tmp_path).load_file_config() == {}

    def test_bundled_file_matches_defaults(self) -> None:
        """The shipped engine.yaml only restates defaults."""
        assert load_engine_config() == get_default_config()


class TestBuildConfig:
    """Test typed configuration construction."""

    def test_unknown_keys_ignored(self) -> None:
        config = build_config({"limits": {"event_log_limit": 5, "bogus": 1}, "extra": {}})

        assert config.limits.event_log_limit == 5

    def test_retry_section_only_carries_budget(self, tmp_path) -> None:
        _write_yaml(tmp_path, {"retry": {"max_retries": 5, "retry_delay_seconds": 9}})

        config = load_engine_config(tmp_path)

        assert config.retry.max_retries == 5
        assert not hasattr(config.retry, "retry_delay_seconds")

    def test_lists_become_tuples(self) -> None:
        config = build_config({"protection": {"name_fragments": ["my-manager"]}})

        assert config.protection.name_fragments == ("my-manager",)

    def test_load_engine_config_overrides(self, tmp_path) -> None:
        config = load_engine_config(tmp_path, {"storage": {"backend": "sqlite"}})

        assert config.storage.backend == "sqlite"


class TestConfigValidator:
    """Test suite for configuration validation."""

    def test_valid_defaults(self) -> None:
        merged = ConfigLoader.create().merge_config()
        assert ConfigValidator.validate_engine_params(merged) == []

    @pytest.mark.parametrize("value", [0, -5, "60", 1.5, True])
    def test_positive_ints(self, value) -> None:
        errors = ConfigValidator.validate_positive_ints("lock", {"default_ttl": value})

        assert len(errors) == 1
        assert errors[0].field == "lock.default_ttl"
        assert errors[0].value == value

    def test_retry_allows_zero(self) -> None:
        assert ConfigValidator.validate_retry_params({"max_retries": 0}) == []
        assert len(ConfigValidator.validate_retry_params({"max_retries": -1})) == 1

    def test_unsupported_backend(self) -> None:
        errors = ConfigValidator.validate_storage_params({"backend": "redis"})

        assert [e.field for e in errors] == ["storage.backend"]

    def test_empty_prefix(self) -> None:
        errors = ConfigValidator.validate_storage_params({"key_prefix": ""})

        assert [e.field for e in errors] == ["storage.key_prefix"]

    def test_invalid_config_raises(self, tmp_path) -> None:
        _write_yaml(tmp_path, {"limits": {"broadcast_limit": 0}})

        with pytest.raises(ConfigurationError) as exc_info:
            load_engine_config(tmp_path)

        assert exc_info.value.field == "limits.broadcast_limit"
        assert exc_info.value.recoverable is False
