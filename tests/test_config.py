"""Tests for converter configuration loading."""

import pytest

from tmplconv.config import ConverterConfig, load_config
from tmplconv.core.errors import ConfigError, ErrorCode


class TestConverterConfig:
    """Defaults and validation."""

    def test_defaults(self) -> None:
        config = load_config(env={})

        assert config == ConverterConfig()
        assert config.render_timeout_seconds == 60.0
        assert config.max_output_bytes == 1_000_000
        assert config.log_level == "INFO"

    def test_log_level_is_normalized(self) -> None:
        assert ConverterConfig(log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"render_timeout_seconds": 0},
            {"max_output_bytes": -1},
            {"jsonnet_max_stack": 0},
            {"jsonnet_max_trace": -1},
            {"database_path": ""},
            {"log_level": "LOUD"},
        ],
    )
    def test_invalid_values(self, overrides) -> None:
        with pytest.raises(ConfigError) as exc_info:
            ConverterConfig(**overrides)

        assert exc_info.value.code == ErrorCode.CONFIG_ERROR


class TestLoadConfig:
    """File and environment sources."""

    def test_reads_converter_section(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text(
            "converter:\n"
            "  render_timeout_seconds: 5\n"
            "  database_path: /tmp/templates.sqlite3\n"
            "other:\n"
            "  ignored: true\n"
        )

        config = load_config(path, env={})

        assert config.render_timeout_seconds == 5
        assert config.database_path == "/tmp/templates.sqlite3"
        assert config.max_output_bytes == 1_000_000

    def test_path_from_environment(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("converter:\n  log_level: warning\n")

        config = load_config(env={"TMPLCONV_CONFIG": str(path)})

        assert config.log_level == "WARNING"

    def test_environment_overrides_file(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("converter:\n  max_output_bytes: 10\n  jsonnet_max_stack: 100\n")

        config = load_config(
            path,
            env={"TMPLCONV_MAX_OUTPUT_BYTES": "2048", "TMPLCONV_RENDER_TIMEOUT_SECONDS": "1.5"},
        )

        assert config.max_output_bytes == 2048
        assert config.render_timeout_seconds == 1.5
        assert config.jsonnet_max_stack == 100

    def test_empty_file_uses_defaults(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("")

        assert load_config(path, env={}) == ConverterConfig()

    def test_unparseable_environment_value(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            load_config(env={"TMPLCONV_MAX_OUTPUT_BYTES": "lots"})

        assert exc_info.value.details == {"variable": "TMPLCONV_MAX_OUTPUT_BYTES"}

    def test_unknown_keys_rejected(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("converter:\n  render_timeout: 5\n")

        with pytest.raises(ConfigError, match="render_timeout"):
            load_config(path, env={})

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            load_config(tmp_path / "missing.yml", env={})

    def test_invalid_yaml(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("converter: [unterminated\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path, env={})

    def test_non_mapping_section(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("converter:\n  - a\n")

        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(path, env={})

    def test_wrong_value_shape(self, tmp_path) -> None:
        path = tmp_path / "tmplconv.yml"
        path.write_text("converter:\n  render_timeout_seconds: [1]\n")

        with pytest.raises(ConfigError):
            load_config(path, env={})
