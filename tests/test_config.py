# ============================================================================
# test_config.py -- Tests for configuration loading and validation
# ============================================================================
#
# COVERS:
#   TestLoadConfig        -- defaults, YAML overrides, typo warnings
#   TestEnvOverrides      -- CLOUDSHIFT_* variables beat YAML
#   TestValidateConfig    -- every rejected combination
#   TestBuildRunSettings  -- frozen, normalized RunSettings
#
# RUN:
#   python -m pytest tests/test_config.py -v
#
# INTERNET ACCESS: NONE
# ============================================================================

import dataclasses
import os

import pytest

from cloudshift.core.config import (
    DEFAULT_SKIP_NAMES,
    Config,
    PathsConfig,
    build_run_settings,
    load_config,
    validate_config,
)
from cloudshift.core.exceptions import ConfigurationError
from cloudshift.core.models import DehydrateMode


def _write_yaml(project_dir, text, name="default_config.yaml"):
    cfg_dir = project_dir / "config"
    cfg_dir.mkdir(exist_ok=True)
    (cfg_dir / name).write_text(text, encoding="utf-8")


def _valid_config(tmp_path):
    config = Config()
    config.paths.source_root = str(tmp_path / "old")
    config.paths.dest_root = str(tmp_path / "new")
    return config


class TestLoadConfig:

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(str(tmp_path))
        assert config.paths.source_root == ""
        assert config.migration.dehydrate_mode == "hydrated-only"
        assert config.migration.max_path_length == 260
        assert config.migration.hydrate_timeout_seconds == 1800
        assert config.migration.copy_buffer_bytes == 4 * 1024 * 1024
        assert config.migration.skip_names == DEFAULT_SKIP_NAMES
        assert config.logging.log_dir == "logs"

    def test_yaml_overrides_defaults(self, tmp_path):
        _write_yaml(tmp_path, (
            "paths:\n"
            "  source_root: /data/old\n"
            "migration:\n"
            "  dehydrate_mode: all\n"
            "  max_path_length: 400\n"
            "logging:\n"
            "  console_level: INFO\n"
        ))
        config = load_config(str(tmp_path))
        assert config.paths.source_root.endswith("old")
        assert config.migration.dehydrate_mode == "all"
        assert config.migration.max_path_length == 400
        assert config.logging.console_level == "INFO"
        # Untouched sections keep defaults
        assert config.migration.poll_max_seconds == 2.0

    def test_alternate_file_name(self, tmp_path):
        _write_yaml(tmp_path, "migration:\n  dehydrate_mode: none\n", name="laptop.yaml")
        assert load_config(str(tmp_path), "laptop.yaml").migration.dehydrate_mode == "none"

    def test_unknown_key_warns_with_suggestion(self, tmp_path, capsys):
        """
        WHAT: A typo'd YAML key is ignored with a loud [WARN] on stderr.
        WHY:  A silently ignored "timeout: 60" would leave the 30-minute
              default in place and nobody would know why.
        """
        _write_yaml(tmp_path, "migration:\n  hydrate_timeout: 60\n")
        config = load_config(str(tmp_path))
        err = capsys.readouterr().err
        assert "[WARN]" in err
        assert "hydrate_timeout" in err
        assert "hydrate_timeout_seconds" in err
        assert config.migration.hydrate_timeout_seconds == 1800

    def test_empty_yaml_file_is_defaults(self, tmp_path):
        _write_yaml(tmp_path, "")
        assert load_config(str(tmp_path)).migration.dehydrate_mode == "hydrated-only"


class TestEnvOverrides:

    def test_env_roots_beat_yaml(self, tmp_path, monkeypatch):
        _write_yaml(tmp_path, "paths:\n  source_root: /yaml/old\n  dest_root: /yaml/new\n")
        monkeypatch.setenv("CLOUDSHIFT_SOURCE_ROOT", "/env/old")
        config = load_config(str(tmp_path))
        assert "env" in config.paths.source_root
        assert "yaml" in config.paths.dest_root

    def test_env_mode_and_timeout(self, monkeypatch):
        monkeypatch.setenv("CLOUDSHIFT_DEHYDRATE_MODE", " all ")
        monkeypatch.setenv("CLOUDSHIFT_HYDRATE_TIMEOUT", "90")
        config = Config()
        assert config.migration.dehydrate_mode == "all"
        assert config.migration.hydrate_timeout_seconds == 90.0

    def test_user_home_is_expanded(self, monkeypatch):
        monkeypatch.setenv("HOME", "/home/tester")
        monkeypatch.setenv("USERPROFILE", "/home/tester")
        expected = os.path.normpath("/home/tester/OneDrive")
        assert PathsConfig(source_root="~/OneDrive").source_root == expected


class TestValidateConfig:

    def test_valid_config_has_no_problems(self, tmp_path):
        assert validate_config(_valid_config(tmp_path)) == []

    def test_empty_roots(self):
        problems = validate_config(Config())
        assert any("source_root is empty" in p for p in problems)
        assert any("dest_root is empty" in p for p in problems)

    def test_relative_roots(self, tmp_path):
        config = _valid_config(tmp_path)
        config.paths.dest_root = "relative/dir"
        assert any("must be absolute" in p for p in validate_config(config))

    @pytest.mark.parametrize("dest_suffix", ["", "Imported", "Sub/Imported"])
    def test_dest_inside_source_is_rejected(self, tmp_path, dest_suffix):
        config = _valid_config(tmp_path)
        config.paths.dest_root = str(tmp_path / "old" / dest_suffix)
        assert any("nested" in p for p in validate_config(config))

    def test_source_inside_dest_is_rejected(self, tmp_path):
        config = _valid_config(tmp_path)
        config.paths.source_root = str(tmp_path / "new" / "legacy")
        assert any("nested" in p for p in validate_config(config))

    def test_sibling_with_common_prefix_is_fine(self, tmp_path):
        """'OneDrive' and 'OneDrive - New' share a prefix but are not nested."""
        config = Config()
        config.paths.source_root = str(tmp_path / "OneDrive")
        config.paths.dest_root = str(tmp_path / "OneDrive - New")
        assert validate_config(config) == []

    def test_bad_mode(self, tmp_path):
        config = _valid_config(tmp_path)
        config.migration.dehydrate_mode = "sometimes"
        assert len(validate_config(config)) == 1

    @pytest.mark.parametrize("field_name,value", [
        ("max_path_length", 0),
        ("hydrate_timeout_seconds", 0),
        ("hydrate_timeout_seconds", -5),
        ("poll_initial_seconds", 0),
        ("copy_buffer_bytes", 0),
    ])
    def test_non_positive_numbers(self, tmp_path, field_name, value):
        config = _valid_config(tmp_path)
        setattr(config.migration, field_name, value)
        assert len(validate_config(config)) == 1

    def test_initial_poll_above_max(self, tmp_path):
        config = _valid_config(tmp_path)
        config.migration.poll_initial_seconds = 5.0
        config.migration.poll_max_seconds = 2.0
        assert any("must not exceed" in p for p in validate_config(config))

    def test_non_numeric_env_timeout_is_a_problem_not_a_crash(self, tmp_path, monkeypatch):
        """
        WHAT: CLOUDSHIFT_HYDRATE_TIMEOUT=30m loads, then fails validation.
        WHY:  A typo in an env var must end in a clear config message
              (exit code 2), not a Python traceback.
        """
        monkeypatch.setenv("CLOUDSHIFT_HYDRATE_TIMEOUT", "30m")
        config = load_config(str(tmp_path))
        config.paths.source_root = str(tmp_path / "old")
        config.paths.dest_root = str(tmp_path / "new")

        problems = validate_config(config)

        assert len(problems) == 1
        assert "hydrate_timeout_seconds must be a number" in problems[0]
        assert "30m" in problems[0]
        with pytest.raises(ConfigurationError):
            build_run_settings(config)

    def test_non_numeric_yaml_value_is_a_problem(self, tmp_path):
        _write_yaml(tmp_path, "migration:\n  max_path_length: 'long'\n")
        config = load_config(str(tmp_path))
        config.paths.source_root = str(tmp_path / "old")
        config.paths.dest_root = str(tmp_path / "new")
        assert validate_config(config) == ["migration.max_path_length must be a number: 'long'"]


class TestBuildRunSettings:

    def test_builds_frozen_settings(self, tmp_path):
        config = _valid_config(tmp_path)
        config.migration.dehydrate_mode = "ALL"
        config.migration.skip_names = ["Desktop.INI", "Thumbs.db"]

        settings = build_run_settings(config)

        assert settings.dehydrate_mode is DehydrateMode.ALL
        assert settings.skip_names == frozenset({"desktop.ini", "thumbs.db"})
        assert settings.source_root == str(tmp_path / "old")
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.dest_root = "/elsewhere"

    def test_invalid_config_raises_with_all_problems(self):
        with pytest.raises(ConfigurationError) as exc:
            build_run_settings(Config())
        assert exc.value.error_code == "CFG-001"
        assert len(exc.value.problems) == 2
        assert "source_root" in str(exc.value)
