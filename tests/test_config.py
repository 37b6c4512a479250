"""Tests for configuration loading."""

import pytest
from pathlib import Path
from pydantic import ValidationError
from jsxdoctor.config import Config, DEFAULT_EXTENSIONS, DEFAULT_IGNORED_DIRS, REPORT_FILENAME


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "ROOT",
        "OUTPUT",
        "EXTENSIONS",
        "IGNORED_DIRS",
        "RESPECT_GITIGNORE",
        "MAX_FILE_SIZE",
        "MAX_FIX_PASSES",
        "DISABLED_RULES",
        "JOBS",
    ):
        monkeypatch.delenv(f"JSX_DOCTOR_{name}", raising=False)


def test_config_defaults():
    config = Config.from_env()

    assert config.root == Path(".")
    assert not config.fix
    assert config.extensions == DEFAULT_EXTENSIONS
    assert config.ignored_dirs == DEFAULT_IGNORED_DIRS
    assert config.respect_gitignore
    assert config.max_fix_passes == 4
    assert config.jobs == 1
    assert config.disabled_rules == []


def test_config_from_env_overrides(monkeypatch, tmp_path):
    """Environment variables should override defaults."""
    monkeypatch.setenv("JSX_DOCTOR_ROOT", str(tmp_path))
    monkeypatch.setenv("JSX_DOCTOR_MAX_FILE_SIZE", "2048")
    monkeypatch.setenv("JSX_DOCTOR_OUTPUT", str(tmp_path / "reports" / "jsx.json"))
    monkeypatch.setenv("JSX_DOCTOR_IGNORED_DIRS", "storybook-static, .turbo")
    monkeypatch.setenv("JSX_DOCTOR_EXTENSIONS", ".jsx,.js")
    monkeypatch.setenv("JSX_DOCTOR_RESPECT_GITIGNORE", "false")
    monkeypatch.setenv("JSX_DOCTOR_JOBS", "4")

    config = Config.from_env()

    assert config.root == tmp_path
    assert config.max_file_size == 2048
    assert config.report_path == tmp_path / "reports" / "jsx.json"
    assert config.extensions == [".jsx", ".js"]
    assert not config.respect_gitignore
    assert config.jobs == 4

    # Ensure new ignored directories are appended to defaults
    assert set(DEFAULT_IGNORED_DIRS).issubset(set(config.ignored_dirs))
    assert "storybook-static" in config.ignored_dirs
    assert ".turbo" in config.ignored_dirs


def test_config_bad_integers_fall_back(monkeypatch):
    monkeypatch.setenv("JSX_DOCTOR_MAX_FILE_SIZE", "lots")
    monkeypatch.setenv("JSX_DOCTOR_MAX_FIX_PASSES", "0")
    monkeypatch.setenv("JSX_DOCTOR_JOBS", "-3")

    config = Config.from_env()

    assert config.max_file_size == 1_000_000
    assert config.max_fix_passes == 1
    assert config.jobs == 1


def test_keyword_overrides_win(monkeypatch, tmp_path):
    monkeypatch.setenv("JSX_DOCTOR_JOBS", "8")
    monkeypatch.setenv("JSX_DOCTOR_DISABLED_RULES", "inline-function")

    config = Config.from_env(root=tmp_path, fix=True, jobs=None, disabled_rules=["props-spreading", "inline-function"])

    assert config.root == tmp_path
    assert config.fix
    assert config.jobs == 8  # None leaves the environment value alone
    assert config.disabled_rules == ["inline-function", "props-spreading"]


def test_report_path_defaults_to_root(tmp_path):
    assert Config(root=tmp_path).report_path == tmp_path / REPORT_FILENAME


def test_invalid_values_are_rejected(tmp_path):
    with pytest.raises(ValidationError):
        Config(root=tmp_path, jobs=0)
    with pytest.raises(ValidationError):
        Config(root=tmp_path, max_fix_passes=0)
