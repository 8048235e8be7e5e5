"""
配置加载测试
"""

import logging
from pathlib import Path

import pytest

from build_log.config import DashboardConfig, config_from_dict, load_config
from build_log.errors import ConfigError


def test_defaults():
    config = DashboardConfig()

    assert config.workspace is None
    assert config.preview_dpi == 150
    assert config.hash_chunk_size == 1024 * 1024
    assert config.artifact_extensions == (".zip", ".json")
    assert config.markdown_patterns == ("README*.md", "BUILD_LOG*.md")


def test_load_explicit_file(tmp_path: Path):
    path = tmp_path / "custom.toml"
    path.write_text(
        '[buildlog]\n'
        f'workspace = "{tmp_path.as_posix()}"\n'
        'preview_dpi = 200\n'
        'artifact_extensions = ["zip", ".img"]\n',
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.workspace == tmp_path
    assert config.preview_dpi == 200
    assert config.artifact_extensions == (".zip", ".img")
    assert config.hash_workers == 4


def test_load_from_current_directory(tmp_path: Path, monkeypatch):
    (tmp_path / "buildlog.toml").write_text("[buildlog]\nhash_workers = 2\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    assert load_config().hash_workers == 2


def test_no_config_file_gives_defaults(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config() == DashboardConfig()


def test_missing_explicit_file(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "missing.toml")


def test_invalid_toml(tmp_path: Path):
    path = tmp_path / "bad.toml"
    path.write_text("[buildlog\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(path)


@pytest.mark.parametrize("data", [
    {"preview_dpi": "high"},
    {"preview_dpi": True},
    {"hash_workers": 0},
    {"markdown_patterns": "README*.md"},
    {"artifact_extensions": [1, 2]},
])
def test_wrong_types_rejected(data):
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_unknown_keys_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        config = config_from_dict({"colour": "blue"})

    assert config == DashboardConfig()
    assert "Ignoring unknown config key: colour" in caplog.text
