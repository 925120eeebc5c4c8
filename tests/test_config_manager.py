"""Unit tests for configuration management."""

from pathlib import Path

import pytest

from solrsync.config import (
    ConfigError,
    ConfigManager,
    SolrSyncConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from solrsync.config.resolver import env_to_overrides


def _fresh_manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, **env: str) -> ConfigManager:
    monkeypatch.setenv("HOME", str(tmp_path))
    return ConfigManager(env=env)


def test_ensure_exists_creates_default_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)

    path = manager.ensure_exists()

    assert path == tmp_path / ".solrsync" / "config.yaml"
    text = path.read_text(encoding="utf-8")
    assert "solrsync configuration file" in text
    assert "Last updated:" in text

    config = manager.load(include_env=False)
    assert isinstance(config, SolrSyncConfig)
    assert config.connection.base_url == "http://127.0.0.1:8982/solr"


def test_load_applies_file_env_then_cli(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(
        tmp_path,
        monkeypatch,
        SOLRSYNC__CONNECTION__PORT="9000",
        SOLRSYNC__INDEXING__AUTO_INDEX="false",
    )
    manager.save({"connection": {"host": "search.internal", "port": 8983}})

    config = manager.load(cli_overrides={"connection.port": 9100})

    assert config.connection.host == "search.internal"
    # CLI overrides take precedence over environment
    assert config.connection.port == 9100
    assert config.indexing.auto_index is False


def test_env_overrides_parse_yaml_scalars() -> None:
    overrides = env_to_overrides(
        {
            "SOLRSYNC__CONNECTION__TIMEOUT_SECONDS": "2.5",
            "SOLRSYNC__QUERY__DEFAULT_OPERATOR": "OR",
            "UNRELATED": "ignored",
        }
    )

    assert overrides == {
        "connection": {"timeout_seconds": 2.5},
        "query": {"default_operator": "OR"},
    }


def test_invalid_yaml_raises_config_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    manager = _fresh_manager(tmp_path, monkeypatch)
    manager.ensure_exists()

    manager.config_path.write_text("- not-a-mapping", encoding="utf-8")

    with pytest.raises(ConfigError):
        manager.load()


def test_flatten_for_env_renders_defaults() -> None:
    flat = flatten_for_env(SolrSyncConfig())

    assert flat["SOLRSYNC__CONNECTION__PORT"] == "8982"
    assert flat["SOLRSYNC__CONNECTION__AUTO_COMMIT"] == "true"
    assert flat["SOLRSYNC__QUERY__DEFAULT_SEARCH_FIELD"] == "q"


def test_resolve_with_precedence_invalid_value_raises() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=SolrSyncConfig(),
            file_overrides={"connection": {"port": "not-a-port"}},
        )


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ConfigError):
        resolve_with_precedence(
            defaults=SolrSyncConfig(),
            cli_overrides={"connection.hostname": "typo"},
        )


def test_config_path_can_come_from_environment(tmp_path: Path) -> None:
    target = tmp_path / "elsewhere.yaml"

    manager = ConfigManager(env={"SOLRSYNC_CONFIG": str(target)})

    assert manager.config_path == target
    assert ConfigManager(tmp_path / "explicit.yaml", env={"SOLRSYNC_CONFIG": str(target)}).config_path == (
        tmp_path / "explicit.yaml"
    )


def test_update_writes_only_when_value_changes(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "config.yaml", env={})

    first = manager.update("indexing.reindex_batch_size", 250)
    second = manager.update("indexing.reindex_batch_size", 250)

    assert first.changed is True
    assert "reindex_batch_size: 250" in first.after
    assert second.changed is False
    assert second.after == second.before
    assert manager.load().indexing.reindex_batch_size == 250


def test_update_validates_before_writing(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "config.yaml", env={})
    manager.ensure_exists()
    original = manager.read_text()

    with pytest.raises(ConfigError):
        manager.update("indexing.reindex_batch_size", 0)
    with pytest.raises(ConfigError):
        manager.update("..", 1)

    assert manager.read_text() == original
