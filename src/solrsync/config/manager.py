"""Reading, writing and updating the solrsync YAML configuration file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from solrsync.errors import ConfigError

from .models import SolrSyncConfig
from .resolver import deep_merge, env_to_overrides, expand_dotted, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.solrsync/config.yaml")
CONFIG_PATH_ENV = "SOLRSYNC_CONFIG"

_HEADER_LINES = (
    "# solrsync configuration file",
    "# Edit by hand or run `solrsync config set KEY --value VALUE`.",
    "# Environment variables named SOLRSYNC__SECTION__KEY override these values.",
)


@dataclass(frozen=True)
class ConfigUpdate:
    """Outcome of a ``ConfigManager.update`` call.

    Attributes:
        key: Dotted key that was assigned.
        changed: Whether the file contents changed.
        before: File text before the update.
        after: File text after the update (equal to ``before`` when unchanged).
    """

    key: str
    changed: bool
    before: str
    after: str


class ConfigManager:
    """Locate, load and persist the configuration file.

    The file location is, in order of preference, the explicit ``config_path``,
    the ``SOLRSYNC_CONFIG`` environment variable, then ``~/.solrsync/config.yaml``.

    Args:
        config_path: Explicit configuration file.
        env: Environment used for the path lookup and ``SOLRSYNC__`` overrides.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._env = env if env is not None else os.environ
        if config_path is None and self._env.get(CONFIG_PATH_ENV):
            config_path = Path(self._env[CONFIG_PATH_ENV])
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        ensure_file: bool = False,
    ) -> SolrSyncConfig:
        """Build the effective configuration.

        Defaults are overlaid by the file, then ``SOLRSYNC__`` environment
        variables, then ``cli_overrides``.

        Args:
            cli_overrides: Dotted-key overrides supplied on the command line.
            include_env: Whether ``SOLRSYNC__`` environment variables are honoured.
            ensure_file: Write a default configuration file when none exists.

        Returns:
            SolrSyncConfig: The validated configuration.

        Raises:
            ConfigError: If the file is malformed or a value fails validation.
        """
        if ensure_file:
            self.ensure_exists()
        return resolve_with_precedence(
            defaults=SolrSyncConfig(),
            file_overrides=self._read_file(),
            env_overrides=env_to_overrides(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the file (empty when there is no file)."""
        return self._read_file()

    def save(self, config: SolrSyncConfig | Mapping[str, Any]) -> None:
        data = config.model_dump(mode="python") if isinstance(config, SolrSyncConfig) else dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Write a file holding the defaults unless one is already present."""
        if not self._config_path.exists():
            self._write_file(SolrSyncConfig().model_dump(mode="python"))
        return self._config_path

    def read_text(self) -> str:
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def update(self, key: str, value: Any) -> ConfigUpdate:
        """Assign ``value`` to the dotted ``key`` and persist the file if it changed.

        The merged file contents are validated before anything is written.

        Raises:
            ConfigError: If ``key`` is empty or the result fails validation.
        """
        if not key.strip(".").strip():
            raise ConfigError("KEY must specify a dotted path such as 'connection.port'.")

        self.ensure_exists()
        before = self.read_text()
        file_data = self._read_file()
        updated = deep_merge(file_data, expand_dotted({key: value}, source_name="config set"))
        resolve_with_precedence(defaults=SolrSyncConfig(), file_overrides=updated)

        if updated == file_data:
            return ConfigUpdate(key=key, changed=False, before=before, after=before)
        self._write_file(updated)
        return ConfigUpdate(key=key, changed=True, before=before, after=self.read_text())

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}
        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")
        header = "\n".join(_HEADER_LINES + (f"# Last updated: {stamp}",))
        body = yaml.safe_dump(dict(data), sort_keys=False)
        self._config_path.write_text(f"{header}\n{body}", encoding="utf-8")


__all__ = ["CONFIG_PATH_ENV", "ConfigManager", "ConfigUpdate", "DEFAULT_CONFIG_PATH"]
