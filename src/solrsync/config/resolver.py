"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Dict, Iterable, Mapping, Tuple

import yaml
from pydantic import ValidationError

from solrsync.errors import ConfigError

from .models import SolrSyncConfig

ENV_PREFIX = "SOLRSYNC__"


def resolve_with_precedence(
    *,
    defaults: SolrSyncConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> SolrSyncConfig:
    """Layer override sources over ``defaults`` and validate the result.

    Sources are applied in order file, environment, CLI; a later source wins
    for any key it sets. Keys may be nested mappings or dotted paths
    (``connection.port``).

    Args:
        defaults: Baseline configuration.
        file_overrides: Values read from the YAML configuration file.
        env_overrides: Values parsed from ``SOLRSYNC__`` environment variables.
        cli_overrides: Values supplied on the command line.

    Returns:
        SolrSyncConfig: Validated configuration.

    Raises:
        ConfigError: If an override source is malformed or a value fails validation.
    """
    layers: Iterable[Tuple[str, Mapping[str, Any] | None]] = (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    )
    merged = defaults.model_dump(mode="python")
    for source_name, source in layers:
        if source is None:
            continue
        merged = deep_merge(merged, expand_dotted(source, source_name=source_name))

    try:
        return SolrSyncConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def env_to_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect ``SOLRSYNC__SECTION__KEY`` variables into a nested override mapping.

    Values are parsed as YAML scalars so ``"8983"`` becomes ``8983`` and
    ``"false"`` becomes ``False``; unparsable values are kept as strings.
    """
    overrides: dict[str, Any] = {}
    for key, raw_value in env.items():
        if not key.startswith(ENV_PREFIX):
            continue
        segments = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
        if not segments:
            continue
        try:
            value = yaml.safe_load(raw_value)
        except yaml.YAMLError:
            value = raw_value
        _assign(overrides, segments, value, source_name="environment")
    return overrides


def flatten_for_env(config: SolrSyncConfig) -> Dict[str, str]:
    """Render ``config`` as ``SOLRSYNC__SECTION__KEY`` environment variable mappings."""
    flat: Dict[str, str] = {}
    stack: list[tuple[list[str], Any]] = [([key], value) for key, value in config.model_dump().items()]
    while stack:
        path, value = stack.pop()
        if isinstance(value, dict):
            stack.extend((path + [str(key)], child) for key, child in value.items())
            continue
        if isinstance(value, list):
            rendered = yaml.safe_dump(value, default_flow_style=True).strip()
        elif value is None:
            rendered = "null"
        elif isinstance(value, bool):
            rendered = "true" if value else "false"
        else:
            rendered = str(value)
        flat[ENV_PREFIX + "__".join(part.upper() for part in path)] = rendered
    return dict(sorted(flat.items()))


def expand_dotted(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    """Return ``source`` with dotted keys expanded into nested mappings."""
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{source_name.capitalize()} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in source.items():
        if not isinstance(key, str):
            raise ConfigError(f"{source_name.capitalize()} override keys must be strings.")
        if isinstance(value, MappingABC):
            value = expand_dotted(value, source_name=source_name)
        _assign(result, key.split("."), value, source_name=source_name)
    return result


def _assign(target: dict[str, Any], path: list[str], value: Any, *, source_name: str) -> None:
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with an existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, dict) and isinstance(node.get(leaf), dict):
        node[leaf] = deep_merge(node[leaf], value)
    else:
        node[leaf] = value


def deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``base`` with ``overrides`` merged in recursively."""
    merged = deepcopy(dict(base))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = [
    "resolve_with_precedence",
    "flatten_for_env",
    "env_to_overrides",
    "expand_dotted",
    "deep_merge",
    "ENV_PREFIX",
]
