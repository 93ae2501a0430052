import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from newsletter.config.models import AppConfig

ENV_PREFIX = "APP_"
ENVIRONMENT_VAR = "APP_ENVIRONMENT"
DEFAULT_ENVIRONMENT = "local"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML syntax in config file {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping at top level")
    return data


def _deep_merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """
    Turn APP_<SECTION>__<KEY>=value variables into a nested mapping.

    e.g. APP_APPLICATION__PORT=5001 -> {"application": {"port": "5001"}}
    """
    overrides: dict[str, Any] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX) or name == ENVIRONMENT_VAR:
            continue
        path = [part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part]
        if len(path) < 2:
            continue
        node = overrides
        for part in path[:-1]:
            node = node.setdefault(part, {})
        node[path[-1]] = value
    return overrides


def _resolve_paths(config: AppConfig, config_dir: Path) -> AppConfig:
    """Relative migrations_dir values are taken from the config directory."""
    migrations_dir = Path(config.database.migrations_dir)
    if migrations_dir.is_absolute():
        return config
    resolved = str((config_dir / migrations_dir).resolve())
    database = config.database.model_copy(update={"migrations_dir": resolved})
    return config.model_copy(update={"database": database})


def load_config(
    config_dir: Path,
    environment: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """
    Load configuration: base.yaml, then <environment>.yaml, then env vars.

    A relative database.migrations_dir is resolved against config_dir.

    Raises FileNotFoundError if base.yaml is missing.
    Raises ValueError on bad YAML or schema errors.
    """
    env = os.environ if environ is None else environ
    environment = environment or env.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)

    base_path = config_dir / "base.yaml"
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found at: {base_path}")

    data = _read_yaml(base_path)
    env_path = config_dir / f"{environment.lower()}.yaml"
    if env_path.exists():
        data = _deep_merge(data, _read_yaml(env_path))
    data = _deep_merge(data, _env_overrides(env))

    try:
        config = AppConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Config validation failed:\n{e}") from e
    return _resolve_paths(config, config_dir)
