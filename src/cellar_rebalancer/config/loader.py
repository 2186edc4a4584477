"""Config loader — reads YAML, applies CELLAR_* env var overrides."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from cellar_rebalancer.config.schema import AppConfig
from cellar_rebalancer.errors import ConfigError

# Only this exact value turns dry-run on from the environment.
DRY_RUN_TRUTHY = "TRUE"

_ENV_OVERRIDES = {
    "CELLAR_DATABASE_URL": ("database", "url"),
    "CELLAR_RPC_URL": ("ethereum", "rpc_url"),
    "CELLAR_ETHERSCAN_API_KEY": ("gas_oracle", "api_key"),
    "CELLAR_LOG_LEVEL": ("logging", "level"),
    "CELLAR_LOG_FORMAT": ("logging", "format"),
}


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from a YAML file, then apply env var overrides.

    Unlike most settings the cellar section has no usable defaults (addresses
    and token metadata), so a missing file raises ConfigError.

    Environment variable overrides:
        CELLAR_DATABASE_URL       -> database.url
        CELLAR_RPC_URL            -> ethereum.rpc_url
        CELLAR_ETHERSCAN_API_KEY  -> gas_oracle.api_key
        CELLAR_LOG_LEVEL          -> logging.level
        CELLAR_LOG_FORMAT         -> logging.format
        CELLAR_DRY_RUN            -> cellar.dry_run ("TRUE" enables, anything else disables)
    """
    data: dict = {}
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"config file {p} does not exist")
        try:
            with open(p) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"could not read {p}: {exc}") from exc

    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value:
            data.setdefault(section, {})[key] = value

    dry_run = os.environ.get("CELLAR_DRY_RUN")
    if dry_run is not None:
        data.setdefault("cellar", {})["dry_run"] = dry_run == DRY_RUN_TRUTHY

    try:
        return AppConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
