"""
Configuration for relmap.

Settings are resolved in order of increasing precedence:
1. Defaults
2. YAML config file
3. RELMAP_* environment variables
4. Explicit overrides (CLI options)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from relmap.errors import RelmapError

logger = logging.getLogger(__name__)

SELF_REFERENCE_POLICIES = ("drop", "tag")

ENV_VARS = {
    "mysql_host": "RELMAP_MYSQL_HOST",
    "mysql_port": "RELMAP_MYSQL_PORT",
    "mysql_user": "RELMAP_MYSQL_USER",
    "mysql_password": "RELMAP_MYSQL_PASSWORD",
    "mysql_database": "RELMAP_MYSQL_DATABASE",
}


@dataclass
class Settings:
    """Connection and classification settings."""
    mysql_host: Optional[str] = None
    mysql_port: int = 3306
    mysql_user: Optional[str] = None
    mysql_password: Optional[str] = None
    mysql_database: Optional[str] = None

    connect_timeout: int = 20
    connect_retries: int = 3
    retry_delay: float = 1.0

    self_reference_policy: str = "drop"

    summary_cache_size: int = 256
    summary_cache_ttl: Optional[float] = None

    def __post_init__(self):
        if self.self_reference_policy not in SELF_REFERENCE_POLICIES:
            raise RelmapError(
                f"self_reference_policy must be one of {SELF_REFERENCE_POLICIES}, "
                f"got {self.self_reference_policy!r}"
            )
        self.mysql_port = int(self.mysql_port)
        self.connect_timeout = int(self.connect_timeout)
        self.connect_retries = int(self.connect_retries)
        self.retry_delay = float(self.retry_delay)
        self.summary_cache_size = int(self.summary_cache_size)

    @property
    def keep_self_references(self) -> bool:
        return self.self_reference_policy == "tag"

    @property
    def has_mysql(self) -> bool:
        return bool(self.mysql_host and self.mysql_user and self.mysql_database)

    def merged(self, overrides: Mapping[str, Any]) -> Settings:
        """Return a copy with non-None overrides applied."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in overrides.items():
            if value is None:
                continue
            if key not in values:
                raise RelmapError(f"Unknown setting: {key}")
            values[key] = value
        return Settings(**values)


def _read_config_file(path: Path) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise RelmapError(f"Config file not found: {path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RelmapError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise RelmapError(f"Config file {path} must contain a mapping")

    # Allow the connection block to be nested under `mysql:`
    mysql = data.pop("mysql", None) or {}
    for key, value in mysql.items():
        data[f"mysql_{key}"] = value

    logger.info(f"Loaded settings from {path}")
    return data


def _read_environment(environ: Mapping[str, str]) -> Dict[str, Any]:
    return {
        setting: environ[var]
        for setting, var in ENV_VARS.items()
        if environ.get(var)
    }


def load_settings(
    config_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> Settings:
    """
    Load settings from defaults, an optional YAML file, the environment and overrides.

    Args:
        config_file: Optional YAML config file
        environ: Environment mapping (defaults to os.environ)
        **overrides: Explicit values; None values are ignored

    Returns:
        Settings
    """
    settings = Settings()
    if config_file:
        settings = settings.merged(_read_config_file(config_file))
    settings = settings.merged(_read_environment(os.environ if environ is None else environ))
    return settings.merged(overrides)
