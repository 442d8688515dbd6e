"""
Configuration loading.

Settings come from a YAML or JSON file, then a .env file in the working
directory, then STOREKIT_* environment variables (highest priority).

Example config.yaml:

    database:
      url: sqlite:///data/app.db
      echo: false
    log:
      level: INFO
      dir: logs
      file: true
      console: true
"""

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from sqlalchemy.engine import make_url

ENV_PREFIX = "STOREKIT_"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when configuration cannot be located or parsed."""
    pass


@dataclass
class StoreConfig:
    database_url: str = "sqlite:///data/storekit.db"
    echo: bool = False
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = True
    log_to_console: bool = True

    def safe_dict(self) -> Dict[str, Any]:
        """Config as a dict with any database password masked."""
        data = asdict(self)
        url = make_url(self.database_url)
        if url.password:
            data["database_url"] = url.render_as_string(hide_password=True)
        return data


def load_env(env_path: Optional[Path] = None) -> None:
    """Load .env from the working directory if present. Existing variables win."""
    env_path = env_path or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


def _read_document(path: Path, config_type: str) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            if config_type in ("yaml", "yml"):
                data = yaml.safe_load(f)
            elif config_type == "json":
                data = json.load(f)
            else:
                raise ConfigError(f"unsupported config type '{config_type}'")
    except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"failed to read config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"config section '{name}' must be a mapping")
    return section


def _from_document(data: Dict[str, Any]) -> StoreConfig:
    config = StoreConfig()
    database = _section(data, "database")
    log = _section(data, "log")

    if "url" in database:
        config.database_url = str(database["url"])
    if "echo" in database:
        config.echo = _as_bool(database["echo"])
    if "level" in log:
        config.log_level = str(log["level"]).upper()
    if "dir" in log:
        config.log_dir = str(log["dir"])
    if "file" in log:
        config.log_to_file = _as_bool(log["file"])
    if "console" in log:
        config.log_to_console = _as_bool(log["console"])
    return config


def apply_env_overrides(config: StoreConfig) -> StoreConfig:
    """Override fields from STOREKIT_* environment variables."""
    env = os.environ
    if f"{ENV_PREFIX}DATABASE_URL" in env:
        config.database_url = env[f"{ENV_PREFIX}DATABASE_URL"]
    if f"{ENV_PREFIX}DATABASE_ECHO" in env:
        config.echo = _as_bool(env[f"{ENV_PREFIX}DATABASE_ECHO"])
    if f"{ENV_PREFIX}LOG_LEVEL" in env:
        config.log_level = env[f"{ENV_PREFIX}LOG_LEVEL"].upper()
    if f"{ENV_PREFIX}LOG_DIR" in env:
        config.log_dir = env[f"{ENV_PREFIX}LOG_DIR"]
    return config


def load_config(
    config_path: str = ".",
    config_name: str = "config",
    config_type: str = "yaml",
) -> StoreConfig:
    """
    Load configuration from <config_path>/<config_name>.<config_type>.

    Args:
        config_path: Directory to search
        config_name: File name without extension
        config_type: yaml, yml or json

    Returns:
        StoreConfig with environment overrides applied

    Raises:
        ConfigError: file missing, unreadable, or not a mapping
    """
    path = Path(config_path or ".") / f"{config_name}.{config_type}"
    if not path.exists():
        raise ConfigError(
            f"config file '{config_name}.{config_type}' not found in search paths: {config_path}"
        )

    config = _from_document(_read_document(path, config_type))
    load_env()
    return apply_env_overrides(config)


def config_from_env() -> StoreConfig:
    """Defaults plus .env and STOREKIT_* environment variables."""
    load_env()
    return apply_env_overrides(StoreConfig())
