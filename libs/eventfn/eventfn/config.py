"""
Configuration for eventfn processes.

Settings come from an optional ``eventfn.yaml`` (found by searching up from
the functions source directory, then from the working directory) with
environment variables layered on top.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "eventfn.yaml"

LOG_FORMATS = ("text", "json")

# Settings field -> environment variable
ENV_VARS = {
    "function_target": "EVENTFN_FUNCTION",
    "host": "HOST",
    "port": "PORT",
    "log_level": "EVENTFN_LOG_LEVEL",
    "log_format": "EVENTFN_LOG_FORMAT",
    "failure_message": "EVENTFN_FAILURE_MESSAGE",
    "error_reporting": "EVENTFN_ERROR_REPORTING",
    "service": "K_SERVICE",
    "version": "K_REVISION",
}

# YAML key -> Settings field, where they differ
_YAML_ALIASES = {"function": "function_target"}


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"Invalid boolean value: {value!r}")


def _parse_port(value: Any) -> int:
    text = str(value)
    # Kubernetes service discovery format: tcp://ip:port
    if text.startswith("tcp://"):
        text = text.split(":")[-1]
    try:
        port = int(text)
    except ValueError:
        raise ConfigError(f"Invalid port: {value!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"Port out of range: {port}")
    return port


@dataclass
class Settings:
    """Process-wide settings"""
    function_target: Optional[str] = None  # Only serve this function
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_format: str = "text"
    failure_message: str = "I failed you"  # Body of every HTTP 500
    error_reporting: bool = True
    service: str = "eventfn"
    version: str = "1"

    def __post_init__(self):
        self.port = _parse_port(self.port)
        self.error_reporting = _parse_bool(self.error_reporting)
        self.log_level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"Invalid log level: {self.log_level!r}")
        self.version = str(self.version)
        self.log_format = str(self.log_format).lower()
        if self.log_format not in LOG_FORMATS:
            raise ConfigError(
                f"Invalid log format {self.log_format!r} (expected one of {', '.join(LOG_FORMATS)})"
            )

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Settings":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            field_name = _YAML_ALIASES.get(key, key)
            if field_name not in known:
                raise ConfigError(f"Unknown setting: {key}")
            if value is not None:
                values[field_name] = value
        return cls(**values)


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """
    Find eventfn.yaml by searching up from `start` (default: cwd).

    Returns:
        Path to eventfn.yaml or None if not found
    """
    current = start or Path.cwd()
    for parent in [current] + list(current.parents):
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config_file(path: Optional[str] = None, start: Optional[str] = None) -> Dict[str, Any]:
    """
    Load eventfn.yaml.

    Args:
        path: Explicit path. If not provided, searches up from `start`,
            then from cwd.
        start: Directory to search from first (e.g. the functions source dir)

    Returns:
        Parsed YAML mapping (empty if no file was found)

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ConfigError: If the file is not a YAML mapping
    """
    if path:
        config_path: Optional[Path] = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"{CONFIG_FILENAME} not found at {path}")
    else:
        config_path = find_config_file(Path(start).resolve()) if start else None
        if config_path is None:
            config_path = find_config_file()
        if config_path is None:
            return {}

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} must contain a mapping")
    return data


def load_settings(
    path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    start: Optional[str] = None,
    **overrides: Any,
) -> Settings:
    """
    Resolve settings with priority: overrides > environment > file > defaults.

    `start` is where the eventfn.yaml search begins when no path is given.
    """
    env = os.environ if environ is None else environ

    data = load_config_file(path, start)
    for field_name, env_var in ENV_VARS.items():
        if env.get(env_var):
            data[field_name] = env[env_var]
    for key, value in overrides.items():
        if value is not None:
            data[key] = value

    # Environment keys use field names; normalize YAML aliases first
    for alias, field_name in _YAML_ALIASES.items():
        if alias in data and field_name in data:
            del data[alias]

    return Settings.from_dict(data)
