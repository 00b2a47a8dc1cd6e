"""Configuration: YAML/JSON file <- env vars <- CLI overrides (highest priority)."""

import logging
import os
from dataclasses import dataclass

import yaml

from log_notifier.errors import ConfigError
from log_notifier.models import WatchTarget

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# field name -> (file key, env var)
_KEYS = {
    "container_name": ("containerName", "CONTAINER_NAME"),
    "webhook_url": ("webhookUrl", "WEBHOOK_URL"),
    "log_dir": ("logDir", "LOG_DIR"),
    "log_file": ("logFile", "LOG_FILE"),
    "working_dir": ("workingDir", "WORKING_DIR"),
    "webhook_username": ("webhookUsername", "WEBHOOK_USERNAME"),
    "request_timeout": ("requestTimeout", "REQUEST_TIMEOUT"),
    "delivery_attempts": ("deliveryAttempts", "DELIVERY_ATTEMPTS"),
    "log_level": ("logLevel", "LOG_LEVEL"),
}

REQUIRED = ("container_name", "webhook_url", "log_dir")


@dataclass(frozen=True)
class Config:
    container_name: str
    webhook_url: str
    log_dir: str
    log_file: str = "access.log"
    working_dir: str = "/var/log/caddy/"
    webhook_username: str | None = None
    request_timeout: float = 10.0
    delivery_attempts: int = 1
    log_level: str = "INFO"

    def watch_target(self, container_id: str) -> WatchTarget:
        return WatchTarget(
            path=self.log_dir,
            container_id=container_id,
            webhook_url=self.webhook_url,
            log_file=self.log_file,
            working_dir=self.working_dir,
        )


def load_yaml_config(path: str) -> dict:
    """Load the config file at *path*. JSON files are valid YAML."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning("Config file %s not found, using environment only", path)
        return {}
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    logger.info("Loaded config from %s", path)
    return data


def _to_float(name: str, value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be a number, got {value!r}") from e


def _to_int(name: str, value) -> int:
    if isinstance(value, float) and not value.is_integer():
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def load_config(file_data: dict, overrides: dict | None = None) -> Config:
    """Build Config from parsed file data, env vars and CLI overrides."""
    raw: dict = {}
    for name, (file_key, env_var) in _KEYS.items():
        if file_data.get(file_key) is not None:
            raw[name] = file_data[file_key]
        if os.environ.get(env_var):
            raw[name] = os.environ[env_var]
    for name, value in (overrides or {}).items():
        if value is not None:
            raw[name] = value

    missing = [_KEYS[name][0] for name in REQUIRED if not raw.get(name)]
    if missing:
        raise ConfigError(f"Missing required config key(s): {', '.join(missing)}")

    for name in REQUIRED + ("log_file", "working_dir", "webhook_username"):
        if name in raw and not isinstance(raw[name], str):
            raise ConfigError(f"{_KEYS[name][0]} must be a string")

    if "request_timeout" in raw:
        raw["request_timeout"] = _to_float("requestTimeout", raw["request_timeout"])
        if raw["request_timeout"] <= 0:
            raise ConfigError("requestTimeout must be positive")
    if "delivery_attempts" in raw:
        raw["delivery_attempts"] = _to_int("deliveryAttempts", raw["delivery_attempts"])
        if raw["delivery_attempts"] < 1:
            raise ConfigError("deliveryAttempts must be at least 1")
    if "log_level" in raw:
        raw["log_level"] = str(raw["log_level"]).upper()
        if raw["log_level"] not in LOG_LEVELS:
            raise ConfigError(f"logLevel must be one of {', '.join(LOG_LEVELS)}")

    return Config(**raw)
