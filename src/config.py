"""OVH Diagnostic Bot — Configuration Loader.

Loads and validates application configuration from YAML files.
Resolves environment variables referenced via ${VAR_NAME} syntax.
Uses Python dataclasses for type-safe configuration access.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Path Constants ────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
SETTINGS_PATH = CONFIG_DIR / "settings.yaml"

# ── Environment Variable Pattern ─────────────────────────
ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)}")


# ═══════════════════════════════════════════════════════════
# Configuration Dataclasses
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class OvhConfig:
    """Credentials and endpoint of the OVH API application."""

    endpoint: str
    application_key: str
    application_secret: str
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class MessengerConfig:
    """Configuration for the Facebook Messenger Send API."""

    page_access_token: str
    graph_url: str = "https://graph.facebook.com/v2.6/me/messages"
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class SlackConfig:
    """Configuration for Slack delivery (bot tokens live in the team store)."""

    timeout_seconds: int = 30


@dataclass(frozen=True)
class SchedulerConfig:
    """Cron schedules of the two periodic scans."""

    status_hours: str = "*/2"
    status_minute: int = 0
    expires_hour: int = 2
    expires_minute: int = 0
    run_on_start: bool = False


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration container."""

    ovh: OvhConfig
    messenger: MessengerConfig
    slack: SlackConfig
    scheduler: SchedulerConfig
    database_path: str
    log_level: str
    default_locale: str = "fr_FR"
    hosting_probe_timeout_seconds: float = 10.0


# ═══════════════════════════════════════════════════════════
# YAML Loading & Environment Variable Resolution
# ═══════════════════════════════════════════════════════════


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${VAR_NAME} references in YAML values.

    Args:
        value: A string, dict, list, or primitive from parsed YAML.

    Returns:
        The same structure with all ${VAR_NAME} placeholders replaced
        by their environment variable values.

    Raises:
        ValueError: If a referenced environment variable is not set.
    """
    if isinstance(value, str):
        for var_name in ENV_VAR_PATTERN.findall(value):
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(
                    f"Environment variable '${{{var_name}}}' is required but not set. "
                    f"Add it to your .env file or export it in your shell."
                )
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file with UTF-8 encoding.

    Raises:
        FileNotFoundError: If the YAML file does not exist.
        ValueError: If the file is empty.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        raise ValueError(f"Configuration file is empty: {path}")

    logger.debug("Loaded configuration from %s", path)
    return data


# ═══════════════════════════════════════════════════════════
# Dataclass Builders
# ═══════════════════════════════════════════════════════════


def _build_ovh_config(data: dict[str, Any]) -> OvhConfig:
    """Build an OvhConfig from the 'ovh' section of settings.yaml."""
    _validate_keys(data, ["endpoint", "application_key", "application_secret"], "ovh")

    return OvhConfig(
        endpoint=data["endpoint"],
        application_key=data["application_key"],
        application_secret=data["application_secret"],
        timeout_seconds=float(data.get("timeout_seconds", 30)),
    )


def _build_messenger_config(data: dict[str, Any]) -> MessengerConfig:
    """Build a MessengerConfig from the 'messenger' section of settings.yaml."""
    _validate_keys(data, ["page_access_token"], "messenger")

    return MessengerConfig(
        page_access_token=data["page_access_token"],
        graph_url=data.get("graph_url", MessengerConfig.graph_url),
        timeout_seconds=float(data.get("timeout_seconds", 10)),
    )


def _build_scheduler_config(data: dict[str, Any]) -> SchedulerConfig:
    """Build a SchedulerConfig from the 'scheduler' section of settings.yaml.

    Raises:
        ValueError: If an hour or minute is out of range.
    """
    config = SchedulerConfig(
        status_hours=str(data.get("status_hours", "*/2")),
        status_minute=int(data.get("status_minute", 0)),
        expires_hour=int(data.get("expires_hour", 2)),
        expires_minute=int(data.get("expires_minute", 0)),
        run_on_start=bool(data.get("run_on_start", False)),
    )

    if not 0 <= config.expires_hour <= 23:
        raise ValueError(f"scheduler.expires_hour must be 0-23, got {config.expires_hour}")
    for name in ("status_minute", "expires_minute"):
        minute = getattr(config, name)
        if not 0 <= minute <= 59:
            raise ValueError(f"scheduler.{name} must be 0-59, got {minute}")

    return config


def _validate_keys(data: dict[str, Any], required: list[str], section: str) -> None:
    """Validate that all required keys exist in a config section.

    Raises:
        ValueError: If any required key is missing.
    """
    missing = [key for key in required if key not in data]
    if missing:
        raise ValueError(
            f"Missing required configuration keys in '{section}': {', '.join(missing)}"
        )


# ═══════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════


def load_config(
    settings_path: Path | None = None,
    env_path: Path | None = None,
) -> AppConfig:
    """Load the complete application configuration.

    Loads settings.yaml, resolves environment variables, validates all
    required fields, and returns a typed AppConfig instance.

    Args:
        settings_path: Override path to settings.yaml. Defaults to config/settings.yaml.
        env_path: Override path to .env file. Defaults to project root .env.

    Returns:
        A fully validated AppConfig instance.

    Raises:
        FileNotFoundError: If the settings file is missing.
        ValueError: If required fields are missing or env vars are unset.
    """
    env_file = env_path or (PROJECT_ROOT / ".env")
    load_dotenv(env_file)
    logger.debug("Loaded environment from %s", env_file)

    settings = _resolve_env_vars(_load_yaml(settings_path or SETTINGS_PATH))

    _validate_keys(settings, ["ovh", "messenger", "database", "logging"], "settings")

    config = AppConfig(
        ovh=_build_ovh_config(settings["ovh"]),
        messenger=_build_messenger_config(settings["messenger"]),
        slack=SlackConfig(
            timeout_seconds=int((settings.get("slack") or {}).get("timeout_seconds", 30)),
        ),
        scheduler=_build_scheduler_config(settings.get("scheduler") or {}),
        database_path=settings["database"]["path"],
        log_level=settings["logging"]["level"],
        default_locale=settings.get("default_locale", "fr_FR"),
        hosting_probe_timeout_seconds=float(
            settings.get("hosting_probe_timeout_seconds", 10)
        ),
    )

    logger.info("Configuration loaded successfully")
    logger.debug("Database path: %s", config.database_path)
    logger.debug("OVH endpoint: %s", config.ovh.endpoint)
    logger.debug(
        "Schedules: status at minute %d of hours %s, expires at %02d:%02d",
        config.scheduler.status_minute, config.scheduler.status_hours,
        config.scheduler.expires_hour, config.scheduler.expires_minute,
    )

    return config
