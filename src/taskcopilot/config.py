"""Configuration management for Task Copilot."""

import logging
import os
from pathlib import Path

from .core.settings import SettingsError, UserSettings

logger = logging.getLogger(__name__)

TASKCOPILOT_HOME = Path(os.environ.get("TASKCOPILOT_HOME", Path.home() / "taskcopilot"))
CONFIG_FILE = TASKCOPILOT_HOME / "config" / "taskcopilot.conf"
DATA_DIR = TASKCOPILOT_HOME / "data"

__all__ = ["CONFIG_FILE", "DATA_DIR", "TASKCOPILOT_HOME", "SettingsError", "UserSettings", "load_settings"]


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def _strip_value(value: str) -> str:
    """Remove quotes and inline comments from a raw config value."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_settings(path: Path | None = None) -> UserSettings:
    """Load settings from taskcopilot.conf."""
    settings = UserSettings()
    config_file = path or CONFIG_FILE

    if not config_file.exists():
        return settings

    for line in config_file.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        try:
            match key:
                case "start_poke_enabled":
                    settings.start_poke_enabled = _parse_bool(value)
                case "start_poke_default":
                    settings.start_poke_default = value
                case "start_poke_buffer_minutes":
                    settings.start_poke_buffer_minutes = int(value)
                case "start_poke_buffer_percentage":
                    settings.start_poke_buffer_percentage = _parse_bool(value)
                case "quiet_hours_enabled":
                    settings.quiet_hours_enabled = _parse_bool(value)
                case "quiet_hours":
                    # "22:00-07:00" shorthand
                    start, _, end = value.partition("-")
                    settings.quiet_hours_start = start.strip() or None
                    settings.quiet_hours_end = end.strip() or None
                    settings.quiet_hours_enabled = bool(start.strip() and end.strip())
                case "quiet_hours_start":
                    settings.quiet_hours_start = value or None
                case "quiet_hours_end":
                    settings.quiet_hours_end = value or None
                case "timezone":
                    settings.timezone = value
                case "nudge_cooldown_minutes":
                    settings.nudge_cooldown_minutes = int(value)
                case "max_visible_nudges":
                    settings.max_visible_nudges = int(value)
                case _:
                    logger.debug(f"Ignoring unknown config key: {key}")
        except ValueError as e:
            logger.warning(f"Invalid value for {key.upper()}: {e}")

    return settings
