"""User settings consumed by the engine - no I/O dependencies."""

from dataclasses import dataclass
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .clock import parse_hhmm

START_POKE_DEFAULTS = ("all", "routines_only", "tasks_only", "none")


class SettingsError(ValueError):
    """Raised when settings are missing required values or are unusable."""

    pass


@dataclass
class UserSettings:
    """User preferences for start pokes and nudge delivery."""

    start_poke_enabled: bool = True
    start_poke_default: str = "all"
    start_poke_buffer_minutes: int = 15
    start_poke_buffer_percentage: bool = False
    quiet_hours_enabled: bool = False
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    timezone: str = "UTC"
    nudge_cooldown_minutes: int = 30
    max_visible_nudges: int = 3

    @property
    def tzinfo(self) -> tzinfo:
        if not self.timezone or self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)

    def validate(self) -> None:
        """Raise SettingsError if the settings cannot drive the engine."""
        if self.start_poke_default not in START_POKE_DEFAULTS:
            raise SettingsError(f"Unknown start_poke_default: {self.start_poke_default!r}")
        if self.start_poke_buffer_minutes < 0:
            raise SettingsError("start_poke_buffer_minutes must be >= 0")
        if self.nudge_cooldown_minutes < 0:
            raise SettingsError("nudge_cooldown_minutes must be >= 0")
        if self.max_visible_nudges < 1:
            raise SettingsError("max_visible_nudges must be >= 1")
        if self.quiet_hours_enabled and not (self.quiet_hours_start and self.quiet_hours_end):
            raise SettingsError("Quiet hours enabled but start/end not set")
        for value in (self.quiet_hours_start, self.quiet_hours_end):
            if value:
                try:
                    parse_hhmm(value)
                except ValueError as e:
                    raise SettingsError(f"Invalid quiet hours: {e}") from e
        try:
            self.tzinfo
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise SettingsError(f"Unknown timezone: {self.timezone!r}") from e

    @classmethod
    def from_dict(cls, data: dict) -> "UserSettings":
        """Create settings from the app's camelCase settings record."""
        defaults = cls()
        return cls(
            start_poke_enabled=bool(data.get("startPokeEnabled", defaults.start_poke_enabled)),
            start_poke_default=data.get("startPokeDefault", defaults.start_poke_default),
            start_poke_buffer_minutes=int(
                data.get("startPokeBufferMinutes", defaults.start_poke_buffer_minutes)
            ),
            start_poke_buffer_percentage=bool(
                data.get("startPokeBufferPercentage", defaults.start_poke_buffer_percentage)
            ),
            quiet_hours_enabled=bool(data.get("quietHoursEnabled", defaults.quiet_hours_enabled)),
            quiet_hours_start=data.get("quietHoursStart"),
            quiet_hours_end=data.get("quietHoursEnd"),
            timezone=data.get("timezone", defaults.timezone),
            nudge_cooldown_minutes=int(
                data.get("nudgeCooldownMinutes", defaults.nudge_cooldown_minutes)
            ),
            max_visible_nudges=int(data.get("maxVisibleNudges", defaults.max_visible_nudges)),
        )
