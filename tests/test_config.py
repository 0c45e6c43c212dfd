"""Tests for settings loading and validation."""

from datetime import timezone

import pytest

from taskcopilot.config import load_settings
from taskcopilot.core.settings import SettingsError, UserSettings


@pytest.fixture
def conf(tmp_path):
    path = tmp_path / "taskcopilot.conf"

    def write(text: str):
        path.write_text(text)
        return path

    return write


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "nope.conf") == UserSettings()

    def test_parses_values(self, conf):
        path = conf(
            "# start pokes\n"
            "START_POKE_ENABLED=false\n"
            'START_POKE_DEFAULT="routines_only"\n'
            "START_POKE_BUFFER_MINUTES=10  # minutes\n"
            "START_POKE_BUFFER_PERCENTAGE=yes\n"
            "TIMEZONE='America/Toronto'\n"
            "NUDGE_COOLDOWN_MINUTES=45\n"
            "MAX_VISIBLE_NUDGES=2\n"
        )
        settings = load_settings(path)
        assert settings.start_poke_enabled is False
        assert settings.start_poke_default == "routines_only"
        assert settings.start_poke_buffer_minutes == 10
        assert settings.start_poke_buffer_percentage is True
        assert settings.timezone == "America/Toronto"
        assert settings.nudge_cooldown_minutes == 45
        assert settings.max_visible_nudges == 2

    def test_quiet_hours_shorthand(self, conf):
        settings = load_settings(conf("QUIET_HOURS=22:00-07:00\n"))
        assert settings.quiet_hours_enabled
        assert (settings.quiet_hours_start, settings.quiet_hours_end) == ("22:00", "07:00")

    def test_invalid_value_keeps_default(self, conf, caplog):
        settings = load_settings(conf("START_POKE_BUFFER_MINUTES=lots\nMAX_VISIBLE_NUDGES=4\n"))
        assert settings.start_poke_buffer_minutes == 15
        assert settings.max_visible_nudges == 4
        assert "START_POKE_BUFFER_MINUTES" in caplog.text

    def test_ignores_junk_lines(self, conf):
        settings = load_settings(conf("not a setting\nUNKNOWN_KEY=1\n"))
        assert settings == UserSettings()


class TestUserSettings:
    def test_defaults_are_valid(self):
        UserSettings().validate()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"start_poke_default": "sometimes"},
            {"start_poke_buffer_minutes": -1},
            {"max_visible_nudges": 0},
            {"nudge_cooldown_minutes": -5},
            {"quiet_hours_enabled": True, "quiet_hours_end": "07:00"},
            {"quiet_hours_enabled": True, "quiet_hours_start": "10pm", "quiet_hours_end": "07:00"},
            {"timezone": "Mars/Olympus_Mons"},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(SettingsError):
            UserSettings(**kwargs).validate()

    def test_settings_error_is_value_error(self):
        assert issubclass(SettingsError, ValueError)

    def test_utc_tzinfo(self):
        assert UserSettings().tzinfo is timezone.utc

    def test_from_dict_camel_case(self):
        settings = UserSettings.from_dict(
            {
                "startPokeEnabled": True,
                "startPokeDefault": "tasks_only",
                "startPokeBufferMinutes": 20,
                "startPokeBufferPercentage": True,
                "quietHoursStart": "23:00",
                "quietHoursEnd": "06:00",
                "quietHoursEnabled": True,
            }
        )
        assert settings.start_poke_default == "tasks_only"
        assert settings.start_poke_buffer_minutes == 20
        assert settings.start_poke_buffer_percentage
        assert settings.quiet_hours_start == "23:00"
        assert settings.max_visible_nudges == 3
