"""
Tests for configuration loading.
"""

import pytest

from agendamerge.config import AppConfig, CalendarDefaults


def test_load_from_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "current_user_id: 7\n"
        "timezone: Europe/Berlin\n"
        "events_file: data/events.json\n"
        "defaults:\n"
        "  tick_minutes: 30\n"
        "  busy_padding_minutes: 10\n",
        encoding="utf-8",
    )

    config = AppConfig.load_from_yaml(config_path)

    assert config.current_user_id == 7
    assert config.timezone == "Europe/Berlin"
    assert config.events_file == tmp_path / "data" / "events.json"
    assert config.defaults.tick_minutes == 30
    assert config.defaults.busy_padding_minutes == 10
    assert config.defaults.day_start_hour == 8
    assert config.defaults.day_end_hour == 20


def test_absolute_events_file_kept(tmp_path):
    events_file = tmp_path / "elsewhere" / "events.json"
    config_path = tmp_path / "config.yaml"
    config_path.write_text(f"current_user_id: 1\nevents_file: {events_file}\n", encoding="utf-8")

    config = AppConfig.load_from_yaml(config_path)

    assert config.events_file == events_file


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="Config file not found"):
        AppConfig.load_from_yaml(tmp_path / "config.yaml")


def test_invalid_yaml(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("current_user_id: [1\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid YAML"):
        AppConfig.load_from_yaml(config_path)


def test_root_must_be_mapping(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError, match="mapping at the root"):
        AppConfig.load_from_yaml(config_path)


class TestCalendarDefaults:
    """Validation of slot generation defaults."""

    @pytest.mark.parametrize("tick", [0, -15])
    def test_tick_must_be_positive(self, tick):
        with pytest.raises(ValueError, match="tick_minutes"):
            CalendarDefaults(tick_minutes=tick)

    def test_padding_not_negative(self):
        with pytest.raises(ValueError, match="busy_padding_minutes"):
            CalendarDefaults(busy_padding_minutes=-1)

    def test_hour_range(self):
        with pytest.raises(ValueError, match="Hour must be between 0 and 23"):
            CalendarDefaults(day_end_hour=24)

    def test_hours_order(self):
        with pytest.raises(ValueError, match="day_end_hour must be later"):
            CalendarDefaults(day_start_hour=18, day_end_hour=9)
