"""
Tests for YAML configuration loading.
"""

from pathlib import Path

import pytest

from slotplanner.config import AppConfig
from slotplanner.domain.policy import AvailabilityPolicy

EXAMPLE_CONFIG = Path(__file__).parent.parent / "slotplanner.example.yaml"

MINIMAL_YAML = """
timezone: America/Sao_Paulo
resources:
  dr-silva:
    sessionDurationMinutes: 45
    weeklySchedule:
      monday:
        enabled: true
        timeSlots:
          - {id: "1", start: "09:00", end: "12:00"}
  laser:
    timezone: America/Manaus
    sessionDurationMinutes: 90
"""


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "slotplanner.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.timezone == "America/Sao_Paulo"
        assert config.availability.minimum_buffer_minutes == 60
        assert config.availability.search_horizon_days == 60
        assert config.availability.fallback_slot_count == 2
        assert config.retry.max_attempts == 3
        assert config.retry.business_start_hour == 8
        assert config.retry.business_end_hour == 20
        assert config.retry.closed_weekdays == [6]

    def test_load_resources(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, MINIMAL_YAML))
        resource = config.resolve_resource("DR-SILVA")

        assert resource.name == "dr-silva"
        assert resource.timezone == "America/Sao_Paulo"
        assert resource.session_duration_minutes == 45
        assert config.resolve_resource("laser").timezone == "America/Manaus"

    def test_unknown_resource(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, MINIMAL_YAML))

        assert config.find_resource("nobody") is None
        with pytest.raises(ValueError, match="Unknown resource"):
            config.resolve_resource("nobody")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AppConfig.load_from_yaml(tmp_path / "absent.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ValueError, match="Invalid YAML"):
            AppConfig.load_from_yaml(write_config(tmp_path, "resources: [unclosed"))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ValueError, match="mapping"):
            AppConfig.load_from_yaml(write_config(tmp_path, "- just\n- a list\n"))

    def test_empty_file_gives_defaults(self, tmp_path):
        config = AppConfig.load_from_yaml(write_config(tmp_path, ""))

        assert config.resources == {}

    def test_unknown_timezone(self, tmp_path):
        with pytest.raises(ValueError, match="Unknown timezone"):
            AppConfig.load_from_yaml(write_config(tmp_path, "timezone: Atlantis/Capital\n"))

    def test_policies_from_yaml(self, tmp_path):
        text = "availability:\n  minimum_buffer_minutes: 30\nretry:\n  max_attempts: 5\n"
        config = AppConfig.load_from_yaml(write_config(tmp_path, text))

        assert config.availability.minimum_buffer_minutes == 30
        assert config.retry.max_attempts == 5

    def test_example_config_loads(self):
        config = AppConfig.load_from_yaml(EXAMPLE_CONFIG)

        assert set(config.resources) == {"dr-silva", "laser-facial"}
        assert config.resolve_resource("dr-silva").overrides[0].reason == "Christmas"


class TestAvailabilityPolicy:
    """Tests for AvailabilityPolicy validation."""

    def test_negative_buffer_is_rejected(self):
        with pytest.raises(ValueError):
            AvailabilityPolicy(minimum_buffer_minutes=-1)

    @pytest.mark.parametrize("field", ["search_horizon_days", "fallback_slot_count", "session_step_minutes"])
    def test_counts_must_be_positive(self, field):
        with pytest.raises(ValueError, match="greater than zero"):
            AvailabilityPolicy(**{field: 0})
