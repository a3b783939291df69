"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.policy import AvailabilityPolicy, RetryPolicy
from .domain.schedule import Resource
from .domain.timezones import resolve_timezone


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Sao_Paulo"
    availability: AvailabilityPolicy = Field(default_factory=AvailabilityPolicy)
    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    resources: Dict[str, Resource] = Field(default_factory=dict)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        resolve_timezone(value)
        return value

    @model_validator(mode="before")
    @classmethod
    def default_resource_fields(cls, data):
        """Resources inherit the config timezone and take their key as name."""
        if not isinstance(data, dict) or not isinstance(data.get("resources"), dict):
            return data
        data = dict(data)
        timezone = data.get("timezone", "America/Sao_Paulo")
        resources = {}
        for key, raw in data["resources"].items():
            if isinstance(raw, dict):
                raw = {"name": key, "timezone": timezone, **raw}
            resources[key] = raw
        data["resources"] = resources
        return data

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a slotplanner.yaml file. See slotplanner.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def find_resource(self, name: str) -> Resource | None:
        """Find a resource by its configured key (case-insensitive)."""
        for key, resource in self.resources.items():
            if key.lower() == name.lower():
                return resource
        return None

    def resolve_resource(self, name: str) -> Resource:
        """
        Resolve a resource key to its configuration.

        Raises:
            ValueError: If no resource with that key exists
        """
        resource = self.find_resource(name)
        if resource is None:
            known = ", ".join(sorted(self.resources)) or "none configured"
            raise ValueError(f"Unknown resource: '{name}'. Known resources: {known}.")
        return resource


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for slotplanner.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "slotplanner.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "slotplanner.yaml"

    return config_path
