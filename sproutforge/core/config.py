"""
Project and target configuration.

Configs are loaded from a YAML project file and validated with pydantic.
Unknown keys are kept so build tasks can read their own settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sproutforge.core.errors import ConfigError

DEFAULT_SPRITE_WASTE_THRESHOLD = 10


class TargetConfig(BaseModel):
    """Configuration for a single buildable target."""

    model_config = ConfigDict(extra="allow")

    # Dependencies
    required: list[str] = Field(
        default_factory=list, description="Names of targets this target requires"
    )

    # Output locations
    build_root: str = Field(default="build", description="Root of final build output")
    staging_root: str = Field(default="tmp/staging", description="Root of staged intermediates")
    url_root: str = Field(default="/static", description="URL prefix for built assets")

    # Languages a manifest is produced for
    languages: list[str] = Field(default_factory=lambda: ["en"])

    # Asset handling
    combine_javascript: bool = Field(default=True)
    combine_stylesheets: bool = Field(default=True)
    sprite_waste_threshold: int = Field(
        default=DEFAULT_SPRITE_WASTE_THRESHOLD,
        ge=0,
        description="Extra rows/columns tolerated for repeating slices before warning",
    )

    @property
    def extra_settings(self) -> dict[str, Any]:
        """Settings not covered by the well-known fields."""
        return dict(self.model_extra or {})


class ProjectConfig(BaseModel):
    """Configuration for a project and all of its targets."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(default="project")
    project_root: str = Field(default=".")
    targets: dict[str, TargetConfig] = Field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        """
        Build a config from a plain mapping.

        Raises:
            ConfigError: If the mapping fails validation.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid project config: {e}") from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> ProjectConfig:
        """
        Load a project config from a YAML file.

        Raises:
            ConfigError: If the file is missing or is not valid YAML.
        """
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")

        data.setdefault("project_root", str(config_path.parent))
        return cls.from_dict(data)
