"""Core utilities: canonical JSON, logging, errors, configuration."""

from sproutforge.core.config import ProjectConfig, TargetConfig
from sproutforge.core.errors import (
    BuildTaskError,
    ConfigError,
    SpriteError,
    SproutForgeError,
    TargetNotFoundError,
)
from sproutforge.core.json_canonical import canonical_json_dumps, canonical_json_loads
from sproutforge.core.logger import get_logger, setup_logging

__all__ = [
    "ProjectConfig",
    "TargetConfig",
    "SproutForgeError",
    "ConfigError",
    "TargetNotFoundError",
    "SpriteError",
    "BuildTaskError",
    "canonical_json_dumps",
    "canonical_json_loads",
    "get_logger",
    "setup_logging",
]
