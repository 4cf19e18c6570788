"""Transform rules and built-in build tasks."""

from sproutforge.pipelines.builders import add_sprite_entry, register_default_tasks
from sproutforge.pipelines.transform import (
    TransformPipeline,
    TransformRule,
    combine,
    combine_assets,
)

__all__ = [
    "TransformPipeline",
    "TransformRule",
    "combine",
    "combine_assets",
    "add_sprite_entry",
    "register_default_tasks",
]
