"""Image spriting: grouping, layout and rendering of sprite sheets."""

from sproutforge.sprites.css import background_declarations, background_position, render_rule
from sproutforge.sprites.engine import SpriteEngine
from sproutforge.sprites.image_buffer import (
    ArrayImageBuffer,
    ImageBuffer,
    PillowImageBuffer,
    as_image_buffer,
    open_image,
)
from sproutforge.sprites.models import RepeatMode, Slice, SliceFile, Sprite

__all__ = [
    "SpriteEngine",
    "Slice",
    "SliceFile",
    "Sprite",
    "RepeatMode",
    "ImageBuffer",
    "PillowImageBuffer",
    "ArrayImageBuffer",
    "as_image_buffer",
    "open_image",
    "background_position",
    "background_declarations",
    "render_rule",
]
