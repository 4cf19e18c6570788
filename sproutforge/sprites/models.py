"""
Slices and sprites.

A slice is one image (or region of an image file) that will be placed in a
sprite sheet. A sprite is the transient grouping built during spriting.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sproutforge.core.errors import SpriteError
from sproutforge.sprites.image_buffer import ImageBuffer, as_image_buffer


class RepeatMode(str, Enum):
    """CSS background-repeat values a slice can use."""

    NO_REPEAT = "no-repeat"
    REPEAT_X = "repeat-x"
    REPEAT_Y = "repeat-y"


@dataclass
class SliceFile:
    """An image file that one or more slices are cut from."""

    path: str
    canvas: ImageBuffer | None = None

    def __post_init__(self) -> None:
        if self.canvas is not None:
            self.canvas = as_image_buffer(self.canvas)


@dataclass(eq=False)
class Slice:
    """A rectangular image placed in a sprite."""

    path: str
    repeat: RepeatMode = RepeatMode.NO_REPEAT
    canvas: ImageBuffer | None = None
    file: SliceFile | None = None

    # Manual offset bounds used by CSS; they reserve padding in the layout direction.
    min_offset_x: int = 0
    min_offset_y: int = 0
    max_offset_x: int = 0
    max_offset_y: int = 0

    # Placement, filled in by layout
    sprite_name: str | None = None
    sprite_slice_x: int | None = None
    sprite_slice_y: int | None = None
    sprite_slice_width: int | None = None
    sprite_slice_height: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.repeat = RepeatMode(self.repeat)
        if self.canvas is not None:
            self.canvas = as_image_buffer(self.canvas)

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.path)[1]

    @property
    def is_repeating(self) -> bool:
        return self.repeat is not RepeatMode.NO_REPEAT

    def resolve_canvas(self) -> ImageBuffer:
        """
        The slice's own canvas, or the canvas of the file it was cut from.

        Raises:
            SpriteError: If neither has image data.
        """
        if self.canvas is not None:
            return self.canvas
        if self.file is not None and self.file.canvas is not None:
            return self.file.canvas
        raise SpriteError(
            f"Could not sprite image {self.path}: no image data was loaded for it"
        )


@dataclass
class Sprite:
    """A sprite sheet and the slices laid out in it."""

    name: str
    use_horizontal_layout: bool = False
    slices: list[Slice] = field(default_factory=list)
    width: int = 0
    height: int = 0
    canvas: ImageBuffer | None = None

    @property
    def extension(self) -> str:
        return posixpath.splitext(self.name)[1]
