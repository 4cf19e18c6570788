"""
Spriting engine.

Spriting runs in three passes:

1. ``group_slices_into_sprites`` sorts slices into sprites by repeat mode
   and file type.
2. ``layout_slices_in_sprite`` positions each slice within its sprite.
3. ``generate_sprite`` composes the slices into the sprite image.
"""

from __future__ import annotations

import math
from typing import Iterable

from sproutforge.core.config import DEFAULT_SPRITE_WASTE_THRESHOLD
from sproutforge.core.logger import get_logger
from sproutforge.sprites.image_buffer import ImageBuffer, PillowImageBuffer
from sproutforge.sprites.models import RepeatMode, Slice, Sprite

logger = get_logger(__name__)

# Sprites of these types get an opaque canvas.
OPAQUE_EXTENSIONS = (".gif", ".jpg", ".jpeg")


class SpriteEngine:
    """
    Packs slices into sprite sheets.

    Slices are laid out top to bottom, except ``repeat-y`` slices which go
    left to right so each can span the full sprite height.
    """

    def __init__(
        self,
        slices: Iterable[Slice],
        waste_threshold: int = DEFAULT_SPRITE_WASTE_THRESHOLD,
    ):
        self.slices = list(slices)
        self.waste_threshold = waste_threshold
        self.sprites: dict[str, Sprite] = {}

    def sprite(self) -> dict[str, Sprite]:
        """
        Group, lay out and render every slice.

        Returns:
            Sprites by name.

        Raises:
            SpriteError: If a slice has no image data.
        """
        self.group_slices_into_sprites()
        for sprite in self.sprites.values():
            self.layout_slices_in_sprite(sprite)
            self.generate_sprite(sprite)
        return self.sprites

    def group_slices_into_sprites(self) -> dict[str, Sprite]:
        """Put every slice in its sprite, creating sprites as needed."""
        self.sprites = {}
        for slice_ in self.slices:
            sprite = self.sprite_for_slice(slice_)
            sprite.slices.append(slice_)
            slice_.sprite_name = sprite.name
        return self.sprites

    def sprite_for_slice(self, slice_: Slice) -> Sprite:
        """Return the sprite for a slice, creating it on first reference."""
        name = self.sprite_name_for_slice(slice_)
        sprite = self.sprites.get(name)
        if sprite is None:
            sprite = Sprite(
                name=name,
                use_horizontal_layout=slice_.repeat is RepeatMode.REPEAT_Y,
            )
            self.sprites[name] = sprite
        return sprite

    @staticmethod
    def sprite_name_for_slice(slice_: Slice) -> str:
        """
        Name of the sprite a slice belongs to.

        Examples:
            >>> SpriteEngine.sprite_name_for_slice(Slice(path="icons/a.png"))
            'no-repeat.png'
        """
        return slice_.repeat.value + slice_.extension

    def layout_slices_in_sprite(self, sprite: Sprite) -> Sprite:
        """
        Assign each slice its position and size in the sprite.

        ``pos`` runs along the layout direction. ``size`` is the extent across
        it: the maximum for plain slices, the least common multiple for
        repeating ones so every repeat tiles evenly.
        """
        pos = 0
        size = 0
        smallest_size: int | None = None
        is_horizontal = sprite.use_horizontal_layout

        for slice_ in sprite.slices:
            canvas = slice_.resolve_canvas()
            slice_width = canvas.width
            slice_height = canvas.height

            slice_length = slice_width if is_horizontal else slice_height
            slice_size = slice_height if is_horizontal else slice_width

            if slice_.is_repeating:
                smallest_size = slice_size if smallest_size is None else min(smallest_size, slice_size)
                size = slice_size if size == 0 else math.lcm(size, slice_size)
            else:
                size = max(size, slice_size)

            # Room for manual offsets: min offsets pad after, max offsets pad before.
            if is_horizontal:
                if slice_.min_offset_x < 0:
                    slice_length -= slice_.min_offset_x
                if slice_.max_offset_x > 0:
                    pos += slice_.max_offset_x
            else:
                if slice_.min_offset_y < 0:
                    slice_length -= slice_.min_offset_y
                if slice_.max_offset_y > 0:
                    pos += slice_.max_offset_y

            slice_.sprite_slice_x = pos if is_horizontal else 0
            slice_.sprite_slice_y = 0 if is_horizontal else pos
            slice_.sprite_slice_width = slice_width
            slice_.sprite_slice_height = slice_height

            pos += slice_length

        if smallest_size is not None and size - smallest_size > self.waste_threshold:
            logger.warning(
                "Sprite %s uses %d extra %s to accommodate repeating slices; "
                "wasted up to %d pixels",
                sprite.name,
                size - smallest_size,
                "rows" if is_horizontal else "columns",
                pos * (size - smallest_size),
            )

        sprite.width = pos if is_horizontal else size
        sprite.height = size if is_horizontal else pos
        return sprite

    def canvas_for_sprite(self, sprite: Sprite) -> ImageBuffer:
        """Blank canvas for a laid out sprite, allocated by its first slice's buffer."""
        alpha = sprite.extension.lower() not in OPAQUE_EXTENSIONS
        if not sprite.slices:
            return PillowImageBuffer.blank(sprite.width, sprite.height, alpha=alpha)
        sample = sprite.slices[0].resolve_canvas()
        return sample.new_blank(sprite.width, sprite.height, alpha=alpha)

    def generate_sprite(self, sprite: Sprite) -> ImageBuffer:
        """Render the sprite image into ``sprite.canvas``."""
        canvas = self.canvas_for_sprite(sprite)
        sprite.canvas = canvas

        for slice_ in sprite.slices:
            width = slice_.sprite_slice_width
            height = slice_.sprite_slice_height

            # Repeating slices run edge to edge across the sprite
            if slice_.repeat is RepeatMode.REPEAT_Y:
                height = sprite.height
            if slice_.repeat is RepeatMode.REPEAT_X:
                width = sprite.width

            self.compose_slice_on_canvas(
                canvas, slice_, slice_.sprite_slice_x, slice_.sprite_slice_y, width, height
            )
        return canvas

    def compose_slice_on_canvas(
        self,
        target: ImageBuffer,
        slice_: Slice,
        x: int,
        y: int,
        width: int,
        height: int,
    ) -> None:
        """Draw a slice into the given region, tiling it to fill the width and height."""
        source = slice_.resolve_canvas()
        source_width = slice_.sprite_slice_width or source.width
        source_height = slice_.sprite_slice_height or source.height
        if source_width <= 0 or source_height <= 0:
            return

        top = 0
        while top < height:
            left = 0
            while left < width:
                tile_width = min(source_width, width - left)
                tile_height = min(source_height, height - top)
                tile = source
                if (tile_width, tile_height) != (source_width, source_height):
                    tile = source.crop(tile_width, tile_height)
                target.compose(tile, x + left, y + top)
                left += source_width
            top += source_height
