"""
Image buffers for spriting.

Slices may come from Pillow images or from numpy arrays. Both are wrapped
in an adapter exposing the same small surface, so the spriting engine
never needs to know which library produced a canvas.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np
from PIL import Image


@runtime_checkable
class ImageBuffer(Protocol):
    """Operations the spriting engine needs from an image."""

    @property
    def width(self) -> int:
        ...

    @property
    def height(self) -> int:
        ...

    @property
    def has_alpha(self) -> bool:
        ...

    def compose(self, source: ImageBuffer, x: int, y: int) -> None:
        """Draw ``source`` with its top-left corner at (x, y), clipped to this buffer."""
        ...

    def new_blank(self, width: int, height: int, alpha: bool = True) -> ImageBuffer:
        """Allocate an empty canvas on the same backend: transparent, or white without alpha."""
        ...

    def crop(self, width: int, height: int) -> ImageBuffer:
        """Return the top-left ``width`` x ``height`` region as a new buffer."""
        ...

    def to_pillow(self) -> Image.Image:
        ...

    def to_array(self, channels: int = 4) -> np.ndarray:
        ...

    def save(self, path: str | Path) -> None:
        ...


class PillowImageBuffer:
    """ImageBuffer backed by a Pillow image."""

    def __init__(self, image: Image.Image):
        self.image = image

    def __repr__(self) -> str:
        return f"PillowImageBuffer({self.image.mode}, {self.width}x{self.height})"

    @classmethod
    def blank(cls, width: int, height: int, alpha: bool = True) -> PillowImageBuffer:
        """Allocate a transparent (or white, without alpha) canvas."""
        if alpha:
            return cls(Image.new("RGBA", (width, height), (0, 0, 0, 0)))
        return cls(Image.new("RGB", (width, height), (255, 255, 255)))

    def new_blank(self, width: int, height: int, alpha: bool = True) -> PillowImageBuffer:
        return PillowImageBuffer.blank(width, height, alpha=alpha)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def has_alpha(self) -> bool:
        return self.image.mode in ("RGBA", "LA", "PA") or "transparency" in self.image.info

    def compose(self, source: ImageBuffer, x: int, y: int) -> None:
        overlay = source.to_pillow()
        rgba = overlay.convert("RGBA")
        if self.image.mode == "RGBA":
            self.image.alpha_composite(rgba, dest=(x, y))
        else:
            # Transparent source pixels keep the canvas background
            self.image.paste(rgba.convert(self.image.mode), (x, y), rgba)

    def crop(self, width: int, height: int) -> PillowImageBuffer:
        return PillowImageBuffer(self.image.crop((0, 0, width, height)))

    def to_pillow(self) -> Image.Image:
        return self.image

    def to_array(self, channels: int = 4) -> np.ndarray:
        return np.asarray(self.image.convert("RGBA" if channels == 4 else "RGB"))

    def save(self, path: str | Path) -> None:
        self.image.save(path)


class ArrayImageBuffer:
    """ImageBuffer backed by a ``uint8`` numpy array of shape (height, width, channels)."""

    def __init__(self, array: np.ndarray):
        if array.ndim == 2:
            array = np.stack([array] * 3, axis=-1)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise ValueError(f"Expected an RGB or RGBA array, got shape {array.shape}")
        self.array = array.astype(np.uint8, copy=False)

    def __repr__(self) -> str:
        return f"ArrayImageBuffer({self.width}x{self.height}x{self.channels})"

    @classmethod
    def blank(cls, width: int, height: int, alpha: bool = True) -> ArrayImageBuffer:
        """Allocate a transparent (or white, without alpha) canvas."""
        if alpha:
            return cls(np.zeros((height, width, 4), dtype=np.uint8))
        return cls(np.full((height, width, 3), 255, dtype=np.uint8))

    def new_blank(self, width: int, height: int, alpha: bool = True) -> ArrayImageBuffer:
        return ArrayImageBuffer.blank(width, height, alpha=alpha)

    @property
    def width(self) -> int:
        return int(self.array.shape[1])

    @property
    def height(self) -> int:
        return int(self.array.shape[0])

    @property
    def channels(self) -> int:
        return int(self.array.shape[2])

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    def compose(self, source: ImageBuffer, x: int, y: int) -> None:
        overlay = source.to_array(channels=self.channels)
        height = min(overlay.shape[0], self.height - y)
        width = min(overlay.shape[1], self.width - x)
        if height <= 0 or width <= 0:
            return

        overlay = overlay[:height, :width]
        region = self.array[y : y + height, x : x + width]
        if self.channels == 3:
            region[...] = overlay
            return

        # Porter-Duff "over"
        src = overlay.astype(np.float64) / 255.0
        dst = region.astype(np.float64) / 255.0
        src_a = src[..., 3:4]
        dst_a = dst[..., 3:4]
        out_a = src_a + dst_a * (1.0 - src_a)
        out_rgb = np.where(
            out_a > 0,
            (src[..., :3] * src_a + dst[..., :3] * dst_a * (1.0 - src_a))
            / np.where(out_a > 0, out_a, 1.0),
            0.0,
        )
        out = np.concatenate([out_rgb, out_a], axis=-1)
        region[...] = np.round(out * 255.0).astype(np.uint8)

    def crop(self, width: int, height: int) -> ArrayImageBuffer:
        return ArrayImageBuffer(self.array[:height, :width].copy())

    def to_pillow(self) -> Image.Image:
        return Image.fromarray(self.array)

    def to_array(self, channels: int = 4) -> np.ndarray:
        if channels == self.channels:
            return self.array
        if channels == 3:
            return self.array[..., :3]
        alpha = np.full(self.array.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([self.array, alpha], axis=-1)

    def save(self, path: str | Path) -> None:
        self.to_pillow().save(path)


def as_image_buffer(image: Any) -> ImageBuffer:
    """
    Wrap a Pillow image or numpy array in the matching adapter.

    Buffers are returned unchanged.

    Raises:
        TypeError: For any other object.
    """
    if isinstance(image, (PillowImageBuffer, ArrayImageBuffer)):
        return image
    if isinstance(image, Image.Image):
        return PillowImageBuffer(image)
    if isinstance(image, np.ndarray):
        return ArrayImageBuffer(image)
    if isinstance(image, ImageBuffer):
        return image
    raise TypeError(f"Unsupported image type: {type(image).__name__}")


def open_image(path: str | Path) -> PillowImageBuffer:
    """Load an image file from disk."""
    with Image.open(path) as image:
        image.load()
        return PillowImageBuffer(image.copy())

