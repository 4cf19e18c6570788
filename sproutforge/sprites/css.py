"""CSS for sprited slices."""

from __future__ import annotations

from sproutforge.sprites.models import Slice


def _px(value: int) -> str:
    return "0" if value == 0 else f"{value}px"


def background_position(slice_: Slice, offset_x: int = 0, offset_y: int = 0) -> str:
    """
    Background position that shows ``slice_`` from its sprite.

    Examples:
        >>> s = Slice(path="a.png", sprite_slice_x=0, sprite_slice_y=20)
        >>> background_position(s)
        '0 -20px'
    """
    x = offset_x - (slice_.sprite_slice_x or 0)
    y = offset_y - (slice_.sprite_slice_y or 0)
    return f"{_px(x)} {_px(y)}"


def background_declarations(slice_: Slice, sprite_url: str) -> dict[str, str]:
    """Declarations that replace a slice's own background with its sprite."""
    return {
        "background-image": f"url({sprite_url})",
        "background-position": background_position(slice_),
        "background-repeat": slice_.repeat.value,
    }


def render_rule(selector: str, declarations: dict[str, str]) -> str:
    """Render a CSS rule."""
    body = "".join(f"  {name}: {value};\n" for name, value in declarations.items())
    return f"{selector} {{\n{body}}}\n"
