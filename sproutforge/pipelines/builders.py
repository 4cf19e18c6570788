"""
Built-in build tasks.

Each task writes one entry's output to ``dst_path``. Derived entries first
build their sources into their staging paths, so every step of a chain
exists on disk.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Iterable

from sproutforge.core.errors import SproutForgeError
from sproutforge.core.json_canonical import canonical_json_dumps
from sproutforge.core.logger import get_logger
from sproutforge.manifest.entry import ManifestEntry
from sproutforge.manifest.manifest import Manifest
from sproutforge.pipelines.transform import COMBINE_TASK
from sproutforge.project.tasks import TaskRegistry
from sproutforge.sprites.css import background_position
from sproutforge.sprites.engine import SpriteEngine
from sproutforge.sprites.image_buffer import open_image
from sproutforge.sprites.models import Slice

logger = get_logger(__name__)

COPY_TASK = "build:copy"
SPRITE_TASK = "build:sprite"


def input_path(entry: ManifestEntry) -> Path:
    """
    Where an entry's input lives.

    Raw entries read their ``source_path``. Derived entries read their
    first source's staging path, building it there first.

    Raises:
        SproutForgeError: If a raw entry has no source path.
    """
    if not entry.source_entries:
        source_path = entry.get("source_path")
        if source_path is None:
            raise SproutForgeError(f"Entry {entry.filename} has no source_path")
        return Path(source_path)

    source = entry.source_entry or entry.source_entries[0]
    return stage(source)


def stage(entry: ManifestEntry) -> Path:
    """Return a readable path for ``entry``, building composites into staging."""
    if not entry.source_entries:
        return input_path(entry)
    entry.build(entry.staging_path)
    return Path(entry.staging_path)


def _prepare_destination(dst_path: str | Path) -> Path:
    path = Path(dst_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def build_copy(entry: ManifestEntry, dst_path: str, **kwargs: Any) -> None:
    """Copy the entry's input to ``dst_path``."""
    src = input_path(entry)
    dst = _prepare_destination(dst_path)
    if src.resolve() != dst.resolve():
        shutil.copyfile(src, dst)


def build_combine(entry: ManifestEntry, dst_path: str, **kwargs: Any) -> None:
    """Concatenate the entry's sources, in order, into ``dst_path``."""
    dst = _prepare_destination(dst_path)
    parts = [stage(source).read_bytes() for source in entry.source_entries]
    dst.write_bytes(b"\n".join(parts))


def slices_for_entries(entries: Iterable[ManifestEntry]) -> list[Slice]:
    """Load each image entry as a slice. Repeat and offsets come from entry extras."""
    slices = []
    for entry in entries:
        slices.append(
            Slice(
                path=entry.filename,
                repeat=entry.get("repeat", "no-repeat"),
                canvas=open_image(stage(entry)),
                min_offset_x=entry.get("min_offset_x", 0),
                min_offset_y=entry.get("min_offset_y", 0),
                max_offset_x=entry.get("max_offset_x", 0),
                max_offset_y=entry.get("max_offset_y", 0),
                metadata={"entry": entry},
            )
        )
    return slices


def build_sprite(entry: ManifestEntry, dst_path: str, **kwargs: Any) -> None:
    """
    Sprite the entry's image sources.

    Sprite sheets are written beside ``dst_path``; ``dst_path`` receives the
    slice offsets as JSON, which are also kept on the entry for CSS output.
    """
    dst = _prepare_destination(dst_path)
    threshold = entry.manifest.target.config.sprite_waste_threshold
    engine = SpriteEngine(slices_for_entries(entry.source_entries), waste_threshold=threshold)
    sprites = engine.sprite()

    for sprite in sprites.values():
        sprite.canvas.save(dst.parent / sprite.name)
        logger.info("Wrote sprite %s (%dx%d)", sprite.name, sprite.width, sprite.height)

    offsets = {
        slice_.path: {
            "sprite": slice_.sprite_name,
            "x": slice_.sprite_slice_x,
            "y": slice_.sprite_slice_y,
            "width": slice_.sprite_slice_width,
            "height": slice_.sprite_slice_height,
            "background_position": background_position(slice_),
        }
        for slice_ in engine.slices
    }
    entry.extra["slices"] = offsets
    dst.write_text(canonical_json_dumps(offsets, indent=True))


def add_sprite_entry(
    manifest: Manifest,
    image_entries: Iterable[ManifestEntry],
    filename: str = "sprites.json",
    **options: Any,
) -> ManifestEntry:
    """Add a composite entry that sprites ``image_entries``."""
    return manifest.add_composite(
        filename,
        source_entries=list(image_entries),
        build_task=SPRITE_TASK,
        **options,
    )


def register_default_tasks(registry: TaskRegistry) -> TaskRegistry:
    """Register the copy, combine and sprite build tasks."""
    registry.register(COPY_TASK, build_copy)
    registry.register(COMBINE_TASK, build_combine)
    registry.register(SPRITE_TASK, build_sprite)
    return registry
