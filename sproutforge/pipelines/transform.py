"""
Transform rules.

A transform derives one entry from one source entry (compile, minify,
convert). Rules only decide which entries to transform and how; the
bookkeeping (extension rewrite, unique staging path, hiding the source)
is done by ``Manifest.add_transform``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

import xxhash

from sproutforge.core.json_canonical import canonical_json_bytes
from sproutforge.core.logger import get_logger
from sproutforge.manifest.entry import ManifestEntry, normalize_ext
from sproutforge.manifest.manifest import Manifest

logger = get_logger(__name__)

COMBINE_TASK = "build:combine"


@dataclass
class TransformRule:
    """Transform every visible entry with ``source_ext`` using ``build_task``."""

    name: str
    source_ext: str
    build_task: str
    ext: str | None = None
    filters: dict[str, Any] = field(default_factory=dict)
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.source_ext = normalize_ext(self.source_ext)
        self.ext = normalize_ext(self.ext)

    def applies_to(self, entry: ManifestEntry) -> bool:
        return entry.ext == self.source_ext and entry.matches(self.filters)

    def apply(self, manifest: Manifest, entry: ManifestEntry) -> ManifestEntry:
        options = dict(self.options)
        options["build_task"] = self.build_task
        options["transformed_by"] = self.name
        if self.ext:
            options["ext"] = self.ext
        return manifest.add_transform(entry, **options)

    def fingerprint(self) -> str:
        """Compute rule fingerprint."""
        content = {
            "name": self.name,
            "source_ext": self.source_ext,
            "ext": self.ext,
            "build_task": self.build_task,
            "filters": self.filters,
            "options": self.options,
        }
        return xxhash.xxh64(canonical_json_bytes(content)).hexdigest()


@dataclass
class TransformPipeline:
    """
    Ordered transform rules.

    Each rule sees the output of the rules before it, so ``scss -> css``
    followed by ``css -> css`` (minify) chains.
    """

    rules: list[TransformRule] = field(default_factory=list)

    def add_rule(
        self,
        name: str,
        source_ext: str,
        build_task: str,
        ext: str | None = None,
        **options: Any,
    ) -> TransformRule:
        """
        Append a rule.

        Raises:
            ValueError: If a rule with that name already exists.
        """
        if any(r.name == name for r in self.rules):
            raise ValueError(f"Rule '{name}' already exists")

        rule = TransformRule(name=name, source_ext=source_ext, build_task=build_task, ext=ext, options=options)
        self.rules.append(rule)
        return rule

    def apply(self, manifest: Manifest) -> list[ManifestEntry]:
        """
        Run every rule over the manifest's visible entries.

        Returns:
            The entries created, in creation order.
        """
        created = []
        for rule in self.rules:
            for entry in manifest.entries():
                if rule.applies_to(entry):
                    created.append(rule.apply(manifest, entry))
        logger.debug("Applied %d transforms to %r", len(created), manifest)
        return created

    def fingerprint(self) -> str:
        """Compute pipeline fingerprint."""
        content = [rule.fingerprint() for rule in self.rules]
        return xxhash.xxh64(canonical_json_bytes(content)).hexdigest()


def combine(
    manifest: Manifest,
    filename: str,
    entries: Iterable[ManifestEntry],
    build_task: str = COMBINE_TASK,
    hide_entries: bool = True,
    **options: Any,
) -> ManifestEntry:
    """Add a composite entry that concatenates ``entries`` in order."""
    return manifest.add_composite(
        filename,
        source_entries=list(entries),
        hide_entries=hide_entries,
        build_task=build_task,
        **options,
    )


def combine_assets(manifest: Manifest) -> list[ManifestEntry]:
    """
    Combine all visible scripts into ``javascript.js`` and stylesheets into
    ``stylesheet.css``, as enabled by the target config.

    Returns:
        The composite entries created.
    """
    config = manifest.target.config
    created = []
    for enabled, ext, filename in (
        (config.combine_javascript, "js", "javascript.js"),
        (config.combine_stylesheets, "css", "stylesheet.css"),
    ):
        if not enabled:
            continue
        sources = [e for e in manifest.entries() if e.ext == ext]
        if sources:
            created.append(combine(manifest, filename, sources))
    return created
