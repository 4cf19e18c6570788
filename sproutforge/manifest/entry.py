"""
Manifest entry.

An entry describes one unit of build output: a raw source file, or an
artifact derived from other entries (a composite or a transform).
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING, Any, Iterable

import xxhash

from sproutforge.core.errors import BuildTaskError
from sproutforge.core.json_canonical import canonical_json_bytes
from sproutforge.core.logger import get_logger

if TYPE_CHECKING:
    from sproutforge.manifest.manifest import Manifest

logger = get_logger(__name__)

DEFAULT_BUILD_TASK = "build:copy"


def normalize_ext(ext: str | None) -> str | None:
    """Strip the leading dot from an extension ("css" and ".css" are equivalent)."""
    if ext is None:
        return None
    return str(ext).lstrip(".")


def replace_ext(path: str, ext: str) -> str:
    """
    Replace the trailing extension of a path, or append one if it has none.

    Examples:
        >>> replace_ext("styles/foo.scss", "css")
        'styles/foo.css'
        >>> replace_ext("app.min.js", "map")
        'app.min.map'
    """
    root, _ = posixpath.splitext(path)
    ext = normalize_ext(ext)
    return f"{root}.{ext}" if ext else root


@dataclass(eq=False)
class ManifestEntry:
    """
    A single file or derived artifact tracked by a manifest.

    Well-known attributes are typed fields. Anything else a build task
    attaches lives in ``extra``. Entries compare by identity.
    """

    manifest: Manifest = field(repr=False)
    filename: str

    # Locations
    build_path: str | None = None
    staging_path: str | None = None
    url: str | None = None
    ext: str | None = None

    # How the entry is produced
    build_task: str | None = None

    # Flags
    hidden: bool = False
    composite: bool = False
    transform: bool = False

    # Derivation
    source_entry: ManifestEntry | None = field(default=None, repr=False)
    source_entries: list[ManifestEntry] = field(default_factory=list, repr=False)

    # Build-task specific metadata
    extra: dict[str, Any] = field(default_factory=dict)

    _prepared: bool = field(default=False, init=False, repr=False)

    @classmethod
    def create(
        cls, manifest: Manifest, options: dict[str, Any], prepared: bool = False
    ) -> ManifestEntry:
        """
        Create an entry bound to a manifest from an option mapping.

        Known keys populate the typed fields, the rest go to ``extra``.
        The manifest's entry list is not touched. Pass ``prepared=True`` for
        entries restored from a snapshot, whose derived values are already set.
        """
        known: dict[str, Any] = {}
        extra: dict[str, Any] = dict(options.get("extra") or {})
        for key, value in options.items():
            if key == "extra":
                continue
            if key in ENTRY_FIELDS:
                known[key] = value
            else:
                extra[key] = value

        if "ext" in known:
            known["ext"] = normalize_ext(known["ext"])
        if "source_entries" in known:
            known["source_entries"] = list(known["source_entries"] or [])

        entry = cls(manifest=manifest, extra=extra, **known)
        entry._prepared = prepared
        return entry

    def __getitem__(self, key: str) -> Any:
        if key in ENTRY_FIELDS:
            return getattr(self, key)
        return self.extra.get(key)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a well-known field or an extra value."""
        if key in ENTRY_FIELDS:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)

    def hide(self) -> ManifestEntry:
        """Exclude this entry from default enumeration."""
        self.hidden = True
        return self

    def matches(self, filters: dict[str, Any] | None = None, **kwargs: Any) -> bool:
        """Return True if every filter key equals the stored value."""
        criteria = dict(filters or {}, **kwargs)
        return all(self[key] == value for key, value in criteria.items())

    @property
    def is_raw(self) -> bool:
        """True for entries that map directly to a source file."""
        return not self.composite

    def prepare(self) -> ManifestEntry:
        """
        Fill derived defaults from the owning manifest.

        Runs the optional ``entry:prepare`` task once.
        """
        if self._prepared:
            return self
        self._prepared = True

        manifest = self.manifest
        if self.ext is None:
            _, ext = posixpath.splitext(self.filename)
            self.ext = normalize_ext(ext)
        if self.build_path is None:
            self.build_path = posixpath.join(manifest.build_root, self.filename)
        if self.staging_path is None:
            self.staging_path = posixpath.join(manifest.staging_root, self.filename)
        if self.url is None:
            self.url = posixpath.join(manifest.url_root, self.filename)
        if self.build_task is None:
            self.build_task = DEFAULT_BUILD_TASK

        if manifest.buildfile.task_defined("entry:prepare"):
            manifest.buildfile.invoke("entry:prepare", **manifest.task_context(entry=self))

        return self

    def build(self, dst_path: str | None = None) -> ManifestEntry:
        """
        Produce this entry's output by invoking its build task.

        Args:
            dst_path: Output location. Defaults to the build path.

        Raises:
            BuildTaskError: If the build task is not registered.
        """
        manifest = self.manifest
        task_name = self.build_task or DEFAULT_BUILD_TASK
        if not manifest.buildfile.task_defined(task_name):
            raise BuildTaskError(task_name)

        dst_path = dst_path or self.build_path
        logger.debug("Building %s -> %s with %s", self.filename, dst_path, task_name)
        manifest.buildfile.invoke(
            task_name, **manifest.task_context(entry=self, dst_path=dst_path)
        )
        return self

    def lineage(self) -> list[ManifestEntry]:
        """Return this entry followed by its first source at each step back to a raw file."""
        chain = [self]
        current = self
        while current.source_entries:
            current = current.source_entry or current.source_entries[0]
            chain.append(current)
        return chain

    def to_dict(
        self,
        only: Iterable[str] | None = None,
        except_: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """
        Snapshot all stored attributes as plain values.

        Sources are referenced by filename and by staging path. ``only`` is
        applied before ``except_``.
        """
        data: dict[str, Any] = dict(self.extra)
        for name in ENTRY_FIELDS:
            value = getattr(self, name)
            if name == "source_entry":
                value = value.filename if value is not None else None
            elif name == "source_entries":
                value = [e.filename for e in value]
            data[name] = value
        data["source_staging_paths"] = [e.staging_path for e in self.source_entries]

        if only is not None:
            keep = set(only)
            data = {k: v for k, v in data.items() if k in keep}
        if except_ is not None:
            drop = set(except_)
            data = {k: v for k, v in data.items() if k not in drop}
        return data

    def fingerprint(self) -> str:
        """Hash of the entry snapshot."""
        return xxhash.xxh64(canonical_json_bytes(self.to_dict())).hexdigest()


ENTRY_FIELDS: tuple[str, ...] = tuple(
    f.name for f in fields(ManifestEntry) if f.name not in ("manifest", "extra", "_prepared")
)
