"""
Build manifest.

A manifest describes every file that a single target produces for one
language. Build tasks populate it through ``add_entry``,
``add_composite`` and ``add_transform``; the order entries are added in
is the order lookups see them.
"""

from __future__ import annotations

import posixpath
import re
import threading
from typing import TYPE_CHECKING, Any, Iterable

from sproutforge.core.json_canonical import canonical_json_dumps
from sproutforge.core.logger import get_logger
from sproutforge.manifest.entry import ManifestEntry, normalize_ext, replace_ext

if TYPE_CHECKING:
    from sproutforge.project.target import Target
    from sproutforge.project.tasks import TaskInvoker

logger = get_logger(__name__)

# Disambiguator inserted before the extension of a colliding staging path.
STAGING_UUID_MARKER = "__$"
_STAGING_SUFFIX_RE = re.compile(r"(__\$[0-9]+)?(\.\w+)?$")

RESERVED_KEYS = ("entries", "target_name")


class Manifest:
    """
    All entries for one (target, language) pair.

    Lifecycle: ``prepare()`` runs one-time setup, ``build()`` discards every
    entry and re-runs the ``manifest:build`` task. Mutating a manifest is
    not thread-safe; preparation is.
    """

    def __init__(
        self,
        target: Target,
        language: str = "en",
        buildfile: TaskInvoker | None = None,
        build_root: str | None = None,
        staging_root: str | None = None,
        url_root: str | None = None,
        **extra: Any,
    ):
        self.target = target
        self.buildfile = buildfile if buildfile is not None else target.buildfile
        self.language = language

        config = target.config
        self.build_root = build_root or posixpath.join(
            config.build_root, target.target_name.strip("/"), language
        )
        self.staging_root = staging_root or posixpath.join(
            config.staging_root, target.target_name.strip("/"), language
        )
        self.url_root = url_root or posixpath.join(
            config.url_root, target.target_name.strip("/"), language
        )
        self.staging_uuid = 0
        self.extra: dict[str, Any] = dict(extra)

        self._entries: list[ManifestEntry] = []
        self._is_prepared = False
        self._is_preparing = False
        self._prepare_lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"Manifest(target={self.target.target_name!r}, language={self.language!r}, "
            f"entries={len(self._entries)})"
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def prepared(self) -> bool:
        return self._is_prepared

    def task_context(self, **kwargs: Any) -> dict[str, Any]:
        """Context passed to every task invoked on behalf of this manifest."""
        context = {
            "manifest": self,
            "target": self.target,
            "config": self.target.config,
            "project": self.target.project,
        }
        context.update(kwargs)
        return context

    def prepare(self) -> Manifest:
        """
        Run one-time setup. Calling it again is a no-op.

        Concurrent callers block until setup has finished. A prepare hook
        that calls back into ``prepare()`` on the same thread returns at once.

        Returns:
            self
        """
        with self._prepare_lock:
            if self._is_prepared or self._is_preparing:
                return self
            self._is_preparing = True
            try:
                logger.debug(
                    "Preparing manifest %s/%s", self.target.target_name, self.language
                )
                self.target.prepare()
                if self.buildfile.task_defined("manifest:prepare"):
                    self.buildfile.invoke("manifest:prepare", **self.task_context())
                self._is_prepared = True
            finally:
                self._is_preparing = False
        return self

    def build(self) -> Manifest:
        """
        Prepare, discard all entries and invoke the ``manifest:build`` task.

        Every call starts from an empty entry list.
        """
        self.prepare()
        self.reset_entries()
        logger.debug("Building manifest %s/%s", self.target.target_name, self.language)
        if self.buildfile.task_defined("manifest:build"):
            self.buildfile.invoke("manifest:build", **self.task_context())
        return self

    def reset_entries(self) -> Manifest:
        """Drop every entry, hidden ones included. Other stored values are kept."""
        self._entries = []
        return self

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def entries(self, hidden: bool = False) -> list[ManifestEntry]:
        """Entries in insertion order; hidden ones only when asked for."""
        if hidden:
            return list(self._entries)
        return [e for e in self._entries if not e.hidden]

    def __iter__(self):
        return iter(self.entries())

    def _append(self, options: dict[str, Any]) -> ManifestEntry:
        entry = ManifestEntry.create(self, options)
        self._entries.append(entry)
        return entry.prepare()

    def add_entry(self, filename: str, **options: Any) -> ManifestEntry:
        """
        Create, append and prepare an entry for a source file.

        Returns:
            The new entry.
        """
        options["filename"] = filename
        return self._append(options)

    def add_composite(
        self,
        filename: str,
        source_entries: Iterable[ManifestEntry] | None = None,
        hide_entries: bool = True,
        **options: Any,
    ) -> ManifestEntry:
        """
        Create an entry built from several source entries.

        The sources are hidden unless ``hide_entries`` is False.
        """
        options["filename"] = filename
        options["source_entries"] = list(source_entries or [])
        options["composite"] = True
        entry = self._append(options)

        if hide_entries:
            for source in entry.source_entries:
                source.hide()
        return entry

    def add_transform(self, entry: ManifestEntry, **options: Any) -> ManifestEntry:
        """
        Derive a new entry from exactly one source entry.

        ``filename``, ``build_path`` and ``url`` are copied from the source
        unless given. The staging path is made unique. When ``ext`` is given
        every path is rewritten to use it; otherwise the source extension is
        kept. The source entry is hidden.

        Options:
            build_task: Task that produces the transformed output.
            ext: New file extension.

        Returns:
            The new entry.
        """
        for key in ("filename", "build_path", "url"):
            if options.get(key) is None:
                options[key] = getattr(entry, key)

        explicit_staging_path = options.get("staging_path") is not None
        if not explicit_staging_path:
            options["staging_path"] = self.unique_staging_path(entry.staging_path)
        options["source_entry"] = entry
        options["source_entries"] = [entry]
        options["composite"] = True
        options["transform"] = True

        ext = normalize_ext(options.get("ext"))
        if ext:
            for key in ("filename", "build_path", "staging_path", "url"):
                if options[key] is not None:
                    options[key] = replace_ext(options[key], ext)
            options["ext"] = ext
            if not explicit_staging_path:
                options["staging_path"] = self.unique_staging_path(options["staging_path"])
        else:
            options["ext"] = entry.ext

        result = self._append(options)
        entry.hide()
        return result

    def entry_for(self, filename: str, hidden: bool = False, **filters: Any) -> ManifestEntry | None:
        """
        First entry with the given filename that matches ``filters``.

        Hidden entries are considered only when ``hidden`` is True.
        """
        for entry in self.entries(hidden=hidden):
            if entry.filename == filename and entry.matches(filters):
                return entry
        return None

    def find_entry(self, fragment: str, hidden: bool = False, **filters: Any) -> ManifestEntry | None:
        """
        Resolve a static asset reference that may omit its extension or
        leading directories.

        The first local entry in insertion order wins. Otherwise the
        manifests of required targets in the same language are searched
        depth first, each target at most once.
        """
        found = self._find_local_entry(fragment, hidden, filters)
        if found is not None:
            return found

        visited = {self.target.target_name}
        stack = list(reversed(self.target.required_targets()))
        while stack:
            target = stack.pop()
            if target.target_name in visited:
                continue
            visited.add(target.target_name)

            manifest = target.manifest_for(self.language).prepare()
            found = manifest._find_local_entry(fragment, hidden, filters)
            if found is not None:
                logger.debug(
                    "Resolved %r from required target %s", fragment, target.target_name
                )
                return found
            stack.extend(reversed(target.required_targets()))

        logger.debug("No entry for %r (searched %s)", fragment, sorted(visited))
        return None

    def _find_local_entry(
        self, fragment: str, hidden: bool, filters: dict[str, Any]
    ) -> ManifestEntry | None:
        rootname, extname = posixpath.splitext(fragment)
        rootname = rootname.lstrip("/")

        for entry in self.entries(hidden=hidden):
            if not entry.matches(filters):
                continue
            entry_root, entry_ext = posixpath.splitext(entry.filename)
            if extname and entry_ext != extname:
                continue
            if entry_root == rootname or entry_root.endswith("/" + rootname):
                return entry
        return None

    # ------------------------------------------------------------------
    # Staging paths
    # ------------------------------------------------------------------

    def unique_staging_path(self, path: str) -> str:
        """
        Return ``path``, or a variant of it no entry (hidden included) uses.

        Variants carry ``__$N`` before the extension, where N comes from a
        counter that only ever increases for this manifest.
        """
        taken = {e.staging_path for e in self._entries}
        while path in taken:
            uuid = self._next_staging_uuid()
            path = _STAGING_SUFFIX_RE.sub(
                lambda m: f"{STAGING_UUID_MARKER}{uuid}{m.group(2) or ''}", path, count=1
            )
        return path

    def _next_staging_uuid(self) -> int:
        self.staging_uuid += 1
        return self.staging_uuid

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _stored_values(self) -> dict[str, Any]:
        data = dict(self.extra)
        data.update(
            language=self.language,
            build_root=self.build_root,
            staging_root=self.staging_root,
            url_root=self.url_root,
            staging_uuid=self.staging_uuid,
        )
        return data

    def to_dict(
        self,
        only: Iterable[str] | None = None,
        except_: Iterable[str] | None = None,
        hidden: bool = False,
    ) -> dict[str, Any]:
        """
        Snapshot stored values plus serialized entries and the target name.

        ``only`` is applied before the entries are added and ``except_``
        after, so entries are always present unless explicitly excluded.
        """
        data = self._stored_values()
        if only is not None:
            only = list(only)
            data = {k: v for k, v in data.items() if k in only}

        data["entries"] = [e.to_dict(only=only, except_=except_) for e in self.entries(hidden)]

        if except_ is not None:
            except_ = list(except_)
            data = {k: v for k, v in data.items() if k not in except_}

        data["target_name"] = self.target.target_name
        return data

    def to_json(self, indent: bool = True, hidden: bool = True) -> str:
        """Serialize to canonical JSON."""
        return canonical_json_dumps(self.to_dict(hidden=hidden), indent=indent)

    def load(self, data: dict[str, Any]) -> Manifest:
        """
        Replace stored values and entries with a snapshot.

        Source links are rebound to the loaded entries by staging path,
        falling back to the nearest preceding entry with the same filename.
        """
        data = dict(data)
        entry_dicts = data.get("entries") or []
        for key in RESERVED_KEYS:
            data.pop(key, None)

        for key in ("language", "build_root", "staging_root", "url_root"):
            if key in data:
                setattr(self, key, data.pop(key))
        self.staging_uuid = max(self.staging_uuid, int(data.pop("staging_uuid", 0) or 0))
        self.extra.update(data)

        self._entries = []
        by_staging_path: dict[str, ManifestEntry] = {}
        for snapshot in entry_dicts:
            options = dict(snapshot)
            source_names = options.pop("source_entries", None) or []
            source_paths = options.pop("source_staging_paths", None) or []
            options.pop("source_entry", None)

            sources = self._resolve_sources(source_names, source_paths, by_staging_path)
            options["source_entries"] = sources
            if options.get("transform") and sources:
                options["source_entry"] = sources[0]

            entry = ManifestEntry.create(self, options, prepared=True)
            self._entries.append(entry)
            if entry.staging_path is not None:
                by_staging_path[entry.staging_path] = entry
        return self

    def _resolve_sources(
        self,
        names: list[str],
        staging_paths: list[str],
        by_staging_path: dict[str, ManifestEntry],
    ) -> list[ManifestEntry]:
        resolved = []
        for index, name in enumerate(names):
            source = None
            if index < len(staging_paths):
                source = by_staging_path.get(staging_paths[index])
            if source is None:
                source = next(
                    (e for e in reversed(self._entries) if e.filename == name), None
                )
            if source is not None:
                resolved.append(source)
        return resolved
