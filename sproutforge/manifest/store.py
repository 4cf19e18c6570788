"""
On-disk manifest snapshots for incremental builds.

Structure:
    cache_dir/
        {target_name}/
            {language}.json
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from sproutforge.core.json_canonical import canonical_json_dumps, canonical_json_loads
from sproutforge.core.logger import get_logger
from sproutforge.manifest.hash import compute_manifest_hash

if TYPE_CHECKING:
    from sproutforge.manifest.manifest import Manifest

logger = get_logger(__name__)


class ManifestStore:
    """Saves and restores manifest snapshots under a cache directory."""

    def __init__(self, cache_dir: Path):
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, target_name: str, language: str) -> Path:
        """Snapshot path for a target/language pair."""
        return self.cache_dir / target_name.strip("/") / f"{language}.json"

    def save(self, manifest: Manifest) -> Path:
        """Write the manifest, hidden entries included, and its fingerprint."""
        path = self.path_for(manifest.target.target_name, manifest.language)
        path.parent.mkdir(parents=True, exist_ok=True)

        document = manifest.to_dict(hidden=True)
        document["manifest_hash"] = compute_manifest_hash(manifest)
        path.write_text(canonical_json_dumps(document, indent=True))
        logger.debug("Saved manifest snapshot %s", path)
        return path

    def read(self, target_name: str, language: str) -> dict[str, Any] | None:
        """Return the stored snapshot, or None if there is none."""
        path = self.path_for(target_name, language)
        if not path.exists():
            return None
        return canonical_json_loads(path.read_text())

    def load_into(self, manifest: Manifest) -> bool:
        """
        Load the stored snapshot into ``manifest``.

        Returns:
            True if a snapshot was found and loaded.
        """
        document = self.read(manifest.target.target_name, manifest.language)
        if document is None:
            return False
        document.pop("manifest_hash", None)
        manifest.load(document)
        logger.debug(
            "Loaded manifest snapshot for %s/%s", manifest.target.target_name, manifest.language
        )
        return True

    def is_current(self, manifest: Manifest) -> bool:
        """True if the stored snapshot has the same fingerprint as ``manifest``."""
        document = self.read(manifest.target.target_name, manifest.language)
        if document is None:
            return False
        return document.get("manifest_hash") == compute_manifest_hash(manifest)

    def delete(self, target_name: str, language: str) -> bool:
        """
        Remove a stored snapshot.

        Returns:
            True if deleted, False if not found.
        """
        path = self.path_for(target_name, language)
        if not path.exists():
            return False
        path.unlink()
        return True
