"""
Manifest fingerprints.

Used to decide whether a stored manifest snapshot is still current.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import xxhash

from sproutforge.core.json_canonical import canonical_json_bytes

if TYPE_CHECKING:
    from sproutforge.manifest.manifest import Manifest

# Keys that change between equivalent builds and so are left out of fingerprints.
VOLATILE_KEYS = ("staging_uuid",)


def compute_manifest_hash(manifest: Manifest) -> str:
    """
    Compute a hash of a manifest's content.

    Hidden entries are included: they take part in incremental rebuilds
    even though they are not emitted.

    Returns:
        Hex-encoded hash string.
    """
    content = manifest.to_dict(hidden=True, except_=VOLATILE_KEYS)
    return xxhash.xxh64(canonical_json_bytes(content)).hexdigest()


def compute_file_hash(path: Path) -> str:
    """
    Compute hash of a file's contents.

    Returns:
        Hex-encoded hash string.
    """
    hasher = xxhash.xxh64()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def compare_manifests(manifest_a: Manifest, manifest_b: Manifest) -> dict[str, bool]:
    """
    Compare two manifests for equivalence.

    Returns:
        Dict of comparison results by component.
    """
    files_a = [e.filename for e in manifest_a.entries(hidden=True)]
    files_b = [e.filename for e in manifest_b.entries(hidden=True)]
    return {
        "target_match": manifest_a.target.target_name == manifest_b.target.target_name,
        "language_match": manifest_a.language == manifest_b.language,
        "entry_count_match": len(files_a) == len(files_b),
        "filenames_match": files_a == files_b,
        "overall_hash_match": compute_manifest_hash(manifest_a)
        == compute_manifest_hash(manifest_b),
    }
