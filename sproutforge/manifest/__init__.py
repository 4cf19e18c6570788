"""Manifests and their entries."""

from sproutforge.manifest.entry import ManifestEntry, normalize_ext, replace_ext
from sproutforge.manifest.hash import compare_manifests, compute_file_hash, compute_manifest_hash
from sproutforge.manifest.manifest import Manifest
from sproutforge.manifest.store import ManifestStore

__all__ = [
    "Manifest",
    "ManifestEntry",
    "ManifestStore",
    "normalize_ext",
    "replace_ext",
    "compute_manifest_hash",
    "compute_file_hash",
    "compare_manifests",
]
