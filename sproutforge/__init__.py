"""
SproutForge: build manifests, asset transforms and CSS spriting.

Describes every source file of a target per language, derives the
composite and transformed entries a build emits, and packs image slices
into sprite sheets.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
