# src/cache/detector.py — v1
"""Cache state detection.

Presence check only: the number of cached documents is not compared
against what the source reader would produce, and the schema is not
compared against the current preprocessing. A stale or partially
written cache is therefore accepted as long as both artifacts exist.
"""

from __future__ import annotations

from pathlib import Path

from cascache.cache.layout import is_serialized_document, schema_descriptor_path
from cascache.cache.models import CacheVerdict


def list_serialized_documents(directory: Path) -> list[Path]:
    """Return serialized-document entries of directory, sorted by name."""
    if not directory.is_dir():
        return []
    return sorted(
        entry for entry in directory.iterdir() if is_serialized_document(entry)
    )


def detect(directory: Path) -> CacheVerdict:
    """Inspect directory and report whether it holds a usable cache.

    Has no side effects; a missing or empty directory is simply unusable.
    """
    directory = Path(directory)
    return CacheVerdict(
        directory=directory,
        has_schema=schema_descriptor_path(directory).is_file(),
        documents=tuple(list_serialized_documents(directory)),
    )
