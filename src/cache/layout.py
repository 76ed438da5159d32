# src/cache/layout.py — v2
"""Cache directory structure definition.

A cache directory is flat: one schema descriptor at a well-known name
plus one serialized-document file per cached document. Nothing else.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

SCHEMA_DESCRIPTOR_NAME = "typesystem.xml"
SCHEMA_SUFFIX = ".xml"
DOCUMENT_SUFFIX = ".xmi"
DOCUMENT_PATTERN = f"*{DOCUMENT_SUFFIX}"

RECOGNIZED_SUFFIXES = (DOCUMENT_SUFFIX, SCHEMA_SUFFIX)


def schema_descriptor_path(directory: Path) -> Path:
    """Return the path of the schema descriptor inside a cache directory."""
    return directory / SCHEMA_DESCRIPTOR_NAME


def document_path(directory: Path, document_id: str) -> Path:
    """Return the path a document with the given id is cached under."""
    return directory / f"{safe_file_stem(document_id)}{DOCUMENT_SUFFIX}"


def safe_file_stem(document_id: str) -> str:
    """Turn a document id into a file name stem.

    Percent-encoding keeps distinct ids on distinct files.
    """
    return quote(document_id, safe="")


def is_recognized_entry(entry: Path) -> bool:
    """True if entry is a regular file carrying a cache-artifact suffix."""
    return entry.is_file() and entry.suffix in RECOGNIZED_SUFFIXES


def is_serialized_document(entry: Path) -> bool:
    return entry.is_file() and entry.suffix == DOCUMENT_SUFFIX
