# src/serialization/xmi_reader.py — v1
"""Reader producing documents previously written by XmiWriter."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from cascache.cache.layout import DOCUMENT_PATTERN, schema_descriptor_path
from cascache.core.models import Document
from cascache.pipeline.stages import BaseReader, ResourceInitializationError
from cascache.serialization.xmi import (
    TypeSystem,
    document_from_xmi,
    type_system_from_xml,
)

logger = logging.getLogger(__name__)


class XmiReader(BaseReader):
    """Scan source_location for XMI files and decode them lazily.

    The type system descriptor must sit next to the XMI files; it is loaded
    at construction and every decoded annotation is checked against it.
    """

    def __init__(
        self, source_location: Path | str, pattern: str = DOCUMENT_PATTERN
    ) -> None:
        self._source = Path(source_location).expanduser()
        self._pattern = pattern

        if not self._source.is_dir():
            raise ResourceInitializationError(
                f"XMI source location is not a directory: {self._source}"
            )
        schema_path = schema_descriptor_path(self._source)
        if not schema_path.is_file():
            raise ResourceInitializationError(
                f"Type system descriptor not found: {schema_path}"
            )
        self._type_system: TypeSystem = type_system_from_xml(schema_path.read_bytes())

    @property
    def source_location(self) -> Path:
        return self._source

    @property
    def type_system(self) -> TypeSystem:
        return {name: set(features) for name, features in self._type_system.items()}

    def files(self) -> list[Path]:
        """Matching XMI files in name order (non-recursive)."""
        return sorted(p for p in self._source.glob(self._pattern) if p.is_file())

    def read(self) -> Iterator[Document]:
        files = self.files()
        logger.info("Reading %d cached document(s) from %s", len(files), self._source)
        for path in files:
            yield document_from_xmi(path.read_bytes(), self._type_system)
