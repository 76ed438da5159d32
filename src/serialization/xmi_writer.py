# src/serialization/xmi_writer.py — v2
"""Stage persisting each processed document as an XMI file.

The type system descriptor is written when the first document arrives and
rewritten only if a later document carries an annotation type or feature
that is not described yet.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cascache.cache.layout import document_path, schema_descriptor_path
from cascache.core.models import Document
from cascache.pipeline.stages import BaseStage
from cascache.serialization.xmi import TypeSystem, document_to_xmi, type_system_to_xml

logger = logging.getLogger(__name__)


class XmiWriter(BaseStage):
    """Write documents to target_location as <percent-encoded document id>.xmi."""

    def __init__(self, target_location: Path | str) -> None:
        self._target = Path(target_location).expanduser()
        self._target.mkdir(parents=True, exist_ok=True)
        self._type_system: TypeSystem = {}
        self._type_system_written = False
        self._written = 0

    @property
    def target_location(self) -> Path:
        return self._target

    @property
    def documents_written(self) -> int:
        return self._written

    def process(self, document: Document) -> Document:
        payload = document_to_xmi(document)
        if self._merge_types(document) or not self._type_system_written:
            self._write_type_system()

        path = document_path(self._target, document.id)
        path.write_bytes(payload)
        self._written += 1
        logger.debug("Cached document %s at %s", document.id, path)
        return document

    def close(self) -> None:
        logger.info(
            "Wrote %d document(s) to cache directory %s", self._written, self._target
        )

    def _merge_types(self, document: Document) -> bool:
        """Add the document's types to the known type system; True if it grew."""
        changed = False
        for type_name, features in document.annotation_types.items():
            known = self._type_system.get(type_name)
            if known is None or not features <= known:
                changed = True
            self._type_system.setdefault(type_name, set()).update(features)
        return changed

    def _write_type_system(self) -> None:
        path = schema_descriptor_path(self._target)
        path.write_bytes(type_system_to_xml(self._type_system))
        self._type_system_written = True
        logger.debug("Wrote type system with %d type(s) to %s", len(self._type_system), path)
