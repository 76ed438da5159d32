# src/pipeline/stages.py — v1
"""Stage interfaces for document pipelines.

A pipeline is one reader producing documents lazily, followed by an
ordered sequence of stages that each consume one document and return
one (possibly annotated) document.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator

from cascache.core.models import Document

logger = logging.getLogger(__name__)


class ResourceInitializationError(Exception):
    """Raised when a pipeline component cannot be set up."""


class BaseReader(ABC):
    """Produces a lazy sequence of raw documents."""

    @abstractmethod
    def read(self) -> Iterator[Document]:
        """Yield documents one at a time."""

    def __iter__(self) -> Iterator[Document]:
        return self.read()

    def close(self) -> None:
        """Release resources after the last document was read."""


class BaseStage(ABC):
    """Consumes one document and produces one document."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def process(self, document: Document) -> Document:
        """Process a single document."""

    def close(self) -> None:
        """Called once after the last document went through the stage."""


class PassthroughStage(BaseStage):
    """Stage that leaves every document untouched."""

    def process(self, document: Document) -> Document:
        return document


class StageChain(BaseStage):
    """Ordered list of stages applied one after the other."""

    def __init__(self, stages: Iterable[BaseStage]) -> None:
        self._stages = list(stages)

    @property
    def stages(self) -> list[BaseStage]:
        return list(self._stages)

    @property
    def name(self) -> str:
        return " -> ".join(stage.name for stage in self._stages) or "StageChain"

    def process(self, document: Document) -> Document:
        for stage in self._stages:
            document = stage.process(document)
        return document

    def close(self) -> None:
        for stage in self._stages:
            logger.debug("Closing stage %s", stage.name)
            stage.close()

    def __len__(self) -> int:
        return len(self._stages)
