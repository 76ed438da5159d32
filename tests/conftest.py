# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides sample documents, in-memory reader and tokenizer components,
and cache directories in the various states a pipeline can meet.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from cascache.cache.models import CacheConfiguration
from cascache.core.models import Annotation, Document
from cascache.pipeline.description import (
    create_reader_description,
    create_stage_description,
)
from cascache.pipeline.stages import BaseReader, BaseStage
from cascache.serialization.xmi import document_to_xmi, type_system_to_xml


# === Test components ===


class InMemoryReader(BaseReader):
    """Reader yielding a fixed list of documents; records each read in reads."""

    def __init__(self, documents: list[Document], reads: list[str] | None = None) -> None:
        self._documents = documents
        self._reads = reads if reads is not None else []

    def read(self) -> Iterator[Document]:
        for document in self._documents:
            self._reads.append(document.id)
            yield document


class WhitespaceTokenizer(BaseStage):
    """Adds one Token annotation per whitespace-separated word; records calls in seen."""

    def __init__(self, seen: list[str] | None = None) -> None:
        self._seen = seen if seen is not None else []

    def process(self, document: Document) -> Document:
        self._seen.append(document.id)
        tokens: list[Annotation] = []
        position = 0
        for word in document.text.split():
            begin = document.text.index(word, position)
            end = begin + len(word)
            tokens.append(
                Annotation(type="Token", begin=begin, end=end, features={"norm": word.lower()})
            )
            position = end
        return document.model_copy(update={"annotations": document.annotations + tokens})


class FailingStage(BaseStage):
    """Stage whose construction always fails."""

    def __init__(self) -> None:
        raise RuntimeError("model file missing")

    def process(self, document: Document) -> Document:  # pragma: no cover
        return document


# === FIXTURES: Logging ===


@pytest.fixture(autouse=True)
def reset_cascache_logger():
    """Drop handlers installed by setup_logging() so they do not outlive a test."""
    yield
    root = logging.getLogger("cascache")
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_document() -> Document:
    """Minimal document with one sentence annotation."""
    return Document(
        id="doc_001",
        text="The European Union regulates cybersecurity.",
        annotations=[Annotation(type="Sentence", begin=0, end=43)],
        metadata={"source": "report.txt"},
    )


@pytest.fixture
def sample_documents() -> list[Document]:
    """Three raw documents, no annotations."""
    return [
        Document(id="doc_001", text="The European Union regulates cybersecurity."),
        Document(id="doc_002", text="The directive applies to essential entities."),
        Document(id="doc_003", text="Member states must transpose it."),
    ]


@pytest.fixture
def annotated_documents(sample_documents: list[Document]) -> list[Document]:
    """sample_documents after WhitespaceTokenizer."""
    tokenizer = WhitespaceTokenizer()
    return [tokenizer.process(d) for d in sample_documents]


# === FIXTURES: Components ===


@pytest.fixture
def reads() -> list[str]:
    """Ids of documents produced by the original reader."""
    return []


@pytest.fixture
def seen() -> list[str]:
    """Ids of documents processed by the original preprocessing."""
    return []


@pytest.fixture
def reader_description(sample_documents: list[Document], reads: list[str]):
    return create_reader_description(InMemoryReader, documents=sample_documents, reads=reads)


@pytest.fixture
def tokenizer_description(seen: list[str]):
    return create_stage_description(WhitespaceTokenizer, seen=seen)


@pytest.fixture
def failing_stage_class() -> type[BaseStage]:
    return FailingStage


@pytest.fixture
def tokenizer_class() -> type[BaseStage]:
    return WhitespaceTokenizer


@pytest.fixture
def in_memory_reader_class() -> type[BaseReader]:
    return InMemoryReader


# === FIXTURES: Cache directories ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Cache directory path that does not exist yet."""
    return tmp_path / "cache"


@pytest.fixture
def populated_cache_dir(tmp_path: Path, annotated_documents: list[Document]) -> Path:
    """Cache directory holding typesystem.xml and three .xmi files."""
    cache = tmp_path / "populated-cache"
    cache.mkdir()
    (cache / "typesystem.xml").write_bytes(type_system_to_xml({"Token": {"norm"}}))
    for document in annotated_documents:
        (cache / f"{document.id}.xmi").write_bytes(document_to_xmi(document))
    return cache


@pytest.fixture
def cache_config(tmp_cache_dir: Path) -> CacheConfiguration:
    return CacheConfiguration(directory=tmp_cache_dir)
