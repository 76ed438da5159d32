# tests/unit/cache/test_unit_selector.py — v1
"""Tests for cache/selector.py: stage selection from one cache snapshot."""

from __future__ import annotations

import logging

import pytest

from cascache.cache.guard import PollutedCacheError
from cascache.cache.models import CacheConfiguration
from cascache.cache.selector import StageSelector
from cascache.config.settings import ConfigurationError
from cascache.pipeline.description import (
    ChainDescription,
    StageDescription,
    create_chain_description,
)
from cascache.pipeline.stages import PassthroughStage, ResourceInitializationError
from cascache.serialization.xmi import document_to_xmi, type_system_to_xml
from cascache.serialization.xmi_reader import XmiReader
from cascache.serialization.xmi_writer import XmiWriter


def _selector(reader, preprocessing, directory, enabled=True) -> StageSelector:
    return StageSelector(
        reader, preprocessing, CacheConfiguration(enabled=enabled, directory=directory)
    )


class TestEmptyCache:
    def test_uses_original_reader(self, reader_description, tokenizer_description, tmp_cache_dir):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        assert selector.get_caching_reader() is reader_description

    def test_appends_writer_to_preprocessing(
        self, reader_description, tokenizer_description, tmp_cache_dir
    ):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        preprocessing = selector.get_caching_preprocessing()
        assert isinstance(preprocessing, ChainDescription)
        assert preprocessing.names == ["WhitespaceTokenizer", "XmiWriter"]
        assert preprocessing.steps[0] is tokenizer_description
        assert preprocessing.steps[1].component is XmiWriter
        assert preprocessing.steps[1].params == {"target_location": tmp_cache_dir}

    def test_creates_directory(self, reader_description, tokenizer_description, tmp_cache_dir):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        assert selector.state == "unusable"
        assert tmp_cache_dir.is_dir()

    def test_verdict_exposed(self, reader_description, tokenizer_description, tmp_cache_dir):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        assert selector.verdict is None
        selector.select()
        assert selector.verdict is not None
        assert not selector.verdict.usable

    def test_flattens_chained_preprocessing(
        self, reader_description, tokenizer_description, tmp_cache_dir
    ):
        preprocessing = create_chain_description(tokenizer_description, tokenizer_description)
        selector = _selector(reader_description, preprocessing, tmp_cache_dir)
        chain = selector.get_caching_preprocessing()
        assert chain.names == ["WhitespaceTokenizer", "WhitespaceTokenizer", "XmiWriter"]


class TestUsableCache:
    def test_reads_from_cache(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        reader = selector.get_caching_reader()
        assert reader.component is XmiReader
        assert reader.params["source_location"] == populated_cache_dir
        cache_reader = reader.create()
        assert [p.name for p in cache_reader.files()] == [
            "doc_001.xmi", "doc_002.xmi", "doc_003.xmi",
        ]

    def test_preprocessing_is_passthrough(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        preprocessing = selector.get_caching_preprocessing()
        assert isinstance(preprocessing, StageDescription)
        assert preprocessing.component is PassthroughStage

    def test_state_and_verdict(self, reader_description, tokenizer_description, populated_cache_dir):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        pair = selector.select()
        assert pair.state == "usable"
        assert pair.uses_cache
        assert pair.verdict.document_count == 3


class TestDisabledCache:
    def test_ignores_existing_cache(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        selector = _selector(
            reader_description, tokenizer_description, populated_cache_dir, enabled=False
        )
        assert selector.state == "disabled"
        assert selector.get_caching_reader() is reader_description
        assert selector.get_caching_preprocessing().names == [
            "WhitespaceTokenizer", "XmiWriter",
        ]

    def test_set_use_cache_false(self, reader_description, tokenizer_description, populated_cache_dir):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        selector.set_use_cache(False)
        assert not selector.configuration.enabled
        assert selector.select().state == "disabled"

    def test_still_checks_pollution(self, reader_description, tokenizer_description, tmp_cache_dir):
        tmp_cache_dir.mkdir()
        (tmp_cache_dir / "stray.tmp").write_text("x")
        selector = _selector(
            reader_description, tokenizer_description, tmp_cache_dir, enabled=False
        )
        with pytest.raises(PollutedCacheError):
            selector.get_caching_reader()


class TestPollutedCache:
    def test_uppercase_suffixes_rejected(
        self, reader_description, tokenizer_description, tmp_cache_dir, annotated_documents
    ):
        tmp_cache_dir.mkdir()
        (tmp_cache_dir / "typesystem.xml").write_bytes(type_system_to_xml({"Token": {"norm"}}))
        for document in annotated_documents:
            (tmp_cache_dir / f"{document.id}.XMI").write_bytes(document_to_xmi(document))
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        with pytest.raises(PollutedCacheError) as exc_info:
            selector.get_caching_reader()
        assert exc_info.value.count == 3

    def test_reader_accessor_fails(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        (populated_cache_dir / "stray.tmp").write_text("x")
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        with pytest.raises(PollutedCacheError) as exc_info:
            selector.get_caching_reader()
        assert exc_info.value.count == 1

    def test_preprocessing_accessor_fails(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        (populated_cache_dir / "stray.tmp").write_text("x")
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        with pytest.raises(ResourceInitializationError):
            selector.get_caching_preprocessing()

    def test_failure_not_remembered(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        stray = populated_cache_dir / "stray.tmp"
        stray.write_text("x")
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        with pytest.raises(PollutedCacheError):
            selector.select()
        stray.unlink()
        assert selector.state == "usable"


class TestSnapshotConsistency:
    def test_cache_appearing_between_accessors(
        self, reader_description, tokenizer_description, tmp_cache_dir, annotated_documents
    ):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        reader = selector.get_caching_reader()

        (tmp_cache_dir / "typesystem.xml").write_bytes(type_system_to_xml({"Token": {"norm"}}))
        (tmp_cache_dir / "doc_001.xmi").write_bytes(document_to_xmi(annotated_documents[0]))

        preprocessing = selector.get_caching_preprocessing()
        assert reader is reader_description
        assert preprocessing.names[-1] == "XmiWriter"

    def test_cache_vanishing_between_accessors(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        reader = selector.get_caching_reader()
        for xmi in populated_cache_dir.glob("*.xmi"):
            xmi.unlink()
        preprocessing = selector.get_caching_preprocessing()
        assert reader.component is XmiReader
        assert preprocessing.component is PassthroughStage

    def test_reset_takes_new_snapshot(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        assert selector.state == "usable"
        (populated_cache_dir / "typesystem.xml").unlink()
        assert selector.state == "usable"
        selector.reset()
        assert selector.state == "unusable"

    def test_select_returns_same_pair(self, reader_description, tokenizer_description, tmp_cache_dir):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        assert selector.select() is selector.select()


class TestConfigurationFreeze:
    def test_setters_before_selection(
        self, reader_description, tokenizer_description, tmp_cache_dir, tokenizer_class
    ):
        from cascache.pipeline.description import create_stage_description

        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        other = create_stage_description(tokenizer_class)
        selector.set_original_preprocessing(other)
        selector.set_original_reader(reader_description)
        assert selector.get_caching_preprocessing().steps[0] is other

    @pytest.mark.parametrize(
        "call",
        [
            lambda s, r, p: s.set_use_cache(False),
            lambda s, r, p: s.set_original_reader(r),
            lambda s, r, p: s.set_original_preprocessing(p),
        ],
    )
    def test_setters_rejected_after_selection(
        self, reader_description, tokenizer_description, tmp_cache_dir, call
    ):
        selector = _selector(reader_description, tokenizer_description, tmp_cache_dir)
        selector.select()
        with pytest.raises(ConfigurationError, match="reset"):
            call(selector, reader_description, tokenizer_description)

    def test_setter_allowed_after_reset(
        self, reader_description, tokenizer_description, populated_cache_dir
    ):
        selector = _selector(reader_description, tokenizer_description, populated_cache_dir)
        assert selector.state == "usable"
        selector.reset()
        selector.set_use_cache(False)
        assert selector.state == "disabled"


class TestLogging:
    def test_logs_missing_cache(
        self, reader_description, tokenizer_description, tmp_cache_dir, caplog
    ):
        caplog.set_level(logging.INFO, logger="cascache")
        _selector(reader_description, tokenizer_description, tmp_cache_dir).select()
        assert "No cached documents found" in caplog.text
        assert "disabled" not in caplog.text

    def test_logs_disabled_cache(
        self, reader_description, tokenizer_description, tmp_cache_dir, caplog
    ):
        caplog.set_level(logging.INFO, logger="cascache")
        _selector(reader_description, tokenizer_description, tmp_cache_dir, enabled=False).select()
        assert "Caching disabled by configuration" in caplog.text
        assert "No cached documents found" not in caplog.text

    def test_no_info_on_cache_hit(
        self, reader_description, tokenizer_description, populated_cache_dir, caplog
    ):
        caplog.set_level(logging.INFO, logger="cascache")
        _selector(reader_description, tokenizer_description, populated_cache_dir).select()
        assert "original reader" not in caplog.text


class TestCustomComponents:
    def test_custom_writer_component(
        self, reader_description, tokenizer_description, tmp_cache_dir, tokenizer_class
    ):
        selector = StageSelector(
            reader_description,
            tokenizer_description,
            CacheConfiguration(directory=tmp_cache_dir),
            writer_component=tokenizer_class,
        )
        assert selector.get_caching_preprocessing().steps[-1].component is tokenizer_class

    def test_custom_reader_component(
        self, reader_description, tokenizer_description, populated_cache_dir, in_memory_reader_class
    ):
        selector = StageSelector(
            reader_description,
            tokenizer_description,
            CacheConfiguration(directory=populated_cache_dir),
            reader_component=in_memory_reader_class,
        )
        assert selector.get_caching_reader().component is in_memory_reader_class
