# src/cache/selector.py — v1
"""Stage selector: swap "read + preprocess" for "read cache + no-op".

Typical usage:
    selector = StageSelector(reader, preprocessing, CacheConfiguration(directory=d))
    run_pipeline(selector.get_caching_reader(), selector.get_caching_preprocessing())

On the first run the cache is empty: the original reader is used and a
cache-writing stage is appended to the preprocessing. On later runs the
cached documents are read back and the preprocessing becomes a
passthrough.

The cache state is evaluated once, on the first accessor call, and both
accessors answer from that snapshot. Configuration setters are rejected
from then on until reset() is called.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cascache.cache.detector import detect
from cascache.cache.guard import ensure_clean
from cascache.cache.layout import DOCUMENT_PATTERN
from cascache.cache.models import CacheConfiguration, CacheState, CacheVerdict, StagePair
from cascache.config.settings import ConfigurationError
from cascache.pipeline.description import (
    create_chain_description,
    create_reader_description,
    create_stage_description,
)
from cascache.pipeline.stages import PassthroughStage
from cascache.serialization.xmi_reader import XmiReader
from cascache.serialization.xmi_writer import XmiWriter

if TYPE_CHECKING:
    from cascache.pipeline.description import (
        PreprocessingDescription,
        ReaderDescription,
    )
    from cascache.pipeline.stages import BaseReader, BaseStage

logger = logging.getLogger(__name__)


class StageSelector:
    """Hand out the reader and preprocessing to plug into a pipeline.

    Args:
        original_reader: Description of the source reader.
        original_preprocessing: Description of the expensive preprocessing.
        configuration: Whether to use the cache, and its directory.
        reader_component: Reader class used to read the cache back. It is
            constructed with source_location and pattern.
        writer_component: Stage class persisting documents. It is
            constructed with target_location.
    """

    def __init__(
        self,
        original_reader: ReaderDescription,
        original_preprocessing: PreprocessingDescription,
        configuration: CacheConfiguration,
        reader_component: type[BaseReader] = XmiReader,
        writer_component: type[BaseStage] = XmiWriter,
    ) -> None:
        self._original_reader = original_reader
        self._original_preprocessing = original_preprocessing
        self._configuration = configuration
        self._reader_component = reader_component
        self._writer_component = writer_component
        self._selection: StagePair | None = None

    # --- Configuration (before first selection) ---

    @property
    def configuration(self) -> CacheConfiguration:
        return self._configuration

    def set_original_reader(self, reader: ReaderDescription) -> None:
        self._ensure_not_selected("original reader")
        self._original_reader = reader

    def set_original_preprocessing(self, preprocessing: PreprocessingDescription) -> None:
        self._ensure_not_selected("original preprocessing")
        self._original_preprocessing = preprocessing

    def set_use_cache(self, enabled: bool) -> None:
        self._ensure_not_selected("cache toggle")
        self._configuration = self._configuration.model_copy(update={"enabled": enabled})

    def reset(self) -> None:
        """Forget the current selection; the next accessor re-inspects the cache."""
        self._selection = None

    # --- Selection ---

    @property
    def verdict(self) -> CacheVerdict | None:
        """Cache verdict of the current selection, if any."""
        return self._selection.verdict if self._selection is not None else None

    @property
    def state(self) -> CacheState:
        return self.select().state

    def get_caching_reader(self) -> ReaderDescription:
        """Reader to use: the cache reader on a usable cache, else the original."""
        return self.select().reader

    def get_caching_preprocessing(self) -> PreprocessingDescription:
        """Preprocessing to use: a passthrough on a usable cache, else original + writer."""
        return self.select().preprocessing

    def select(self) -> StagePair:
        """Return the selected stages, inspecting the cache on first call.

        Raises:
            PollutedCacheError: The cache directory contains foreign entries.
        """
        if self._selection is None:
            self._selection = self._build_selection()
        return self._selection

    def _build_selection(self) -> StagePair:
        directory = self._configuration.directory
        ensure_clean(directory)

        if not self._configuration.enabled:
            logger.info(
                "Caching disabled by configuration; using original reader "
                "and writing results to %s",
                directory,
            )
            return self._uncached_pair("disabled", verdict=None)

        verdict = detect(directory)
        if not verdict.usable:
            logger.info(
                "No cached documents found in %s; using original reader",
                directory,
            )
            return self._uncached_pair("unusable", verdict=verdict)

        logger.debug(
            "Using %d cached document(s) from %s", verdict.document_count, directory
        )
        return StagePair(
            state="usable",
            reader=create_reader_description(
                self._reader_component,
                source_location=directory,
                pattern=DOCUMENT_PATTERN,
            ),
            preprocessing=create_stage_description(PassthroughStage),
            verdict=verdict,
        )

    def _uncached_pair(
        self, state: CacheState, verdict: CacheVerdict | None
    ) -> StagePair:
        writer = create_stage_description(
            self._writer_component, target_location=self._configuration.directory
        )
        return StagePair(
            state=state,
            reader=self._original_reader,
            preprocessing=create_chain_description(self._original_preprocessing, writer),
            verdict=verdict,
        )

    def _ensure_not_selected(self, what: str) -> None:
        if self._selection is not None:
            raise ConfigurationError(
                f"Cannot change the {what} after stages were selected; call reset() first"
            )
