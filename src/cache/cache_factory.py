# src/cache/cache_factory.py — v3
"""Factory for stage selector instantiation from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from cascache.cache.models import CacheConfiguration
from cascache.cache.selector import StageSelector
from cascache.config.settings import Settings

if TYPE_CHECKING:
    from cascache.pipeline.description import (
        PreprocessingDescription,
        ReaderDescription,
    )


def create_stage_selector(
    reader: ReaderDescription,
    preprocessing: PreprocessingDescription,
    settings: Settings | None = None,
) -> StageSelector:
    """Build a StageSelector configured from settings.

    Args:
        reader: Description of the source reader.
        preprocessing: Description of the preprocessing to cache.
        settings: Application settings. Loaded from the environment if None.

    Returns:
        StageSelector whose cache toggle and directory come from settings.
    """
    if settings is None:
        settings = Settings()
    return StageSelector(
        original_reader=reader,
        original_preprocessing=preprocessing,
        configuration=CacheConfiguration.from_settings(settings),
    )
