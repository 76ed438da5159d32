# src/cache/models.py — v2
"""Cache domain models: CacheConfiguration, CacheVerdict, StagePair."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from cascache.config.settings import Settings
    from cascache.pipeline.description import (
        PreprocessingDescription,
        ReaderDescription,
    )

CacheState = Literal["disabled", "unusable", "usable"]


class CacheConfiguration(BaseModel):
    """Caller-owned cache settings: whether to use the cache, and where it lives."""

    enabled: bool = True
    directory: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> CacheConfiguration:
        return cls(
            enabled=settings.cache_enabled,
            directory=settings.cache_directory.expanduser(),
        )


class CacheVerdict(BaseModel):
    """Snapshot of a cache directory's usability.

    Usable iff the schema descriptor is present and at least one
    serialized document exists next to it.
    """

    model_config = ConfigDict(frozen=True)

    directory: Path
    has_schema: bool = False
    documents: tuple[Path, ...] = Field(default_factory=tuple)

    @property
    def document_count(self) -> int:
        return len(self.documents)

    @property
    def usable(self) -> bool:
        return self.has_schema and self.document_count > 0


@dataclass(frozen=True)
class StagePair:
    """Reader and preprocessing selected from one cache snapshot."""

    state: CacheState
    reader: ReaderDescription
    preprocessing: PreprocessingDescription
    verdict: CacheVerdict | None = None

    @property
    def uses_cache(self) -> bool:
        return self.state == "usable"
