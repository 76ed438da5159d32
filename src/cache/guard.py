# src/cache/guard.py — v1
"""Cache directory guard.

Refuses to work with a cache directory that holds anything besides cache
artifacts: a directory with foreign files is either misconfigured or
shared with something else, and must be cleaned up by hand.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cascache.cache.layout import is_recognized_entry
from cascache.pipeline.stages import ResourceInitializationError

logger = logging.getLogger(__name__)


class PollutedCacheError(ResourceInitializationError):
    """Raised when the cache directory contains unrecognized entries."""

    def __init__(self, directory: Path, polluting_entries: list[Path]) -> None:
        self.directory = directory
        self.polluting_entries = polluting_entries
        super().__init__(
            f"The cache directory contains [{self.count}] file(s) "
            f"without suffix 'xmi' or 'xml': {directory}"
        )

    @property
    def count(self) -> int:
        return len(self.polluting_entries)


def find_polluting_entries(directory: Path) -> list[Path]:
    """List entries of directory that are not cache artifacts (non-recursive)."""
    if not directory.is_dir():
        return []
    return sorted(
        entry for entry in directory.iterdir() if not is_recognized_entry(entry)
    )


def ensure_clean(directory: Path) -> None:
    """Create directory if absent, then fail if it holds foreign entries.

    Raises:
        PollutedCacheError: At least one entry is not a cache artifact.
        ResourceInitializationError: The path exists but is not a directory.
    """
    directory = Path(directory)
    if directory.exists() and not directory.is_dir():
        raise ResourceInitializationError(
            f"Cache location is not a directory: {directory}"
        )
    directory.mkdir(parents=True, exist_ok=True)

    polluting = find_polluting_entries(directory)
    if polluting:
        logger.error(
            "Cache directory %s contains %d unrecognized entries: %s",
            directory,
            len(polluting),
            ", ".join(entry.name for entry in polluting),
        )
        raise PollutedCacheError(directory, polluting)
