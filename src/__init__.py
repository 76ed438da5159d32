"""Transparent on-disk cache for document preprocessing pipelines."""

from cascache.version import __version__

__all__ = ["__version__"]
