"""Logging setup and contextual formatters."""
