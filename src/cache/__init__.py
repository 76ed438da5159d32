"""Cache directory guard, state detection and stage selection."""
