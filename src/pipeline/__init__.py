"""Stage interfaces, descriptions and the pipeline runner."""
