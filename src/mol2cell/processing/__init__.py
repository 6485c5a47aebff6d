"""Processing of parsed structures."""
