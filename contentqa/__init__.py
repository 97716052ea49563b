"""contentqa: data-quality checks for content storage."""

__version__ = "0.1.0"
