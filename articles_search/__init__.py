"""Article storage and search service backed by Redis JSON and RediSearch."""

__version__ = "0.1.0"
