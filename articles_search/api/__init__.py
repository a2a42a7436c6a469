"""HTTP API for articles."""
