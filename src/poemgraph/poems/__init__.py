"""Fallback poem data."""

from poemgraph.poems.fallback import FallbackPoemSource, filter_records, record_from_item

__all__ = ["FallbackPoemSource", "filter_records", "record_from_item"]
