"""Provenance statistics for Wikidata items."""

__version__ = "0.3.0"
