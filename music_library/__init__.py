"""Song catalog backend: filtered listings, verse lookup and enrichment on create."""

__version__ = "1.0.0"
