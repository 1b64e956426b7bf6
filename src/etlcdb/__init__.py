"""Decode ETL Character Database archives into glyph images and a JSON manifest."""

__version__ = "0.1.0"
