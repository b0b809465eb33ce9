"""Landmark coordinate resolution with multi-source fallback and graceful degradation."""

__version__ = "0.1.0"
