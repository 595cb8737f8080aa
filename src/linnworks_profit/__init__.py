"""Linnworks order enrichment and marketplace profit pipeline."""

__version__ = "1.0.0"
