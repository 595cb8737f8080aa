"""Enrichment, profit and aggregation services."""
