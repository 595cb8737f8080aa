"""Integrations - upstream request pacing."""

from .rate_limiter import RequestPacer

__all__ = ["RequestPacer"]
