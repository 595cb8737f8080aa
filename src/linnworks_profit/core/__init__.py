"""Core module - Logging, exceptions and persisted fee overrides."""

from linnworks_profit.core.logger import setup_logger

__all__ = ["setup_logger"]
