"""
Fee Override Store

Keeps operator-adjusted marketplace fee percentages (source name -> percentage)
in memory with JSON file persistence, so overrides survive process restarts
and can be re-applied to orders fetched earlier.
"""

import json
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, Optional, Union

from linnworks_profit.core.logger import setup_logger

logger = setup_logger(__name__)


def normalize_source_name(name: Optional[str]) -> str:
    """Collapse casing and punctuation so spelling variants of a source match."""
    if not name:
        return ""
    lowered = name.strip().lower().replace("&", "and")
    return "".join(ch for ch in lowered if ch.isalnum())


class FeeOverrideStore:
    """Manages fee percentage overrides with JSON file persistence."""

    def __init__(self, path: Union[str, Path]):
        """Initialize the store, loading from file if it exists."""
        self.path = Path(path)
        self._overrides = self._load()
        logger.info(f"Fee override store initialized with {len(self._overrides)} entries")

    def _load(self) -> Dict[str, dict]:
        """
        Load overrides from the JSON file.

        Returns:
            Mapping of normalized source name -> {"source", "percentage", "updated_at"}
        """
        if not self.path.exists():
            logger.info(f"No fee override file at {self.path}, starting empty")
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load fee overrides from {self.path}: {e}")
            return {}

        overrides = {}
        for key, entry in data.items():
            if isinstance(entry, dict) and "percentage" in entry:
                overrides[normalize_source_name(key)] = entry
            else:
                logger.warning(f"Ignoring malformed fee override entry {key!r}")
        logger.info(f"Loaded fee overrides from {self.path}")
        return overrides

    def _save(self) -> None:
        """Save overrides to the JSON file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._overrides, f, indent=2, ensure_ascii=False)
        logger.info(f"Saved fee overrides to {self.path}")

    def set(self, source: str, percentage: Union[int, float, str, Decimal]) -> dict:
        """
        Store a fee percentage for a source and persist it.

        Args:
            source: Marketplace source name as it appears on orders
            percentage: Fee percentage between 0 and 100

        Raises:
            ValueError: empty source or percentage outside 0-100
        """
        key = normalize_source_name(source)
        if not key:
            raise ValueError("Source name is required")

        try:
            value = Decimal(str(percentage))
        except InvalidOperation:
            raise ValueError(f"Invalid percentage: {percentage!r}") from None
        if not Decimal("0") <= value <= Decimal("100"):
            raise ValueError(f"Percentage must be between 0 and 100, got {value}")

        entry = {
            "source": source,
            "percentage": str(value),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        self._overrides[key] = entry
        self._save()
        logger.info(f"Fee override set: {source} = {value}%")
        return entry

    def remove(self, source: str) -> bool:
        """Remove a source's override. Returns False when none existed."""
        key = normalize_source_name(source)
        if key not in self._overrides:
            return False
        del self._overrides[key]
        self._save()
        logger.info(f"Fee override removed: {source}")
        return True

    def get_rate(self, source: Optional[str]) -> Optional[Decimal]:
        """Fee rate as a fraction (percentage / 100), or None without an override."""
        entry = self._overrides.get(normalize_source_name(source))
        if entry is None:
            return None
        return Decimal(entry["percentage"]) / Decimal("100")

    def all(self) -> Dict[str, dict]:
        """All overrides keyed by normalized source name."""
        return dict(self._overrides)
