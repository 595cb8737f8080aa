"""Marketplace name -> accounting class / fee key mapping.

The upstream order system spells marketplace names inconsistently, so the
mapping is data (marketplaces.json) rather than code. A replacement file can be
pointed at with the MARKETPLACE_MAP_PATH setting.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Dict, NamedTuple, Optional, Union

from linnworks_profit.core.fee_overrides import normalize_source_name
from linnworks_profit.core.logger import setup_logger

logger = setup_logger(__name__)

DEFAULT_MAP_FILE = Path(__file__).parent / "marketplaces.json"


class MarketplaceClass(str, Enum):
    """Accounting formula families."""

    DEFAULT = "default"
    CONSOLIDATOR = "consolidator"
    STOCK_SYNC = "stock_sync"
    LARGE_FURNITURE = "large_furniture"
    DEAL_AGGREGATOR = "deal_aggregator"


class Classification(NamedTuple):
    """Outcome of classifying an order's source."""

    marketplace_class: MarketplaceClass
    fee_key: Optional[str]


class SourceEntry(NamedTuple):
    marketplace_class: MarketplaceClass
    fee_key: Optional[str]
    fallback: bool


class MarketplaceMap:
    """Resolves (source, sub_source) to a MarketplaceClass and fee key."""

    def __init__(
        self,
        sources: Dict[str, SourceEntry],
        sub_sources: Dict[MarketplaceClass, Dict[str, str]],
    ):
        self.sources = sources
        self.sub_sources = sub_sources

    @classmethod
    def from_dict(cls, data: dict) -> "MarketplaceMap":
        """
        Build a map from the JSON structure.

        Raises:
            ValueError: unknown class name in an entry
        """
        sources = {}
        for name, entry in data.get("sources", {}).items():
            sources[normalize_source_name(name)] = SourceEntry(
                marketplace_class=MarketplaceClass(entry.get("class", "default")),
                fee_key=entry.get("fee_key"),
                fallback=bool(entry.get("fallback", False)),
            )

        sub_sources = {}
        for class_name, patterns in data.get("sub_sources", {}).items():
            sub_sources[MarketplaceClass(class_name)] = {
                normalize_source_name(pattern): fee_key
                for pattern, fee_key in patterns.items()
            }

        return cls(sources, sub_sources)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "MarketplaceMap":
        """Load from a JSON file, defaulting to the bundled marketplaces.json."""
        map_path = Path(path) if path else DEFAULT_MAP_FILE
        with open(map_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        marketplace_map = cls.from_dict(data)
        logger.info(
            f"Loaded marketplace map from {map_path} "
            f"({len(marketplace_map.sources)} source spellings)"
        )
        return marketplace_map

    def _match_sub_source(
        self,
        marketplace_class: MarketplaceClass,
        *candidates: Optional[str],
    ) -> Optional[str]:
        """First fee key whose pattern is a substring of a candidate name."""
        patterns = self.sub_sources.get(marketplace_class, {})
        for candidate in candidates:
            normalized = normalize_source_name(candidate)
            if not normalized:
                continue
            for pattern, fee_key in patterns.items():
                if pattern in normalized:
                    return fee_key
        return None

    def classify(self, source: Optional[str], sub_source: Optional[str] = None) -> Classification:
        """
        Classify an order by source, using the sub-source for multi-channel sources.

        Unknown sources fall into DEFAULT with no fee key (zero fee).
        """
        entry = self.sources.get(normalize_source_name(source))
        if entry is None:
            logger.debug(f"Unmapped source {source!r}, using default formula with no fee")
            return Classification(MarketplaceClass.DEFAULT, None)

        if entry.fallback:
            logger.warning(
                f"Source {source!r} borrows the {entry.fee_key!r} fee rate "
                "(fallback alias, no dedicated fee property)"
            )

        if entry.marketplace_class in (MarketplaceClass.CONSOLIDATOR, MarketplaceClass.STOCK_SYNC):
            # Sub-source decides the retailer; the source itself may already name it
            fee_key = self._match_sub_source(entry.marketplace_class, sub_source, source)
            if fee_key is None:
                logger.warning(
                    f"No retailer fee key for source={source!r} sub_source={sub_source!r}"
                )
            return Classification(entry.marketplace_class, fee_key or entry.fee_key)

        return Classification(entry.marketplace_class, entry.fee_key)
