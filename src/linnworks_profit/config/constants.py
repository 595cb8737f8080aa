"""
Centralized application constants.

Single point of truth for the pacing and accounting constants shared by the
enrichment pipeline, the profit engine and the export layer.
"""

from decimal import Decimal

# ==============================================================================
# ENRICHMENT PACING
# ==============================================================================

# Orders enriched concurrently per batch
BATCH_SIZE = 5

# Stagger between starts inside a batch, and between the two lookups of one order
DELAY_BETWEEN_CALLS_SECONDS = 0.2

# Pause between batches (not before the first or after the last)
DELAY_BETWEEN_BATCHES_SECONDS = 1.0

# ==============================================================================
# ACCOUNTING
# ==============================================================================

# UK standard VAT rate
STANDARD_VAT_RATE = Decimal("0.20")
VAT_DIVISOR = Decimal("1") + STANDARD_VAT_RATE

# Currency formatting
CURRENCY_DECIMAL_PLACES = 2

# ==============================================================================
# ORDER SOURCE
# ==============================================================================

# Default page size for the processed-orders listing
PROCESSED_ORDERS_PAGE_SIZE = 200

# Page size used when pulling every order for a profit report
PROFIT_REPORT_PAGE_SIZE = 1000

# Default processed-date window
DEFAULT_FROM_DATE = "2025-05-01T00:00:00"
DEFAULT_TO_DATE = "2025-09-01T00:00:00"

# Default filter when the caller sends none
DEFAULT_SEARCH_FILTERS = [{"SearchField": "Source", "SearchTerm": "DIRECT"}]

# Retailers hosted by the consolidator platform are filtered on SubSource upstream
SUB_SOURCE_SEARCH_TERMS = ["Wilko", "RobertDayas"]
