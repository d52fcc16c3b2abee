"""
Deck builder services.

Card catalog access, the interactive deck draft and search scheduling.
"""

from ygodeck.services.catalog import (
    PAGE_SIZE,
    CardQuery,
    CatalogClient,
    apply_stat_filters,
    merge_banlist,
    parse_catalog_card,
    stat_value,
)
from ygodeck.services.deck_draft import DeckCardItem, DeckDraft
from ygodeck.services.search_cache import CacheEntry, SearchCache
from ygodeck.services.search_scheduler import (
    SearchErrorCategory,
    SearchOutcome,
    SearchQuery,
    SearchScheduler,
    debounce_delay,
)

__all__ = [
    "PAGE_SIZE",
    "CacheEntry",
    "CardQuery",
    "CatalogClient",
    "DeckCardItem",
    "DeckDraft",
    "SearchCache",
    "SearchErrorCategory",
    "SearchOutcome",
    "SearchQuery",
    "SearchScheduler",
    "apply_stat_filters",
    "debounce_delay",
    "merge_banlist",
    "parse_catalog_card",
    "stat_value",
]
