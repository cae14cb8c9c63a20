"""Rule matching engine for geotag."""

from .index import CatalogIndex
from .patterns import PatternCache
from .rules import match_rule, normalize_rule_value
from .scanner import CategoryScanner, rank_matches

__all__ = [
    "CatalogIndex",
    "CategoryScanner",
    "PatternCache",
    "match_rule",
    "normalize_rule_value",
    "rank_matches",
]
