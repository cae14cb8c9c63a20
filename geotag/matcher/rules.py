"""Evaluation of a single catalog rule against a host."""

from ..models import MatchType, Rule
from .patterns import PatternCache


def normalize_rule_value(value: str) -> str:
    """Normalize a rule value the same way hosts are normalized."""
    value = value.strip()
    if value.endswith("."):
        value = value[:-1]
    return value.lower()


def match_rule(host: str, rule: Rule, cache: PatternCache) -> tuple[bool, str]:
    """
    Check whether a normalized host matches one rule.

    Args:
        host: Host already passed through normalize_host()
        rule: The catalog rule
        cache: Run-scoped regex cache, populated on first use of a pattern

    Returns:
        (matched, strategy) where strategy is the match type's name
    """
    match_type = rule.match_type
    strategy = match_type.value
    value = normalize_rule_value(rule.value)
    if not value:
        return False, strategy

    if match_type is MatchType.PLAIN:
        return value in host, strategy

    if match_type is MatchType.DOMAIN:
        # Anchored at a label boundary: "evilexample.com" is not "example.com"
        return host == value or host.endswith("." + value), strategy

    if match_type is MatchType.FULL:
        return host == value, strategy

    if match_type is MatchType.REGEX:
        pattern = cache.get(value)
        return pattern is not None and pattern.search(host) is not None, strategy

    # UNKNOWN: exact match only
    return host == value, strategy
