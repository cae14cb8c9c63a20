"""Tests for single-rule matching and the regex cache."""

import logging

import pytest

from geotag.matcher.patterns import PatternCache
from geotag.matcher.rules import match_rule, normalize_rule_value
from geotag.models import MatchType, Rule


def rule(match_type: MatchType, value: str) -> Rule:
    return Rule(match_type=match_type, value=value)


@pytest.fixture
def cache():
    return PatternCache()


class TestNormalizeRuleValue:
    """Tests for rule value normalization."""

    def test_lowercase_and_trailing_dot(self):
        assert normalize_rule_value(" Example.COM. ") == "example.com"

    def test_empty(self):
        assert normalize_rule_value(".") == ""


class TestDomainStrategy:
    """Tests for suffix matching anchored at a label boundary."""

    def test_subdomain_matches(self, cache):
        """Test that a subdomain matches its parent domain rule."""
        assert match_rule("sub.example.com", rule(MatchType.DOMAIN, "example.com"), cache) == (
            True,
            "domain",
        )

    def test_exact_domain_matches(self, cache):
        """Test that the domain itself matches."""
        assert match_rule("example.com", rule(MatchType.DOMAIN, "example.com"), cache)[0] is True

    def test_no_label_boundary_no_match(self, cache):
        """Test that xexample.com does not match example.com."""
        assert match_rule("xexample.com", rule(MatchType.DOMAIN, "example.com"), cache) == (
            False,
            "domain",
        )

    def test_rule_value_normalized(self, cache):
        """Test that rule values are lowercased and lose a trailing dot."""
        assert match_rule("a.example.com", rule(MatchType.DOMAIN, "Example.COM."), cache)[0] is True


class TestFullStrategy:
    """Tests for exact matching."""

    def test_exact(self, cache):
        assert match_rule("example.com", rule(MatchType.FULL, "example.com"), cache) == (True, "full")

    def test_trailing_dot_rule_matches_after_normalization(self, cache):
        """Test that "example.com." and "example.com" normalize to the same value."""
        assert normalize_rule_value("example.com.") == normalize_rule_value("example.com")
        assert match_rule("example.com", rule(MatchType.FULL, "example.com."), cache)[0] is True

    def test_subdomain_does_not_match(self, cache):
        assert match_rule("www.example.com", rule(MatchType.FULL, "example.com"), cache)[0] is False


class TestPlainStrategy:
    """Tests for substring matching."""

    def test_substring(self, cache):
        """Test that "ads" matches anywhere in the host."""
        assert match_rule("myads.example.com", rule(MatchType.PLAIN, "ads"), cache) == (True, "plain")

    def test_case_insensitive(self, cache):
        assert match_rule("myads.example.com", rule(MatchType.PLAIN, "ADS"), cache)[0] is True

    def test_absent(self, cache):
        assert match_rule("example.com", rule(MatchType.PLAIN, "track"), cache) == (False, "plain")


class TestRegexStrategy:
    """Tests for regex rules."""

    def test_unanchored_search(self, cache):
        """Test that the pattern may match anywhere in the host."""
        assert match_rule("cdn42.example.net", rule(MatchType.REGEX, r"cdn\d+\.example"), cache) == (
            True,
            "regex",
        )

    def test_anchors_respected(self, cache):
        assert match_rule("a.example.com", rule(MatchType.REGEX, r"^example\.com$"), cache)[0] is False

    def test_compiled_once(self, cache):
        """Test that the compiled pattern is reused across lookups."""
        r = rule(MatchType.REGEX, r"^ad\d\.example")
        match_rule("ad1.example.com", r, cache)
        first = cache.get(r"^ad\d\.example")
        match_rule("ad2.example.com", r, cache)
        assert cache.get(r"^ad\d\.example") is first
        assert len(cache) == 1

    def test_cache_keyed_by_normalized_value(self, cache):
        """Test that regex values are lowercased before compiling."""
        match_rule("example.com", rule(MatchType.REGEX, "EXAMPLE"), cache)
        assert "example" in cache
        assert "EXAMPLE" not in cache

    def test_invalid_pattern_cached_as_miss(self, cache, caplog):
        """Test that a broken pattern fails once and stays a miss."""
        bad = rule(MatchType.REGEX, "(unclosed")
        with caplog.at_level(logging.WARNING, logger="geotag.matcher.patterns"):
            first = match_rule("unclosed.example.com", bad, cache)
            second = match_rule("unclosed.example.com", bad, cache)

        assert first == (False, "regex")
        assert second == (False, "regex")
        assert cache.failures == 1
        warnings = [r for r in caplog.records if r.name == "geotag.matcher.patterns"]
        assert len(warnings) == 1

    def test_trailing_escaped_dot_becomes_miss(self, cache, caplog):
        """Test that dropping the trailing dot leaves a dangling escape that never matches."""
        r = rule(MatchType.REGEX, r"^www\.")
        with caplog.at_level(logging.WARNING, logger="geotag.matcher.patterns"):
            assert match_rule("www.example.com", r, cache) == (False, "regex")
            assert match_rule("www.example.org", r, cache) == (False, "regex")

        assert "^www\\" in cache
        assert cache.failures == 1
        warnings = [r for r in caplog.records if r.name == "geotag.matcher.patterns"]
        assert len(warnings) == 1


class TestUnknownStrategy:
    """Tests for the conservative fallback."""

    def test_exact_only(self, cache):
        r = Rule(match_type=MatchType.from_code(9), value="example.com")
        assert match_rule("example.com", r, cache) == (True, "unknown")
        assert match_rule("sub.example.com", r, cache) == (False, "unknown")


class TestEmptyValue:
    """Tests for rules that are empty after normalization."""

    @pytest.mark.parametrize("match_type", list(MatchType))
    def test_never_matches(self, cache, match_type):
        assert match_rule("example.com", rule(match_type, " . "), cache)[0] is False


class TestMatchType:
    """Tests for match type mapping."""

    def test_codes(self):
        assert MatchType.from_code(0) is MatchType.PLAIN
        assert MatchType.from_code(1) is MatchType.REGEX
        assert MatchType.from_code(2) is MatchType.DOMAIN
        assert MatchType.from_code(3) is MatchType.FULL
        assert MatchType.from_code(-1) is MatchType.UNKNOWN

    def test_names(self):
        assert MatchType.from_name("keyword") is MatchType.PLAIN
        assert MatchType.from_name("RegExp") is MatchType.REGEX

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            MatchType.from_name("suffix")
