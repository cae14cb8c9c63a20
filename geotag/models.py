"""Data models for geotag."""

from dataclasses import asdict, dataclass, field
from enum import Enum


class MatchType(Enum):
    """How a rule value is compared against a host."""

    PLAIN = "plain"
    REGEX = "regex"
    DOMAIN = "domain"
    FULL = "full"
    UNKNOWN = "unknown"

    @classmethod
    def from_code(cls, code: int) -> "MatchType":
        """Map a catalog integer code to a match type.

        Codes outside the known set map to UNKNOWN, which only ever
        matches on exact equality.
        """
        return _CODES.get(code, cls.UNKNOWN)

    @classmethod
    def from_name(cls, name: str) -> "MatchType":
        """Map a rule type name (as written in JSON catalogs) to a match type.

        Raises:
            ValueError: If the name is not a known rule type.
        """
        key = name.strip().lower()
        if key not in _NAMES:
            raise ValueError(f"Unknown rule type: {name!r}")
        return _NAMES[key]


_CODES = {
    0: MatchType.PLAIN,
    1: MatchType.REGEX,
    2: MatchType.DOMAIN,
    3: MatchType.FULL,
}

_NAMES = {
    "plain": MatchType.PLAIN,
    "keyword": MatchType.PLAIN,
    "regex": MatchType.REGEX,
    "regexp": MatchType.REGEX,
    "domain": MatchType.DOMAIN,
    "full": MatchType.FULL,
    "unknown": MatchType.UNKNOWN,
}


@dataclass(frozen=True)
class Rule:
    """A single domain-matching rule inside a category."""

    match_type: MatchType
    value: str
    attributes: tuple[str, ...] = ()


@dataclass(frozen=True)
class Category:
    """A named group of rules (a geosite tag)."""

    tag: str
    rules: tuple[Rule, ...] = ()


@dataclass(frozen=True)
class Catalog:
    """The full decoded rule catalog, in source order."""

    categories: tuple[Category, ...] = ()

    def __iter__(self):
        return iter(self.categories)

    def __len__(self) -> int:
        return len(self.categories)

    @property
    def rule_count(self) -> int:
        """Total number of rules across all categories."""
        return sum(len(c.rules) for c in self.categories)


@dataclass(frozen=True)
class MatchRecord:
    """One selector a host belongs to, with the rule that justified it."""

    selector: str
    tag: str
    attribute: str  # "" for the base selector
    group_size: int
    strategy: str  # "plain", "domain", "full", "regex" or "unknown"
    rule_value: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class HostReport:
    """Result of classifying one input line."""

    raw: str
    host: str | None = None
    matches: list[MatchRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def matched(self) -> bool:
        return bool(self.matches)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "input": self.raw,
            "host": self.host,
            "error": self.error,
            "matches": [m.to_dict() for m in self.matches],
        }
