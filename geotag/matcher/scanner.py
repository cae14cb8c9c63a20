"""Category scanning: every selector a host belongs to."""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from ..errors import NormalizationError
from ..hosts import normalize_host
from ..models import Catalog, HostReport, MatchRecord
from .index import CatalogIndex
from .patterns import PatternCache
from .rules import match_rule

logger = logging.getLogger("geotag.matcher.scanner")

DEFAULT_PREFIX = "geosite"


def rank_matches(matches: Iterable[MatchRecord]) -> list[MatchRecord]:
    """Order matches by ascending group size, then by selector.

    Small groups come first: a 3-rule category says more about a host
    than a 50,000-rule one.
    """
    return sorted(matches, key=lambda m: (m.group_size, m.selector))


class CategoryScanner:
    """
    Scans the full catalog for one host at a time.

    Every rule of every category is evaluated. For each selector the first
    rule that matched is kept as its justification; later hits on the same
    selector do not replace it.
    """

    def __init__(
        self,
        catalog: Catalog,
        index: CatalogIndex | None = None,
        cache: PatternCache | None = None,
        prefix: str = DEFAULT_PREFIX,
    ):
        self.catalog = catalog
        self.index = index if index is not None else CatalogIndex.from_catalog(catalog)
        self.cache = cache if cache is not None else PatternCache()
        self.prefix = prefix

    def selector(self, tag: str, attribute: str = "") -> str:
        if attribute:
            return f"{self.prefix}:{tag}@{attribute}"
        return f"{self.prefix}:{tag}"

    def scan(self, host: str) -> list[MatchRecord]:
        """
        Find every selector a normalized host belongs to.

        Returns match records in discovery order; use rank_matches() or
        classify() for presentation order.
        """
        # selector -> (tag, attribute, strategy, rule value); write-once
        hits: dict[str, tuple[str, str, str, str]] = {}

        for category in self.catalog:
            tag = category.tag
            for rule in category.rules:
                matched, strategy = match_rule(host, rule, self.cache)
                if not matched:
                    continue

                hits.setdefault(self.selector(tag), (tag, "", strategy, rule.value))
                for key in rule.attributes:
                    if key:
                        hits.setdefault(self.selector(tag, key), (tag, key, strategy, rule.value))

        return [
            MatchRecord(
                selector=selector,
                tag=tag,
                attribute=attribute,
                group_size=self.index.group_size(tag, attribute),
                strategy=strategy,
                rule_value=value,
            )
            for selector, (tag, attribute, strategy, value) in hits.items()
        ]

    def classify(self, host: str) -> list[MatchRecord]:
        """Scan a normalized host and rank the result."""
        return rank_matches(self.scan(host))

    def lookup(self, raw: str) -> HostReport:
        """Normalize one input line and classify it.

        Normalization failures are recorded on the report, not raised.
        """
        try:
            host = normalize_host(raw)
        except NormalizationError as e:
            logger.debug(
                "Skipping input %r: %s",
                raw,
                e.message,
                extra={"input": raw, "error_code": e.code.value},
            )
            return HostReport(raw=raw, error=e.message)

        matches = self.classify(host)
        logger.debug(
            "Classified %s: %d selectors",
            host,
            len(matches),
            extra={"host": host, "selectors": len(matches)},
        )
        return HostReport(raw=raw, host=host, matches=matches)

    def lookup_many(self, lines: Iterable[str], jobs: int = 1) -> list[HostReport]:
        """Classify many input lines, returning reports in input order.

        With jobs > 1 hosts are classified on a thread pool; the shared
        pattern cache is thread-safe and each host's scan is independent.
        """
        lines = list(lines)
        if jobs <= 1 or len(lines) <= 1:
            return [self.lookup(line) for line in lines]

        with ThreadPoolExecutor(max_workers=jobs) as pool:
            return list(pool.map(self.lookup, lines))
