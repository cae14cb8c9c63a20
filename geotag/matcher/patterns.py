"""Run-scoped cache of compiled regex rules."""

import logging
import re
import threading

logger = logging.getLogger("geotag.matcher.patterns")

# Cached in place of a pattern that failed to compile.
_FAILED = object()


class PatternCache:
    """Maps a normalized regex rule value to its compiled pattern.

    Entries are added on first use and never evicted. A value that fails
    to compile is remembered as a permanent miss, so the error is logged
    once and never raised again. Safe to share between worker threads.
    """

    def __init__(self):
        self._patterns: dict[str, object] = {}
        self._lock = threading.Lock()
        self.failures = 0

    def get(self, source: str) -> re.Pattern | None:
        """Return the compiled pattern for `source`, or None if it is invalid."""
        entry = self._patterns.get(source)
        if entry is None:
            with self._lock:
                # Double-check after acquiring lock
                entry = self._patterns.get(source)
                if entry is None:
                    entry = self._compile(source)
                    self._patterns[source] = entry
        return None if entry is _FAILED else entry

    def _compile(self, source: str) -> object:
        try:
            return re.compile(source)
        except re.error as e:
            self.failures += 1
            logger.warning(
                "Invalid regex rule, treating as non-matching: %s (%s)",
                source,
                e,
                extra={"pattern": source, "error": str(e)},
            )
            return _FAILED

    def __contains__(self, source: str) -> bool:
        return source in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)
