"""Host normalization and input line reading.

Accepts bare hosts (``sub.example.com``), ``host:port`` pairs and URLs
(``https://sub.example.com:8443/path``) and reduces all of them to a
lowercase host with no scheme, port or trailing dot.
"""

from collections.abc import Iterable, Iterator
from urllib.parse import urlsplit

from .errors import ErrorCode, NormalizationError


def split_host_port(hostport: str) -> tuple[str, str]:
    """Split ``host:port`` or ``[ipv6]:port`` into its two parts.

    The port is not validated; only the shape of the string is.

    Raises:
        ValueError: If there is no port, or the host part is malformed.
    """
    if hostport.startswith("["):
        end = hostport.find("]")
        if end < 0:
            raise ValueError(f"missing ']' in address: {hostport}")
        rest = hostport[end + 1 :]
        if not rest:
            raise ValueError(f"missing port in address: {hostport}")
        if not rest.startswith(":"):
            raise ValueError(f"unexpected text after ']' in address: {hostport}")
        host, port = hostport[1:end], rest[1:]
        if "[" in host:
            raise ValueError(f"unexpected '[' in address: {hostport}")
    else:
        i = hostport.rfind(":")
        if i < 0:
            raise ValueError(f"missing port in address: {hostport}")
        host, port = hostport[:i], hostport[i + 1 :]
        if ":" in host:
            raise ValueError(f"too many colons in address: {hostport}")
        if "[" in host or "]" in host:
            raise ValueError(f"unexpected bracket in address: {hostport}")

    if "[" in port or "]" in port:
        raise ValueError(f"unexpected bracket in port: {hostport}")
    return host, port


def _url_host(text: str) -> str | None:
    """Host component of a URL, port stripped, or None if there is none."""
    try:
        netloc = urlsplit(text).netloc
    except ValueError:
        return None

    # user:pass@host:port
    host = netloc.rpartition("@")[2]
    if not host:
        return None

    try:
        host, _ = split_host_port(host)
    except ValueError:
        pass
    return host


def clean_host(host: str) -> str:
    """Lowercase, drop one trailing dot, and validate a host string.

    Raises:
        NormalizationError: If the host is empty, contains whitespace, or holds
            undecodable input (U+FFFD).
    """
    host = host.strip().lower()
    if host.endswith("."):
        host = host[:-1]
    if not host:
        raise NormalizationError(ErrorCode.HOST_INVALID, "empty host after normalization")
    if any(ch.isspace() for ch in host):
        raise NormalizationError(
            ErrorCode.HOST_INVALID, f"invalid host: {host!r}", details={"host": host}
        )
    if "\ufffd" in host:
        raise NormalizationError(
            ErrorCode.HOST_INVALID, "host contains undecodable bytes", details={"host": host}
        )
    return host


def normalize_host(text: str) -> str:
    """Turn a bare host, ``host:port`` or URL into a canonical host.

    Raises:
        NormalizationError: If no usable host can be extracted.
    """
    text = text.strip()
    if not text:
        raise NormalizationError(ErrorCode.HOST_INVALID, "empty")

    if "://" in text:
        host = _url_host(text)
        if host:
            return clean_host(host)
    elif "/" in text or "?" in text:
        # Looks like a URL without a scheme: example.com/path
        host = _url_host("http://" + text)
        if host:
            return clean_host(host)

    try:
        host, _ = split_host_port(text)
    except ValueError:
        return clean_host(text)
    return clean_host(host)


def iter_input_lines(lines: Iterable[str]) -> Iterator[str]:
    """Yield trimmed input lines, skipping blanks and ``#`` comments."""
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        yield line
