"""Export a plain domain list as a v2rayTun routing import token."""

import base64
import json
import uuid
from collections.abc import Iterable
from pathlib import Path

from .errors import ErrorCode, InputError, RouteError

TOKEN_PREFIX = "v2rayTun://import_route/"


def clean_route_domains(lines: Iterable[str]) -> list[str]:
    """
    Reduce raw lines to a deduplicated domain list.

    Drops blank lines and comments (whole-line or trailing ``#``),
    lowercases, and strips ``http(s)://``, a leading ``www.`` and one
    trailing dot. First occurrence wins.
    """
    seen: set[str] = set()
    domains: list[str] = []

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        line = line.split("#", 1)[0].strip().lower()
        line = line.removeprefix("https://").removeprefix("http://").removeprefix("www.")
        line = line.removesuffix(".")

        if not line or line in seen:
            continue
        seen.add(line)
        domains.append(line)

    return domains


def read_route_domains(path: str | Path) -> list[str]:
    """Read and clean a domain list file.

    Raises:
        InputError: If the file cannot be read or is not UTF-8.
    """
    try:
        with open(path, encoding="utf-8") as f:
            return clean_route_domains(f)
    except UnicodeDecodeError as e:
        raise InputError(
            ErrorCode.INPUT_READ_ERROR, f"domain list is not valid UTF-8: {path}", cause=e
        ) from e
    except OSError as e:
        raise InputError(
            ErrorCode.INPUT_READ_ERROR, f"cannot read domain list: {path}", cause=e
        ) from e


def build_route(domains: list[str], name: str = "Default", outbound_tag: str = "direct") -> dict:
    """Build the routing document for a domain list.

    Raises:
        RouteError: If the domain list is empty.
    """
    if not domains:
        raise RouteError(ErrorCode.ROUTE_EMPTY, "domain list is empty")

    return {
        "name": name,
        "domainStrategy": "AsIs",
        "id": str(uuid.uuid4()),
        "domainMatcher": "hybrid",
        "rules": [
            {
                "id": str(uuid.uuid4()),
                "type": "field",
                "domain": list(domains),
                "outboundTag": outbound_tag,
                "__name__": name,
            }
        ],
        "balancers": [],
    }


def encode_route(route: dict) -> str:
    """Serialize a routing document into an import token."""
    payload = json.dumps(route, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return TOKEN_PREFIX + base64.urlsafe_b64encode(payload).decode("ascii")


def decode_route(token: str) -> dict:
    """Inverse of encode_route()."""
    if not token.startswith(TOKEN_PREFIX):
        raise ValueError("not a routing import token")
    return json.loads(base64.urlsafe_b64decode(token[len(TOKEN_PREFIX) :]))
