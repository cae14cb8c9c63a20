"""Custom exception types for geotag."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Error codes for catalog loading, host normalization and export."""

    # Catalog errors
    CATALOG_NOT_FOUND = "catalog_not_found"
    CATALOG_DECODE_ERROR = "catalog_decode_error"
    CATALOG_INVALID = "catalog_invalid"

    # Input errors
    HOST_INVALID = "host_invalid"
    INPUT_READ_ERROR = "input_read_error"

    # Configuration errors
    CONFIG_INVALID = "config_invalid"

    # Route export errors
    ROUTE_EMPTY = "route_empty"

    # General errors
    UNKNOWN_ERROR = "unknown_error"


@dataclass
class GeotagError(Exception):
    """Base exception for geotag with structured error information."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    cause: Exception | None = None

    def __str__(self) -> str:
        parts = [f"[{self.code.value}] {self.message}"]
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f" ({details_str})")
        if self.cause:
            parts.append(f" caused by: {self.cause}")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "cause": str(self.cause) if self.cause else None,
        }


class CatalogError(GeotagError):
    """The rule catalog could not be read or decoded. Fatal for a run."""

    pass


class NormalizationError(GeotagError):
    """An input line could not be turned into a host. Local to that line."""

    pass


class InputError(GeotagError):
    """The input list could not be read."""

    pass


class ConfigError(GeotagError):
    """Configuration errors."""

    pass


class RouteError(GeotagError):
    """Routing token export errors."""

    pass
