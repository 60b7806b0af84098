"""
Core data structures for releasecache.

Requests identify a project and platform version, releases describe a single
distributable version, cache records wrap persisted payloads and selection
results report the outcome of a release selection without exceptions.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Tuple

from releasecache.constants import RELEASE_DATE_FORMAT
from releasecache.exceptions import ConfigValidationError

# Legacy request dictionaries used several names for the platform version
_PLATFORM_VERSION_KEYS = ("platform_version", "drupal_version", "core")


def cache_key_for(platform_version: str, name: str) -> str:
    """
    Build the persistent cache key for a project's release metadata.

    Returns:
        str: `"<platform_version>-<name>"`, e.g. `"7.x-views"`.
    """
    return f"{platform_version}-{name}"


@dataclass(frozen=True)
class Request:
    """A request for release information about one project."""

    name: str
    """Project (package) name"""

    platform_version: str
    """Platform/core version the release must be compatible with (e.g. '7.x')"""

    version: Optional[str] = None
    """Exact version requested, if any"""

    type: Optional[str] = None
    """Expected project type, if known"""

    def __post_init__(self) -> None:
        for field_name in ("name", "platform_version"):
            value = getattr(self, field_name)
            if not isinstance(value, str) or not value.strip():
                raise ConfigValidationError(
                    f"Request field '{field_name}' must be a non-empty string",
                    details=repr(value),
                )
        for field_name in ("version", "type"):
            value = getattr(self, field_name)
            if value is not None and not isinstance(value, str):
                raise ConfigValidationError(
                    f"Request field '{field_name}' must be a string",
                    details=repr(value),
                )

    @property
    def cache_key(self) -> str:
        return cache_key_for(self.platform_version, self.name)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Request":
        """
        Build a Request from a request dictionary.

        The platform version may be given as `platform_version`,
        `drupal_version` or `core`. Missing required fields raise
        ConfigValidationError.
        """
        platform_version = None
        for key in _PLATFORM_VERSION_KEYS:
            if data.get(key):
                platform_version = data[key]
                break
        return cls(
            name=data.get("name"),  # type: ignore[arg-type]
            platform_version=platform_version,  # type: ignore[arg-type]
            version=data.get("version") or None,
            type=data.get("type") or None,
        )


@dataclass(frozen=True)
class Release:
    """Represents a single release of a project."""

    version: str
    """Release version string (e.g. '7.x-3.14')"""

    date: float = 0
    """Unix timestamp of the release"""

    status: FrozenSet[str] = field(default_factory=frozenset)
    """Status tags such as 'recommended', 'supported', 'insecure'"""

    def __post_init__(self) -> None:
        if not isinstance(self.status, frozenset):
            object.__setattr__(self, "status", frozenset(_as_iterable(self.status)))

    def formatted_date(self) -> str:
        """Return the release date as `YYYY-Mon-DD` in UTC."""
        return datetime.fromtimestamp(self.date, tz=timezone.utc).strftime(
            RELEASE_DATE_FORMAT
        )

    def display_row(self) -> Tuple[str, str, str]:
        """Return `(version, date, statuses)` for presenting the release in a choice list."""
        return (self.version, self.formatted_date(), ", ".join(sorted(self.status)))


def _as_iterable(value: Any) -> Iterable[str]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return value


@dataclass(frozen=True)
class CacheRecord:
    """A persisted cache entry."""

    payload: Any
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """A record is usable only while `now < expires_at`."""
        return now >= self.expires_at


# Selection outcome statuses
SELECTION_SUCCESS = "success"
SELECTION_NOT_FOUND = "not_found"
SELECTION_FAILED = "failed"
SELECTION_SKIPPED = "skipped"
SELECTION_ABORTED = "aborted"


@dataclass
class SelectionResult:
    """Result of a release selection."""

    status: str
    """One of success, not_found, failed, skipped or aborted"""

    release: Optional[Release] = None
    """The selected release (only set on success)"""

    error_message: Optional[str] = None
    """Human readable reason (set for not_found, failed and aborted)"""

    error_code: Optional[str] = None
    """Machine-readable reason for not_found results"""

    @property
    def success(self) -> bool:
        return self.status == SELECTION_SUCCESS

    @property
    def skipped(self) -> bool:
        return self.status == SELECTION_SKIPPED
