"""
Collaborator interfaces for releasecache.

The release engine and the artifact fetcher depend only on these abstract
classes; default implementations live in cache.py, transport.py and menu.py,
and tests substitute in-memory fakes.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple, Union

from releasecache.constants import UPDATE_SERVICE_URL
from releasecache.models import CacheRecord, Release, Request

# Lookups on release metadata return False when nothing matches
ReleaseOrFalse = Union[Release, bool]


class PersistentCache(ABC):
    """A string-keyed store of cache records, namespaced by bin."""

    @abstractmethod
    def get(self, key: str, bin: str) -> Optional[CacheRecord]:
        """
        Return the record stored under `key` in `bin`, expired or not.

        Returns:
            Optional[CacheRecord]: The record, or `None` when absent or unreadable.
        """

    @abstractmethod
    def set(self, key: str, bin: str, payload: Any, expires_at: float) -> None:
        """Store `payload` under `key` in `bin`, stamping the creation time."""

    @abstractmethod
    def clear(self, key: str, bin: str) -> None:
        """Remove the record stored under `key` in `bin`, if any."""


class ReleaseMetadata(ABC):
    """Release information for one project, as produced by a MetadataProvider."""

    @abstractmethod
    def is_valid(self) -> bool:
        """Whether the update service returned usable release information."""

    @abstractmethod
    def get_type(self) -> str:
        """Return the project type (e.g. 'module', 'theme')."""

    @abstractmethod
    def get_dev_release(self) -> ReleaseOrFalse:
        """Return the latest development release, or `False`."""

    @abstractmethod
    def get_specific_release(self, version: str) -> ReleaseOrFalse:
        """Return the release matching `version` exactly, or `False`."""

    @abstractmethod
    def get_recommended_or_supported_release(self) -> ReleaseOrFalse:
        """Return the recommended release, else a supported one, else `False`."""

    @abstractmethod
    def filter_releases(
        self, filter: str = "", version: Optional[str] = None
    ) -> Mapping[str, Release]:
        """
        Return releases matching `filter` as an ordered mapping of version to release.

        Parameters:
            filter (str): "" for the default set, "dev" for development
                releases only, "all" for every release.
            version (Optional[str]): Restrict to releases of this version series.
        """


class MetadataProvider(ABC):
    """Builds ReleaseMetadata objects for requests."""

    base_url: str = UPDATE_SERVICE_URL

    @abstractmethod
    def get_instance(
        self, request: Request, cache_duration: int
    ) -> Union[ReleaseMetadata, bool, None]:
        """
        Fetch and parse release information for `request`.

        Returns a falsy value when the update service could not be reached.
        This is expected to be expensive.
        """

    def build_fetch_url(self, request: Request) -> str:
        """Return the update service URL release information for `request` is fetched from."""
        return f"{self.base_url.rstrip('/')}/{request.name}/{request.platform_version}"


class TransportRunner(ABC):
    """Runs external download tools."""

    @abstractmethod
    def run(self, command: Sequence[str], timeout: Optional[float] = None) -> bool:
        """Run `command` with output captured, returning whether it exited successfully."""

    @abstractmethod
    def probe(self, command: Sequence[str]) -> bool:
        """Check whether a tool is available by running `command` quietly."""

    @abstractmethod
    def fetch_in_process(self, url: str, destination: str, timeout: float) -> bool:
        """Retrieve `url` into `destination` without external tools."""


class Chooser(ABC):
    """Interactive choice surface."""

    @abstractmethod
    def choose(
        self, options: Mapping[str, Tuple[str, ...]], prompt: str
    ) -> Optional[str]:
        """
        Ask the user to pick one of `options`.

        Parameters:
            options: Ordered mapping of version to display row.
            prompt: Question shown above the options.

        Returns:
            Optional[str]: The chosen key, or `None` if the user aborted.
        """


class Clock:
    """Wall clock returning Unix timestamps; replaced by a fixed clock in tests."""

    def now(self) -> float:
        return time.time()


def iter_releases(
    releases: Union[Mapping[str, Release], Iterable[Release]],
) -> Iterable[Tuple[str, Release]]:
    """Yield `(version, release)` pairs from either a mapping or a plain sequence of releases."""
    if isinstance(releases, Mapping):
        yield from releases.items()
        return
    for release in releases:
        yield release.version, release
