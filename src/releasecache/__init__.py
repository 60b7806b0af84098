"""
releasecache - release selection and artifact fetching with persistent caches

Core Components:
- release_info: ReleaseCacheEngine, cached release info and release selection
- fetcher: ArtifactFetcher, downloads with a URL-keyed download cache
- interfaces: collaborator interfaces (metadata provider, cache store, transport, chooser)
- cache: on-disk persistent cache store
- transport: wget / curl / requests download backends
- menu: interactive release choice
"""

from .cache import FileCacheStore
from .config import EngineConfig, FetcherConfig, load_config
from .exceptions import (
    ConfigurationError,
    DownloadError,
    MetadataUnavailableError,
    ReleaseCacheError,
    ReleaseNotFoundError,
    TransportUnavailableError,
    UserAbortError,
)
from .fetcher import ArtifactFetcher
from .interfaces import (
    Chooser,
    Clock,
    MetadataProvider,
    PersistentCache,
    ReleaseMetadata,
    TransportRunner,
)
from .models import CacheRecord, Release, Request, SelectionResult, cache_key_for
from .release_info import ReleaseCacheEngine

__all__ = [
    # Engines
    "ArtifactFetcher",
    "ReleaseCacheEngine",
    # Interfaces
    "Chooser",
    "Clock",
    "MetadataProvider",
    "PersistentCache",
    "ReleaseMetadata",
    "TransportRunner",
    # Data
    "CacheRecord",
    "Release",
    "Request",
    "SelectionResult",
    "cache_key_for",
    # Config and storage
    "EngineConfig",
    "FetcherConfig",
    "FileCacheStore",
    "load_config",
    # Errors
    "ConfigurationError",
    "DownloadError",
    "MetadataUnavailableError",
    "ReleaseCacheError",
    "ReleaseNotFoundError",
    "TransportUnavailableError",
    "UserAbortError",
]
