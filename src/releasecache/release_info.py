"""
Release info engine.

ReleaseCacheEngine looks up a project's release information through a
MetadataProvider, keeps it in an in-process memo and a persistent cache, and
selects the most appropriate release for a request according to a selection
strategy, falling back to asking the user when the strategy allows it.
"""

from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from releasecache.cache import FileCacheStore
from releasecache.config import EngineConfig
from releasecache.constants import (
    DEFAULT_ENGINE,
    ERROR_NO_DEV_RELEASE,
    ERROR_NO_STABLE_RELEASE,
    ERROR_VERSION_NOT_FOUND,
    FILTER_ALL,
    FILTER_DEFAULT,
    FILTER_DEV,
    RELEASE_INFO_CACHE_BIN,
    SELECTION_STRATEGIES,
    STRATEGY_ALWAYS,
    STRATEGY_IGNORE,
    STRATEGY_NEVER,
)
from releasecache.exceptions import (
    ConfigurationError,
    MetadataUnavailableError,
    ReleaseNotFoundError,
    UserAbortError,
)
from releasecache.fetcher import ArtifactFetcher
from releasecache.interfaces import (
    Chooser,
    Clock,
    MetadataProvider,
    PersistentCache,
    ReleaseMetadata,
    iter_releases,
)
from releasecache.log_utils import logger
from releasecache.models import (
    SELECTION_ABORTED,
    SELECTION_FAILED,
    SELECTION_NOT_FOUND,
    SELECTION_SKIPPED,
    SELECTION_SUCCESS,
    Release,
    Request,
    SelectionResult,
)

MetadataOrFalse = Union[ReleaseMetadata, bool]


class ReleaseCacheEngine:
    """
    Release info engine for update services.

    The engine talks to the update service only through its MetadataProvider
    and does not need anything else bootstrapped.
    """

    def __init__(
        self,
        provider: MetadataProvider,
        cache_store: Optional[PersistentCache] = None,
        config: Union[EngineConfig, Mapping[str, Any], None] = None,
        chooser: Optional[Chooser] = None,
        fetcher: Optional[ArtifactFetcher] = None,
        clock: Optional[Clock] = None,
        engine: str = DEFAULT_ENGINE,
    ):
        """
        Initialize the engine.

        Parameters:
            provider (MetadataProvider): Builds release metadata for requests.
            cache_store (Optional[PersistentCache]): Persistent metadata cache;
                defaults to a FileCacheStore in the user cache directory.
            config (EngineConfig | Mapping | None): Resolved config or raw
                options; `cache-duration` / `cache-duration-releasexml` set the
                metadata TTL in seconds (24 hours by default).
            chooser (Optional[Chooser]): Interactive choice surface; defaults
                to a terminal menu.
            fetcher (Optional[ArtifactFetcher]): Owns the download cache that is
                cleared together with the metadata cache.
            clock (Optional[Clock]): Time source for cache expiry.
            engine (str): Name of this release info engine.
        """
        self.engine = engine
        self.provider = provider
        self.clock = clock or Clock()
        self.cache_store = cache_store or FileCacheStore(clock=self.clock.now)
        if isinstance(config, EngineConfig):
            self.engine_config = config
        else:
            self.engine_config = EngineConfig.from_options(config)
        self.fetcher = fetcher or ArtifactFetcher(clock=self.clock)
        self._chooser = chooser

        # get() may be called several times for the same project per run, and
        # building release metadata is expensive.
        self._cache: Dict[str, MetadataOrFalse] = {}

    @property
    def chooser(self) -> Chooser:
        if self._chooser is None:
            from releasecache.menu import PickChooser

            self._chooser = PickChooser()
        return self._chooser

    def get_cache_duration(self) -> int:
        """Return the configured metadata cache duration in seconds."""
        return self.engine_config.cache_duration

    def get(self, request: Request, refresh: bool = False) -> MetadataOrFalse:
        """
        Return a project's release info from the update service.

        Parameters:
            request (Request): The project to look up.
            refresh (bool): Discard cached release info first.

        Returns:
            ReleaseMetadata | bool: The release info, or False if the update
            service had no valid information. Failed lookups are remembered for
            the lifetime of the engine.
        """
        if refresh:
            self.clear_cached(request)

        if request.name not in self._cache:
            cache_key = request.cache_key
            cached = self.cache_store.get(cache_key, RELEASE_INFO_CACHE_BIN)
            if cached is not None and not cached.is_expired(self.clock.now()):
                logger.debug(f"Using cached release info for {cache_key}")
                release_info = cached.payload
            else:
                logger.debug(f"Fetching release info for {cache_key}")
                release_info = self.provider.get_instance(
                    request, self.get_cache_duration()
                )
                if not release_info or not release_info.is_valid():
                    release_info = False
                else:
                    self.cache_store.set(
                        cache_key,
                        RELEASE_INFO_CACHE_BIN,
                        release_info,
                        self.clock.now() + self.get_cache_duration(),
                    )
            self._cache[request.name] = release_info

        return self._cache[request.name]

    def clear_cached(self, request: Request) -> None:
        """
        Delete all caches for a project.

        Drops the in-process entry and the persistent release info, and removes
        the cached download of the release info URL so stale metadata is never
        rebuilt from a stale file.
        """
        self._cache.pop(request.name, None)
        self.cache_store.clear(request.cache_key, RELEASE_INFO_CACHE_BIN)

        url = self.provider.build_fetch_url(request)
        self.fetcher.delete_cached_download(url)

    def older_cache_entry(self, requests: Iterable[Request]) -> float:
        """
        Return the creation time of the oldest stored release info among `requests`.

        Only the persistent cache is consulted. Returns 0 when none of the
        projects has a cache entry.
        """
        older: float = 0
        for request in requests:
            record = self.cache_store.get(request.cache_key, RELEASE_INFO_CACHE_BIN)
            if record is not None:
                older = record.created_at if not older else min(record.created_at, older)
        return older

    def select_release_based_on_strategy(
        self,
        request: Request,
        restrict_to: str = "",
        strategy: str = STRATEGY_NEVER,
        offer_all: bool = False,
        version: Optional[str] = None,
    ) -> Optional[Release]:
        """
        Select the most appropriate release for a project, based on a strategy.

        Parameters:
            request (Request): The project; `request.version` asks for an exact version.
            restrict_to (str): "dev" forces a development release, "" means no restriction.
            strategy (str): One of
                - auto: pick the requested or recommended release, else let the user choose.
                - always: always let the user choose.
                - never: pick the requested or recommended release, else fail.
                - ignore: pick the requested or recommended release, else return None.
            offer_all (bool): Offer every release (not only the default set)
                when the user is asked to choose.
            version (Optional[str]): Version series to offer when asking the user.

        Returns:
            Optional[Release]: The selected release, or None under `ignore`
            when nothing suitable exists.

        Raises:
            ConfigurationError: Unknown strategy.
            MetadataUnavailableError: No release info for the project.
            ReleaseNotFoundError: No development release under a "dev" restriction,
                or no suitable release under `never`.
            UserAbortError: The user cancelled the choice.
        """
        if strategy not in SELECTION_STRATEGIES:
            raise ConfigurationError(
                "Error: select strategy must be one of: auto, never, always, ignore",
                details=repr(strategy),
            )

        release_info = self.get(request)
        if not release_info:
            raise MetadataUnavailableError(
                f"Could not retrieve release information for {request.name}.",
                project=request.name,
            )

        if strategy != STRATEGY_ALWAYS:
            release, not_found = self._select_release(release_info, request, restrict_to)
            if release:
                return release

            if strategy == STRATEGY_NEVER:
                raise not_found
            logger.warning(not_found.message)
            if strategy == STRATEGY_IGNORE:
                return None

        return self._choose_release(release_info, request, restrict_to, offer_all, version)

    def _select_release(
        self, release_info: ReleaseMetadata, request: Request, restrict_to: str
    ) -> Tuple[Optional[Release], Optional[ReleaseNotFoundError]]:
        """
        Pick a release without asking the user.

        Returns the release, or None with the error describing what is missing.
        A missing development release always raises.
        """
        if restrict_to == FILTER_DEV:
            release = release_info.get_dev_release()
            if not release:
                raise ReleaseNotFoundError(
                    f"There is no development release for project {request.name}.",
                    project=request.name,
                    code=ERROR_NO_DEV_RELEASE,
                )
            return release, None

        if request.version:
            release = release_info.get_specific_release(request.version)
            if not release:
                return None, ReleaseNotFoundError(
                    f"Could not locate {request.name} version {request.version}.",
                    project=request.name,
                    version=request.version,
                    code=ERROR_VERSION_NOT_FOUND,
                )
            return release, None

        release = release_info.get_recommended_or_supported_release()
        if not release:
            return None, ReleaseNotFoundError(
                f"There are no stable releases for project {request.name}.",
                project=request.name,
                code=ERROR_NO_STABLE_RELEASE,
            )
        return release, None

    def _choose_release(
        self,
        release_info: ReleaseMetadata,
        request: Request,
        restrict_to: str,
        offer_all: bool,
        version: Optional[str],
    ) -> Release:
        if restrict_to == FILTER_DEV:
            release_filter = FILTER_DEV
        elif offer_all:
            release_filter = FILTER_ALL
        else:
            release_filter = FILTER_DEFAULT

        releases = dict(iter_releases(release_info.filter_releases(release_filter, version)))
        options = {key: release.display_row() for key, release in releases.items()}
        choice = self.chooser.choose(
            options, f"Choose one of the available releases for {request.name}:"
        )
        if not choice:
            raise UserAbortError("Aborting.")
        return releases[choice]

    def resolve_release(
        self,
        request: Request,
        restrict_to: str = "",
        strategy: str = STRATEGY_NEVER,
        offer_all: bool = False,
        version: Optional[str] = None,
    ) -> SelectionResult:
        """
        Select a release and report the outcome as a SelectionResult.

        Only ConfigurationError propagates; missing metadata, missing releases,
        deliberate skips and user aborts are returned as result statuses.
        """
        try:
            release = self.select_release_based_on_strategy(
                request, restrict_to, strategy, offer_all, version
            )
        except ReleaseNotFoundError as e:
            return SelectionResult(
                status=SELECTION_NOT_FOUND, error_message=str(e), error_code=e.code
            )
        except MetadataUnavailableError as e:
            return SelectionResult(status=SELECTION_FAILED, error_message=str(e))
        except UserAbortError as e:
            return SelectionResult(status=SELECTION_ABORTED, error_message=str(e))

        if release is None:
            return SelectionResult(status=SELECTION_SKIPPED)
        return SelectionResult(status=SELECTION_SUCCESS, release=release)

    def check_project(self, request: Request, type: Optional[str] = None) -> bool:
        """
        Check if a project is available in the update service.

        Parameters:
            request (Request): The project to check.
            type (Optional[str]): When given, the project type reported by the
                update service must match it.

        Returns:
            bool: True if the project exists and, if requested, its type matches.
        """
        release_info = self.get(request)
        if not release_info:
            return False
        if type and release_info.get_type() != type:
            return False
        return True
