"""
Artifact fetching with a persistent download cache.

ArtifactFetcher resolves a URL or local path to a local file. Remote files can
be kept in a URL-keyed download cache; a cached file younger than the caller's
cache duration is reused, an older one is refreshed, and when the refresh fails
the stale copy is used instead of failing the fetch.
"""

import os
import shutil
import tempfile
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from releasecache.cache import get_default_cache_dir
from releasecache.config import FetcherConfig
from releasecache.constants import (
    CURL_TOOL,
    DOWNLOAD_CACHE_DIR_NAME,
    DOWNLOAD_CACHE_NAME_SEPARATORS,
    STAGING_FILE_PREFIX,
    TRANSPORT_TIMEOUT_SECONDS,
    WGET_TOOL,
)
from releasecache.exceptions import DownloadError, TransportUnavailableError
from releasecache.interfaces import Clock, TransportRunner
from releasecache.log_utils import logger
from releasecache.transport import ShellTransportRunner, curl_command, wget_command

# Download tool availability, probed once per process
_tool_probes: Dict[str, bool] = {}

# Commands tried in order by validate()
VALIDATION_PROBES = (
    [WGET_TOOL, "--version"],
    [CURL_TOOL, "--version"],
    # Old curl builds exit non-zero for --version
    ["which", CURL_TOOL],
)


def reset_transport_probe() -> None:
    """Forget the memoized download tool probes."""
    _tool_probes.clear()


def is_url(location: str) -> bool:
    """Return True if `location` is a network URL rather than a local path."""
    parsed = urlparse(location)
    return bool(parsed.scheme and parsed.netloc)


def cache_name_for_url(url: str) -> str:
    """Turn a URL into a flat cache file name by replacing separators with '-'."""
    name = url
    for separator in DOWNLOAD_CACHE_NAME_SEPARATORS:
        name = name.replace(separator, "-")
    return name


def _file_not_empty(path: str) -> bool:
    try:
        return os.path.getsize(path) > 0
    except OSError:
        return False


def _remove_quietly(path: str) -> None:
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.debug(f"Could not remove {path}: {e}")


class ArtifactFetcher:
    """
    Downloads files through wget, curl or requests, with an optional download cache.

    Downloads that bypass the cache are recorded in `registered_for_deletion`
    so the caller can remove them once consumed (see `cleanup_registered()`).
    """

    def __init__(
        self,
        transport: Optional[TransportRunner] = None,
        config: Union[FetcherConfig, Mapping[str, Any], None] = None,
        cache_dir: Optional[str] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the fetcher.

        Parameters:
            transport (Optional[TransportRunner]): Runs the download tools; defaults to ShellTransportRunner.
            config (FetcherConfig | Mapping | None): Resolved config or raw options (`cache`, `cache_dir`).
            cache_dir (Optional[str]): Root cache directory; downloads are cached in its `download` subdirectory.
            clock (Optional[Clock]): Time source used for cache freshness checks.
        """
        self.transport = transport or ShellTransportRunner()
        if isinstance(config, FetcherConfig):
            self.config = config
        else:
            self.config = FetcherConfig.from_options(config)
        self.cache_dir = cache_dir or self.config.cache_dir or get_default_cache_dir()
        self.clock = clock or Clock()
        self.registered_for_deletion: List[str] = []

    def validate(self) -> bool:
        """
        Check that at least one download tool is installed.

        Output of the probe commands is suppressed. No network request is made.

        Returns:
            bool: True when wget or curl was found.

        Raises:
            TransportUnavailableError: If neither wget nor curl is available.
        """
        for command in VALIDATION_PROBES:
            if self.transport.probe(command):
                return True
        raise TransportUnavailableError("wget nor curl executables found.")

    def get_download_cache_dir(self) -> Optional[str]:
        """
        Return the download cache directory, creating it if needed.

        Returns:
            Optional[str]: The directory, or None when it cannot be created.
        """
        download_dir = os.path.join(self.cache_dir, DOWNLOAD_CACHE_DIR_NAME)
        try:
            os.makedirs(download_dir, exist_ok=True)
        except OSError as e:
            logger.warning(f"Download cache directory {download_dir} unavailable: {e}")
            return None
        return download_dir

    def download_file_name(self, url: str) -> Optional[str]:
        """Return the cache file path for `url`, or None without a cache directory."""
        download_dir = self.get_download_cache_dir()
        if not download_dir:
            return None
        return os.path.join(download_dir, cache_name_for_url(url))

    def delete_cached_download(self, url: str) -> None:
        """Delete the cached download for `url` if there is one."""
        cache_file = os.path.join(
            self.cache_dir, DOWNLOAD_CACHE_DIR_NAME, cache_name_for_url(url)
        )
        if os.path.exists(cache_file):
            _remove_quietly(cache_file)
            logger.debug(f"Deleted cached download {cache_file}")

    def clear_download_cache(self) -> int:
        """
        Delete every cached download.

        Returns:
            int: Number of files removed.
        """
        download_dir = self.get_download_cache_dir()
        if not download_dir:
            return 0
        removed = 0
        with os.scandir(download_dir) as it:
            for entry in it:
                if entry.is_file(follow_symlinks=False):
                    _remove_quietly(entry.path)
                    removed += 1
        return removed

    def fetch(
        self,
        url: str,
        destination: Optional[str] = None,
        cache_duration: int = 0,
    ) -> Union[str, bool]:
        """
        Download a file or obtain it from the download cache.

        Parameters:
            url (str): URL of the file, or a local path which is simply copied.
            destination (Optional[str]): Where to save the file. Defaults to the
                URL's file name in the current working directory.
            cache_duration (int): Acceptable age in seconds of a cached file. 0
                bypasses the cache; the cache must also be enabled in the config.

        Returns:
            str | bool: The destination path, or False if the file could not be
            copied, downloaded or taken from the cache.
        """
        if not destination:
            file_name = os.path.basename(url.split("?", 1)[0])
            destination = os.path.join(os.getcwd(), file_name)

        if not is_url(url):
            try:
                shutil.copyfile(url, destination)
            except OSError as e:
                logger.error(f"Could not copy {url} to {destination}: {e}")
                return False
            return destination

        cache_file = None
        if self.config.cache and cache_duration != 0:
            cache_file = self.download_file_name(url)

        if cache_file:
            if self._is_fresh(cache_file, cache_duration):
                logger.info(f"{cache_file} retrieved from cache.")
            elif self.download(url, cache_file, overwrite=True):
                logger.debug(f"Refreshed cached download {cache_file}")
            elif os.path.exists(cache_file):
                logger.warning(
                    f"{cache_file} retrieved from an expired cache since refresh failed."
                )
            else:
                return False

            try:
                shutil.copyfile(cache_file, destination)
            except OSError as e:
                logger.error(f"Could not copy cached {cache_file} to {destination}: {e}")
                return False
            return destination

        downloaded = self.download(url, destination)
        if downloaded:
            self.registered_for_deletion.append(downloaded)
            return downloaded
        return False

    def fetch_or_raise(
        self,
        url: str,
        destination: Optional[str] = None,
        cache_duration: int = 0,
    ) -> str:
        """Like fetch(), but raises DownloadError instead of returning False."""
        result = self.fetch(url, destination, cache_duration)
        if not result:
            raise DownloadError(f"Unable to retrieve {url}", url=url)
        return str(result)

    def cleanup_registered(self) -> None:
        """Delete the uncached downloads registered by fetch()."""
        while self.registered_for_deletion:
            _remove_quietly(self.registered_for_deletion.pop())

    def download(
        self, url: str, destination: str, overwrite: bool = True
    ) -> Union[str, bool]:
        """
        Download `url` to `destination` without using the download cache.

        Tries wget, then curl (each only when its one-time probe found it), then an
        in-process request. Each attempt writes to its own staging file next to
        the destination and only a non-empty result is moved into place.

        Returns:
            str | bool: The destination path, or False if every attempt failed.
        """
        for name, attempt in self._attempts(url):
            staging = self._create_staging_file(destination)
            if staging is None:
                return False
            try:
                attempt(staging)
                if _file_not_empty(staging):
                    return self._promote(staging, destination, overwrite)
                logger.debug(f"{name} retrieved nothing from {url}")
            finally:
                _remove_quietly(staging)

        logger.debug(f"All transports failed for {url}")
        return False

    def _attempts(self, url: str) -> Iterator[Tuple[str, Callable[[str], bool]]]:
        # Tools are probed lazily so a successful wget never probes curl
        if self._tool_available(WGET_TOOL):
            yield WGET_TOOL, lambda tmp: self.transport.run(
                wget_command(url, tmp), timeout=TRANSPORT_TIMEOUT_SECONDS
            )
        if self._tool_available(CURL_TOOL):
            yield CURL_TOOL, lambda tmp: self.transport.run(
                curl_command(url, tmp), timeout=TRANSPORT_TIMEOUT_SECONDS
            )
        yield "requests", lambda tmp: self.transport.fetch_in_process(
            url, tmp, TRANSPORT_TIMEOUT_SECONDS
        )

    def _tool_available(self, tool: str) -> bool:
        if tool not in _tool_probes:
            commands = [[tool, "--version"]]
            if tool == CURL_TOOL:
                commands.append(["which", CURL_TOOL])
            _tool_probes[tool] = any(self.transport.probe(c) for c in commands)
        return _tool_probes[tool]

    def _is_fresh(self, cache_file: str, cache_duration: int) -> bool:
        try:
            changed_at = os.path.getctime(cache_file)
        except OSError:
            return False
        return changed_at > self.clock.now() - cache_duration

    @staticmethod
    def _create_staging_file(destination: str) -> Optional[str]:
        target_dir = os.path.dirname(os.path.abspath(destination))
        try:
            os.makedirs(target_dir, exist_ok=True)
            fd, staging = tempfile.mkstemp(
                dir=target_dir, prefix=f".{STAGING_FILE_PREFIX}-"
            )
            os.close(fd)
        except OSError as e:
            logger.error(f"Could not create staging file for {destination}: {e}")
            return None
        return staging

    @staticmethod
    def _promote(staging: str, destination: str, overwrite: bool) -> Union[str, bool]:
        if not overwrite and os.path.exists(destination):
            logger.warning(f"{destination} already exists and will not be overwritten.")
            return False
        try:
            os.replace(staging, destination)
        except OSError as e:
            logger.error(f"Could not move download into {destination}: {e}")
            return False
        return destination
