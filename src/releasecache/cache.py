"""
Persistent cache storage for releasecache.

FileCacheStore keeps one JSON envelope per key inside a directory per cache
bin. The payload is pickled and base64-encoded so arbitrary release metadata
objects survive the round trip; `cached_at` and `expires_at` are stored next to
it.
"""

import base64
import json
import os
import pickle
import re
import tempfile
import time
from typing import Any, Callable, Dict, Optional

import platformdirs

from releasecache.constants import APP_NAME, CACHE_RECORD_SUFFIX
from releasecache.interfaces import PersistentCache
from releasecache.log_utils import logger
from releasecache.models import CacheRecord

_UNSAFE_NAME_RX = re.compile(r"[^A-Za-z0-9._-]+")


def get_default_cache_dir() -> str:
    """Return the platform-appropriate user cache directory for releasecache."""
    return platformdirs.user_cache_dir(APP_NAME)


def _write_record(file_path: str, envelope: Dict[str, Any]) -> bool:
    """
    Write a cache envelope so readers never see a partial record.

    The JSON goes to a staging file beside `file_path` that replaces it in one
    step. Returns False (after logging) when the bin directory is not writable.
    """
    try:
        fd, staging = tempfile.mkstemp(
            dir=os.path.dirname(file_path), suffix=CACHE_RECORD_SUFFIX + ".part"
        )
    except OSError as e:
        logger.error(f"Cannot stage cache record {file_path}: {e}")
        return False

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(envelope, f)
        os.replace(staging, file_path)
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Cannot store cache record {file_path}: {e}")
        try:
            os.remove(staging)
        except OSError:
            pass
        return False


class FileCacheStore(PersistentCache):
    """
    On-disk PersistentCache implementation.

    Records live at `<cache_dir>/<bin>/<key>.cache.json`. Expired records are
    still returned by `get()`; deciding freshness is up to the caller.
    """

    def __init__(
        self,
        cache_dir: Optional[str] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the store.

        Parameters:
            cache_dir (Optional[str]): Root directory for cache bins. If None, the
                platformdirs user cache directory is used.
            clock (Optional[Callable[[], float]]): Returns the current Unix time;
                used to stamp `created_at`.
        """
        self.cache_dir = cache_dir or get_default_cache_dir()
        self._clock = clock or time.time
        self._ensure_dir_exists(self.cache_dir)

    @staticmethod
    def _ensure_dir_exists(path: str) -> None:
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            logger.error(f"Could not create cache directory {path}: {e}")
            raise

    def get_cache_file_path(self, key: str, bin: str) -> str:
        """Build the file path a record for `key` in `bin` is stored at."""
        safe_bin = _UNSAFE_NAME_RX.sub("-", bin)
        safe_key = _UNSAFE_NAME_RX.sub("-", key)
        return os.path.join(self.cache_dir, safe_bin, f"{safe_key}{CACHE_RECORD_SUFFIX}")

    def get(self, key: str, bin: str) -> Optional[CacheRecord]:
        cache_file = self.get_cache_file_path(key, bin)
        if not os.path.exists(cache_file):
            return None

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                envelope = json.load(f)
            payload = pickle.loads(base64.b64decode(envelope["payload"]))
            return CacheRecord(
                payload=payload,
                created_at=float(envelope["cached_at"]),
                expires_at=float(envelope["expires_at"]),
            )
        except (
            IOError,
            json.JSONDecodeError,
            KeyError,
            TypeError,
            ValueError,
            pickle.UnpicklingError,
            AttributeError,
            ImportError,
            EOFError,
        ) as e:
            # Unreadable entries are cache misses
            logger.debug(f"Ignoring unreadable cache entry {cache_file}: {e}")
            return None

    def set(self, key: str, bin: str, payload: Any, expires_at: float) -> None:
        cache_file = self.get_cache_file_path(key, bin)
        self._ensure_dir_exists(os.path.dirname(cache_file))
        try:
            encoded = base64.b64encode(pickle.dumps(payload)).decode("ascii")
        except (pickle.PicklingError, TypeError, AttributeError) as e:
            logger.warning(f"Could not serialize cache entry {key} in {bin}: {e}")
            return

        envelope = {
            "key": key,
            "payload": encoded,
            "cached_at": self._clock(),
            "expires_at": expires_at,
        }
        if _write_record(cache_file, envelope):
            logger.debug(f"Saved cache entry {key} in {bin}")

    def clear(self, key: str, bin: str) -> None:
        cache_file = self.get_cache_file_path(key, bin)
        try:
            if os.path.exists(cache_file):
                os.remove(cache_file)
                logger.debug(f"Cleared cache entry {key} in {bin}")
        except OSError as e:
            logger.error(f"Could not clear cache file {cache_file}: {e}")

    def clear_bin(self, bin: str) -> bool:
        """
        Remove every record in `bin`.

        Returns:
            bool: `True` if all records were removed or none were present, `False` on error.
        """
        bin_dir = os.path.join(self.cache_dir, _UNSAFE_NAME_RX.sub("-", bin))
        if not os.path.isdir(bin_dir):
            return True
        try:
            with os.scandir(bin_dir) as it:
                for entry in it:
                    if entry.name.endswith((CACHE_RECORD_SUFFIX, ".part")):
                        os.remove(entry.path)
            return True
        except OSError as e:
            logger.error(f"Could not clear cache bin {bin_dir}: {e}")
            return False
