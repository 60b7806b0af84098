"""
Constants and configuration values for releasecache.

This module contains the defaults, option names, URLs and timeouts used
throughout the package.
"""

# Update service
UPDATE_SERVICE_URL = "https://updates.drupal.org/release-history"
DEFAULT_ENGINE = "updatexml"

# Option names
OPTION_CACHE_DURATION = "cache-duration-releasexml"
OPTION_DOWNLOAD_CACHE = "cache"

# Cache durations (in seconds)
DEFAULT_RELEASE_CACHE_DURATION = 24 * 3600
DEFAULT_DOWNLOAD_CACHE_DURATION = 86400

# Persistent cache bins
RELEASE_INFO_CACHE_BIN = "release-info"
DOWNLOAD_CACHE_DIR_NAME = "download"
CACHE_RECORD_SUFFIX = ".cache.json"

# Characters replaced with "-" when turning a URL into a cache file name
DOWNLOAD_CACHE_NAME_SEPARATORS = (":", "/", "?", "=")

# Transport settings
TRANSPORT_TIMEOUT_SECONDS = 30
DEFAULT_CHUNK_SIZE = 8192
WGET_TOOL = "wget"
CURL_TOOL = "curl"
STAGING_FILE_PREFIX = "download_file"

# Selection strategies
STRATEGY_AUTO = "auto"
STRATEGY_NEVER = "never"
STRATEGY_ALWAYS = "always"
STRATEGY_IGNORE = "ignore"
SELECTION_STRATEGIES = (
    STRATEGY_AUTO,
    STRATEGY_NEVER,
    STRATEGY_ALWAYS,
    STRATEGY_IGNORE,
)

# Release filters
FILTER_DEFAULT = ""
FILTER_DEV = "dev"
FILTER_ALL = "all"
RELEASE_DATE_FORMAT = "%Y-%b-%d"

# Error codes attached to ReleaseNotFoundError
ERROR_NO_DEV_RELEASE = "NO_DEV_RELEASE"
ERROR_VERSION_NOT_FOUND = "COULD_NOT_FIND_VERSION"
ERROR_NO_STABLE_RELEASE = "NO_STABLE_RELEASE"

# Configuration file
APP_NAME = "releasecache"
CONFIG_FILE_NAME = "releasecache.yaml"

# Logging configuration
LOGGER_NAME = "releasecache"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "releasecache.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5

# Environment variable names
LOG_LEVEL_ENV_VAR = "RELEASECACHE_LOG_LEVEL"
