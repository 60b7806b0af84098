"""
Custom exceptions for releasecache.

This module defines the error taxonomy shared by the release selection engine
and the artifact fetcher, so callers can tell configuration problems, missing
releases, user aborts and transport failures apart.
"""

from typing import Optional


class ReleaseCacheError(Exception):
    """
    Base exception for all releasecache errors.

    All custom exceptions in releasecache inherit from this class to allow
    callers to catch every package-specific error at once.
    """

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: The primary error message.
            details: Optional additional context about the error.
        """
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ReleaseCacheError):
    """
    Exception raised when configuration is invalid.

    This includes:
    - Unknown release selection strategies
    - Invalid option values
    - Configuration file parsing errors
    """

    pass


class ConfigFileError(ConfigurationError):
    """Exception raised when the configuration file cannot be read or parsed."""

    pass


class ConfigValidationError(ConfigurationError):
    """Exception raised when a configuration value or request field is invalid."""

    pass


# =============================================================================
# Release Selection Errors
# =============================================================================


class ReleaseNotFoundError(ReleaseCacheError):
    """
    Exception raised when no release satisfies a request.

    Attributes:
        project: Name of the project that was looked up.
        version: Requested version, when one was given.
        code: Machine-readable reason (see constants.ERROR_*).
    """

    def __init__(
        self,
        message: str,
        project: Optional[str] = None,
        version: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.project = project
        self.version = version
        self.code = code


class MetadataUnavailableError(ReleaseCacheError):
    """Exception raised when release metadata for a project cannot be obtained."""

    def __init__(
        self,
        message: str,
        project: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.project = project


class UserAbortError(ReleaseCacheError):
    """Exception raised when the user declines an interactive choice."""

    pass


# =============================================================================
# Transport / Download Errors
# =============================================================================


class TransportUnavailableError(ReleaseCacheError):
    """Exception raised when no download tool is available on this system."""

    pass


class DownloadError(ReleaseCacheError):
    """
    Exception raised when every transport attempt for a URL failed.

    Attributes:
        url: The URL that was being downloaded.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        super().__init__(message, details)
        self.url = url
