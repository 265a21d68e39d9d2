"""
Scraper exceptions.

Transient failures (network, bad JSON, API soft errors) never surface as
exceptions -- they end pagination and the partial result is returned.
Only caller mistakes and setup failures are raised.
"""


class ScraperError(Exception):
    """Base class for all scraper errors."""


class ScraperNotInitializedError(ScraperError):
    """A fetch was attempted before the browser page was opened."""

    def __init__(self, message: str = "Browser not initialized"):
        super().__init__(message)


class InvalidIdentifierError(ScraperError):
    """The input could not be mapped to a content id."""


class UnsupportedPlatformError(ScraperError):
    """The URL belongs to a platform with no registered scraper."""


class LoginSessionError(ScraperError):
    """Interactive login could not be started, completed or cancelled."""
