from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for discovery failures."""


class ConfigurationError(DiscoveryError):
    """No usable backend could be configured. Raised at construction time."""


class TransportError(DiscoveryError):
    """The registration endpoint could not be reached or answered with an error status."""


class ResponseParseError(DiscoveryError):
    """The registration endpoint answered with something that is not a submission list."""


class ListingError(DiscoveryError):
    """A single object-store listing entry (or page) could not be used."""


class ObjectFetchError(DiscoveryError):
    """A single submission object could not be fetched or parsed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason
