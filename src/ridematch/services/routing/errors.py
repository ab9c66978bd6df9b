"""Exceptions raised by the directions provider client."""

from __future__ import annotations


class DirectionsError(Exception):
    """Base class for any failure to obtain an answer from the routing provider."""


class DirectionsNotConfiguredError(DirectionsError):
    """No API key is configured, so no request was attempted."""


class DirectionsTransportError(DirectionsError, ConnectionError):
    """Timeout, connection failure or non-success HTTP status after all retries."""


class ProviderStatusError(DirectionsError, ValueError):
    """The provider answered, but with a non-OK status or an unusable payload."""

    def __init__(self, status: str, error_message: str | None = None) -> None:
        self.status = status
        self.error_message = error_message
        detail = f"{status}: {error_message}" if error_message else status
        super().__init__(f"Provider returned status {detail}")
