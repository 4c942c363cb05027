"""Error taxonomy shared by the client, commands and session engine."""

from __future__ import annotations


class DeepSeekCodeError(Exception):
    """Base class for failures reported to the user as a single error line."""


class AuthenticationError(DeepSeekCodeError):
    """The remote service rejected the API key."""


class RateLimitError(DeepSeekCodeError):
    """The remote service throttled the request."""


class TransportError(DeepSeekCodeError):
    """Any other network, server or reply-envelope failure."""


class ValidationError(DeepSeekCodeError, ValueError):
    """A user-supplied value or command argument was rejected before any request."""


class FilesystemError(DeepSeekCodeError):
    """An input file could not be read or an output path could not be written."""
