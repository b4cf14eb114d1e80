# storefront/gateway/errors.py

"""Error taxonomy shared by the gateway, catalog and mutation layers.

Every error carries a human-readable ``message`` (the public contract)
plus an internal :class:`ErrorKind` tag for programmatic handling.
"""

from enum import Enum


class ErrorKind(Enum):
    """Internal classification attached alongside the message."""

    NETWORK = "network"
    SERVER = "server"
    MALFORMED = "malformed"
    BUSY = "busy"
    VALIDATION = "validation"


class StorefrontError(Exception):
    """Base class for every failure raised by the storefront core."""

    kind: ErrorKind = ErrorKind.SERVER

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NetworkFailure(StorefrontError):
    """The request never produced a response."""

    kind = ErrorKind.NETWORK


class ServerError(StorefrontError):
    """The remote service answered with a non-2xx status."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.status = status


class MalformedResponse(StorefrontError):
    """The response body did not have the expected shape."""

    kind = ErrorKind.MALFORMED


class ValidationFailure(StorefrontError, ValueError):
    """Input rejected client-side before anything was sent."""

    kind = ErrorKind.VALIDATION
