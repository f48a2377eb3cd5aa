"""Transport level exceptions."""

from enum import Enum
from typing import Optional


class StatusCode(str, Enum):
    """Why a remote call failed."""
    UNKNOWN = "unknown"
    UNAUTHENTICATED = "unauthenticated"
    UNIMPLEMENTED = "unimplemented"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    UNAVAILABLE = "unavailable"
    INTERNAL = "internal"


class PalSyncError(Exception):
    """Base class for all errors raised by palsync."""
    pass


class ChannelConnectionError(PalSyncError, ConnectionError):
    """Raised when the channel cannot reach a connected state."""
    pass


class RpcError(PalSyncError):
    """Raised when a remote call fails at the transport level."""

    def __init__(self, message: str, status: StatusCode = StatusCode.UNKNOWN, method: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.method = method


class MalformedResponseError(RpcError):
    """Raised when the server answers with something that is not a valid reply."""

    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message, StatusCode.INTERNAL, method)


def status_from_http(status: int) -> StatusCode:
    """Map an HTTP status onto a ``StatusCode``."""
    if status == 401:
        return StatusCode.UNAUTHENTICATED
    if status == 404:
        return StatusCode.UNIMPLEMENTED
    if status in (408, 504):
        return StatusCode.DEADLINE_EXCEEDED
    if status >= 500:
        return StatusCode.UNAVAILABLE
    return StatusCode.UNKNOWN
