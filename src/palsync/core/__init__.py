"""Session management and sync operations."""

from .session import ConnectOutcome, Session, SessionManager, MAX_LOGIN_ATTEMPTS
from .remote_api import RemoteApi, CONNECTION_SUCCESSFUL, COULD_NOT_CONNECT

__all__ = [
    "ConnectOutcome",
    "Session",
    "SessionManager",
    "MAX_LOGIN_ATTEMPTS",
    "RemoteApi",
    "CONNECTION_SUCCESSFUL",
    "COULD_NOT_CONNECT"
]
