"""Client for the palace marker sync server."""

__version__ = "1.0.0"

from .config import ClientConfiguration, OperatingMode, get_settings
from .core import ConnectOutcome, RemoteApi, SessionManager
from .models import FloorStatistics, Marker, MarkerType, Position

__all__ = [
    "ClientConfiguration",
    "OperatingMode",
    "get_settings",
    "ConnectOutcome",
    "RemoteApi",
    "SessionManager",
    "FloorStatistics",
    "Marker",
    "MarkerType",
    "Position"
]
