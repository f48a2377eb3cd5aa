"""Domain models shared with the host application."""

from .marker import Marker, MarkerType, Position
from ..transport.messages import FloorStatistics

__all__ = [
    "Marker",
    "MarkerType",
    "Position",
    "FloorStatistics"
]
