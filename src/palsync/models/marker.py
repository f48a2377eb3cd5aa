"""Marker domain values and their wire mapping."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, NamedTuple

from ..transport.messages import ObjectType, PalaceObject


class MarkerType(IntEnum):
    """What was found at a position. Values match the wire ``ObjectType``."""
    UNKNOWN = ObjectType.UNKNOWN.value
    TRAP = ObjectType.TRAP.value
    HOARD = ObjectType.HOARD.value


class Position(NamedTuple):
    x: float
    y: float
    z: float


@dataclass
class Marker:
    """A trap or hoard coffer at a position on a palace floor.

    ``remote_seen`` is True for markers that came from the server and does
    not take part in equality.
    """

    type: MarkerType
    position: Position
    remote_seen: bool = field(default=False, compare=False)

    def to_palace_object(self) -> PalaceObject:
        """Convert to the wire representation."""
        return PalaceObject(
            type=int(self.type),
            x=self.position.x,
            y=self.position.y,
            z=self.position.z
        )

    @classmethod
    def from_palace_object(cls, obj: PalaceObject, remote_seen: bool = True) -> "Marker":
        """Build a marker from the wire representation.

        Object types outside ``MarkerType`` become ``MarkerType.UNKNOWN``.
        """
        try:
            marker_type = MarkerType(obj.type)
        except ValueError:
            marker_type = MarkerType.UNKNOWN
        return cls(
            type=marker_type,
            position=Position(obj.x, obj.y, obj.z),
            remote_seen=remote_seen
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.name.lower(),
            "x": self.position.x,
            "y": self.position.y,
            "z": self.position.z,
            "remote_seen": self.remote_seen
        }
