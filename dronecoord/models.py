"""Core value types shared by the coordinator and the drone client."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Optional

SURVIVOR_INFO_LENGTH = 24
DRONE_ID_LENGTH = 9

_DRONE_ID_RE = re.compile(r"D\s*([+-]?\d+)")


@dataclass(frozen=True)
class Coord:
    """A grid position: x is the column, y is the row."""

    x: int
    y: int

    def manhattan(self, other: Coord) -> int:
        """Return the Manhattan distance to another coordinate."""
        return abs(self.x - other.x) + abs(self.y - other.y)

    def step_toward(self, target: Coord) -> Coord:
        """Move one cell toward the target, horizontally first, then vertically."""
        if self.x < target.x:
            return Coord(self.x + 1, self.y)
        if self.x > target.x:
            return Coord(self.x - 1, self.y)
        if self.y < target.y:
            return Coord(self.x, self.y + 1)
        if self.y > target.y:
            return Coord(self.x, self.y - 1)
        return self


class DroneStatus(IntEnum):
    IDLE = 0
    ON_MISSION = 1
    DISCONNECTED = 2


@dataclass(eq=False)
class Drone:
    """A drone known to the coordinator; compared by identity."""

    id: int
    coord: Coord
    status: DroneStatus = DroneStatus.IDLE
    target: Coord = Coord(0, 0)
    last_update: Optional[datetime] = None
    sock: Any = None
    mission_id: str = ""
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def label(self) -> str:
        """Return the wire identifier of this drone, such as ``D42``."""
        return format_drone_id(self.id)


@dataclass
class Survivor:
    """A survivor waiting for, or having received, help."""

    coord: Coord
    info: str
    discovery_time: Optional[datetime] = None
    helped_time: Optional[datetime] = None
    status: int = 0


def create_survivor(
    coord: Coord, info: str, discovery_time: Optional[datetime]
) -> Survivor:
    """Create a survivor, truncating its info to the fixed field length."""
    return Survivor(
        coord=coord,
        info=info[:SURVIVOR_INFO_LENGTH],
        discovery_time=discovery_time,
    )


def parse_drone_id(text: str) -> int:
    """Parse a ``D<number>`` identifier; raise ValueError if it does not match."""
    if not isinstance(text, str):
        raise ValueError(f"invalid drone id: {text!r}")
    match = _DRONE_ID_RE.match(text)
    if match is None:
        raise ValueError(f"invalid drone id: {text!r}")
    return int(match.group(1))


def format_drone_id(drone_id: int) -> str:
    """Format a numeric drone id as its wire identifier."""
    return f"D{drone_id}"[:DRONE_ID_LENGTH]