"""Shared state of the coordinator: the grid map and the global lists."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional

from dronecoord.models import Coord, Drone
from dronecoord.pool_list import PoolList

CELL_SURVIVOR_CAPACITY = 10


@dataclass(eq=False)
class MapCell:
    coord: Coord
    survivors: PoolList


class GridMap:
    """A height by width grid of cells, each with its own survivor list."""

    def __init__(self, height: int, width: int) -> None:
        if height <= 0 or width <= 0:
            raise ValueError(f"invalid map dimensions: {width}x{height}")
        self.height = height
        self.width = width
        self.cells = [
            [MapCell(Coord(x, y), PoolList(CELL_SURVIVOR_CAPACITY)) for x in range(width)]
            for y in range(height)
        ]

    def contains(self, x: int, y: int) -> bool:
        """Return whether (x, y) lies on the map."""
        return 0 <= x < self.width and 0 <= y < self.height

    def cell(self, x: int, y: int) -> MapCell:
        """Return the cell at column x, row y."""
        if not self.contains(x, y):
            raise IndexError(f"cell ({x}, {y}) outside map")
        return self.cells[y][x]


class World:
    """Map, survivor lists, drone list and the shutdown flag."""

    def __init__(
        self,
        height: int,
        width: int,
        survivor_capacity: int = 1000,
        drone_capacity: int = 100,
    ) -> None:
        self.map = GridMap(height, width)
        self.survivors = PoolList(survivor_capacity)
        self.helped_survivors = PoolList(survivor_capacity)
        self.drones = PoolList(drone_capacity)
        self.shutdown = threading.Event()

    def find_drone_by_id(self, drone_id: int) -> Optional[Drone]:
        """Return the first drone with this id, or None."""
        with self.drones.lock:
            return next((d for d in self.drones if d.id == drone_id), None)

    def request_shutdown(self) -> None:
        """Signal every worker to stop."""
        self.shutdown.set()

    @property
    def shutting_down(self) -> bool:
        return self.shutdown.is_set()