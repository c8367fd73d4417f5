"""Locally simulated drones that fly to their targets and rescue survivors."""

from __future__ import annotations

import contextlib
import logging
import random
import threading
from typing import Optional

from dronecoord.models import Coord, Drone, DroneStatus, Survivor
from dronecoord.pool_list import ListFullError
from dronecoord.world import World

log = logging.getLogger(__name__)


def _rescue_at(world: World, coord: Coord) -> Optional[Survivor]:
    if not world.map.contains(coord.x, coord.y):
        return None
    cell_list = world.map.cell(coord.x, coord.y).survivors
    with cell_list.lock:
        found = next((s for s in cell_list if s.coord == coord), None)
        if found is None:
            return None
        cell_list.remove_data(found)
    with world.survivors.lock, contextlib.suppress(ValueError):
        world.survivors.remove_data(found)
    try:
        world.helped_survivors.add(found)
    except ListFullError:
        log.warning("helped survivor list is full")
    return found


def drone_step(world: World, drone: Drone) -> Optional[Survivor]:
    """Advance a drone on a mission by one cell; return the survivor it rescued."""
    with drone.lock:
        if drone.status != DroneStatus.ON_MISSION:
            return None
        drone.coord = drone.coord.step_toward(drone.target)
        if drone.coord != drone.target:
            return None
        rescued = _rescue_at(world, drone.coord)
        if rescued is not None:
            log.info("Drone %d: rescued survivor at (%d, %d)",
                     drone.id, drone.coord.x, drone.coord.y)
        drone.status = DroneStatus.IDLE
        log.info("Drone %d: mission completed", drone.id)
        return rescued


def drone_behavior(
    world: World,
    drone: Drone,
    interval: float = 0.001,
    stop: Optional[threading.Event] = None,
) -> None:
    """Step a drone repeatedly until the stop event or the world shutdown is set."""
    stop = stop if stop is not None else world.shutdown
    while not stop.is_set() and not world.shutting_down:
        drone_step(world, drone)
        stop.wait(interval)


class DroneFleet:
    """A fixed number of simulated drones, each driven by its own thread."""

    def __init__(
        self, world: World, count: int = 10, rng: Optional[random.Random] = None
    ) -> None:
        rng = rng if rng is not None else random
        self.world = world
        self.drones: list[Drone] = []
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []
        for drone_id in range(count):
            coord = Coord(rng.randrange(world.map.width), rng.randrange(world.map.height))
            drone = Drone(id=drone_id, coord=coord, target=coord)
            world.drones.add(drone)
            self.drones.append(drone)

    def start(self, interval: float = 0.001) -> None:
        """Start one behaviour thread per drone."""
        if self._threads:
            raise RuntimeError("fleet already started")
        self._stop.clear()
        for drone in self.drones:
            thread = threading.Thread(
                target=drone_behavior,
                args=(self.world, drone, interval, self._stop),
                name=f"drone-{drone.id}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def stop(self) -> None:
        """Stop and join every behaviour thread."""
        self._stop.set()
        for thread in self._threads:
            thread.join()
        self._threads.clear()