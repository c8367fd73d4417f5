"""Mission assignment: sends the closest idle drone to the newest survivor."""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

from dronecoord.models import SURVIVOR_INFO_LENGTH, Coord, Drone, DroneStatus, Survivor
from dronecoord.protocol import assign_mission_message, send_message
from dronecoord.world import World

log = logging.getLogger(__name__)

MISSION_LIFETIME = 3600


def assign_mission(
    drone: Drone, target: Coord, mission_id: str, now: Optional[float] = None
) -> dict[str, Any]:
    """Put a drone on a mission, send it ASSIGN_MISSION if connected, and return the message."""
    with drone.lock:
        drone.target = target
        drone.status = DroneStatus.ON_MISSION
        current = time.time() if now is None else now
        message = assign_mission_message(
            mission_id, target, int(current) + MISSION_LIFETIME
        )
        if drone.sock is not None:
            try:
                send_message(drone.sock, message)
            except OSError as exc:
                log.warning("could not send mission to drone %d: %s", drone.id, exc)
        return message


def find_closest_idle_drone(world: World, target: Coord) -> Optional[Drone]:
    """Return the idle drone nearest to target by Manhattan distance, or None."""
    closest: Optional[Drone] = None
    best = 0
    with world.drones.lock:
        for drone in world.drones:
            with drone.lock:
                if drone.status != DroneStatus.IDLE:
                    continue
                distance = drone.coord.manhattan(target)
                if closest is None or distance < best:
                    closest, best = drone, distance
    return closest


def ai_step(
    world: World, now: Optional[float] = None
) -> Optional[tuple[Drone, Survivor]]:
    """Assign the survivor at the head of the list to the closest idle drone."""
    with world.survivors.lock:
        survivor = world.survivors.peek()
        if survivor is None:
            return None
        drone = find_closest_idle_drone(world, survivor.coord)
        if drone is None:
            return None
        mission_id = survivor.info[:SURVIVOR_INFO_LENGTH]
        log.info("Drone %d assigned to survivor %s at (%d, %d)",
                 drone.id, mission_id, survivor.coord.x, survivor.coord.y)
        assign_mission(drone, survivor.coord, mission_id, now)
        return drone, survivor


def ai_controller(world: World, interval: float = 1.0) -> None:
    """Run assignment rounds until the world shuts down."""
    log.info("AI controller started")
    while not world.shutting_down:
        ai_step(world)
        world.shutdown.wait(interval)
    log.info("AI controller exiting")