"""Processing of the messages a connected drone sends to the coordinator."""

from __future__ import annotations

import contextlib
import dataclasses
import json
import logging
import random
from datetime import datetime
from typing import Any, Callable, Optional

from dronecoord.models import Coord, Drone, DroneStatus, Survivor, parse_drone_id
from dronecoord.pool_list import ListFullError
from dronecoord.protocol import (
    error_message,
    handshake_ack_message,
    mission_complete_message,
)
from dronecoord.world import World

log = logging.getLogger(__name__)

RESCUE_DETAILS = "Delivered aid to survivor"

Send = Callable[[dict[str, Any]], object]
Respawn = Optional[Callable[[], object]]


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def _require(message: dict[str, Any], *keys: str, context: str) -> None:
    missing = [key for key in keys if key not in message]
    if missing:
        raise ValueError(f"{context} missing fields: {', '.join(missing)}")


def _record_helped(world: World, survivor: Survivor) -> Optional[Survivor]:
    helped = dataclasses.replace(survivor, status=1, helped_time=datetime.now())
    try:
        world.helped_survivors.add(helped)
    except ListFullError:
        log.error("failed to add survivor %s to helped list", survivor.info)
        return None
    return helped


def _remove_from_cell(world: World, survivor: Survivor) -> None:
    coord = survivor.coord
    if not world.map.contains(coord.x, coord.y):
        return
    cell_list = world.map.cell(coord.x, coord.y).survivors
    node = next((n for n in cell_list.nodes() if n.data is survivor), None)
    if node is not None:
        cell_list.remove_node(node)


def process_handshake(
    world: World,
    send: Send,
    message: dict[str, Any],
    client_ip: str,
    rng: Optional[random.Random] = None,
) -> Drone:
    """Register the drone if new, acknowledge, and return it.

    A new drone has no connection attached; the caller attaches it.
    Raises ValueError for missing fields, a bad id or a full drone list.
    """
    _require(message, "drone_id", "capabilities", context=f"HANDSHAKE from {client_ip}")
    label = _as_text(message["drone_id"])
    drone_id = parse_drone_id(label)
    rng = rng if rng is not None else random
    with world.drones.lock:
        drone = world.find_drone_by_id(drone_id)
        if drone is None:
            coord = Coord(rng.randrange(world.map.width), rng.randrange(world.map.height))
            drone = Drone(id=drone_id, coord=coord, last_update=datetime.now())
            try:
                world.drones.add(drone)
            except ListFullError as exc:
                raise ValueError(f"cannot register drone {label} from {client_ip}") from exc
            log.info("Drone %s from %s registered at (%d, %d)",
                     label, client_ip, coord.x, coord.y)
    send(handshake_ack_message())
    return drone


def process_status_update(
    world: World, send: Send, message: dict[str, Any], respawn: Respawn = None
) -> Optional[Survivor]:
    """Apply a drone's position and status; rescue a survivor standing there.

    Returns the helped-survivor record, or None when nothing was rescued.
    """
    _require(message, "drone_id", "status", context="STATUS_UPDATE")
    label = _as_text(message["drone_id"])
    location = message.get("location")
    if not isinstance(location, dict):
        location = {}
    try:
        coord = Coord(int(location.get("x", 0)), int(location.get("y", 0)))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"STATUS_UPDATE has invalid location: {location!r}") from exc
    new_status = (
        DroneStatus.IDLE if message["status"] == "idle" else DroneStatus.ON_MISSION
    )

    try:
        drone = world.find_drone_by_id(parse_drone_id(label))
    except ValueError:
        drone = None
    if drone is not None:
        with drone.lock:
            drone.coord = coord
            drone.status = new_status

    helped: Optional[Survivor] = None
    rescued = False
    with contextlib.ExitStack() as stack:
        if world.map.contains(coord.x, coord.y):
            stack.enter_context(world.map.cell(coord.x, coord.y).survivors.lock)
        stack.enter_context(world.survivors.lock)
        stack.enter_context(world.helped_survivors.lock)
        node = next((n for n in world.survivors.nodes() if n.data.coord == coord), None)
        if node is not None:
            survivor = node.data
            send(mission_complete_message(label, survivor.info, details=RESCUE_DETAILS))
            helped = _record_helped(world, survivor)
            _remove_from_cell(world, survivor)
            world.survivors.remove_node(node)
            if drone is not None:
                with drone.lock:
                    drone.status = DroneStatus.IDLE
            rescued = True
            log.info("Survivor %s rescued at (%d, %d)", survivor.info, coord.x, coord.y)
    if rescued and respawn is not None:
        respawn()
    return helped


def process_mission_complete(
    world: World, message: dict[str, Any], respawn: Respawn = None
) -> Optional[Survivor]:
    """Close a drone's mission and move the survivor at its position to the helped list.

    Raises ValueError for missing fields, a bad id or an unknown drone.
    """
    _require(message, "drone_id", "mission_id", "success", context="MISSION_COMPLETE")
    label = _as_text(message["drone_id"])
    mission_id = _as_text(message["mission_id"])
    success = bool(message["success"])
    drone = world.find_drone_by_id(parse_drone_id(label))
    if drone is None:
        raise ValueError(f"drone {label} not found for MISSION_COMPLETE")
    if not success:
        log.info("Drone %s failed mission %s", label, mission_id)
        return None

    helped: Optional[Survivor] = None
    with contextlib.ExitStack() as stack:
        coord = drone.coord
        if world.map.contains(coord.x, coord.y):
            stack.enter_context(world.map.cell(coord.x, coord.y).survivors.lock)
        stack.enter_context(world.survivors.lock)
        stack.enter_context(world.helped_survivors.lock)
        stack.enter_context(drone.lock)
        drone.status = DroneStatus.IDLE
        log.info("Drone %s completed mission %s", label, mission_id)
        survivor = next((s for s in world.survivors if s.coord == drone.coord), None)
        if survivor is not None:
            helped = _record_helped(world, survivor)
            if helped is not None:
                _remove_from_cell(world, survivor)
                with contextlib.suppress(ValueError):
                    world.survivors.remove_data(survivor)
        else:
            log.info("No survivor at drone position (%d,%d)",
                     drone.coord.x, drone.coord.y)
    if respawn is not None:
        respawn()
    return helped


def process_heartbeat_response(
    world: World, message: dict[str, Any]
) -> Optional[Drone]:
    """Refresh the last-update time of the answering drone and return it."""
    _require(message, "drone_id", context="HEARTBEAT_RESPONSE")
    try:
        drone_id = parse_drone_id(_as_text(message["drone_id"]))
    except ValueError:
        return None
    drone = world.find_drone_by_id(drone_id)
    if drone is not None:
        with drone.lock:
            drone.last_update = datetime.now()
    return drone


def dispatch(
    world: World,
    send: Send,
    message: Any,
    client_ip: str = "",
    rng: Optional[random.Random] = None,
    respawn: Respawn = None,
) -> Optional[Drone]:
    """Route one message to its handler; return the drone a HANDSHAKE refers to."""
    kind = message.get("type") if isinstance(message, dict) else None
    if kind is None:
        send(error_message("Missing message type"))
        return None
    kind = _as_text(kind)
    try:
        if kind == "HANDSHAKE":
            with contextlib.suppress(ValueError):
                process_handshake(world, send, message, client_ip, rng)
            if "drone_id" in message:
                with contextlib.suppress(ValueError):
                    return world.find_drone_by_id(
                        parse_drone_id(_as_text(message["drone_id"]))
                    )
            return None
        if kind == "STATUS_UPDATE":
            process_status_update(world, send, message, respawn)
        elif kind == "MISSION_COMPLETE":
            process_mission_complete(world, message, respawn)
        elif kind == "HEARTBEAT_RESPONSE":
            process_heartbeat_response(world, message)
        else:
            send(error_message("Invalid message type"))
    except ValueError as exc:
        log.warning("%s from %s rejected: %s", kind, client_ip, exc)
    return None