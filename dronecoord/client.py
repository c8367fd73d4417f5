"""A drone that connects to the coordinator, reports status and flies missions."""

from __future__ import annotations

import argparse
import contextlib
import logging
import random
import socket
import time
from typing import Any, Optional

from dronecoord.models import Coord, Drone, DroneStatus, format_drone_id
from dronecoord.protocol import (
    LineReceiver,
    ReceiveTimeout,
    handshake_message,
    heartbeat_response_message,
    mission_complete_message,
    send_message,
    status_update_message,
)

log = logging.getLogger(__name__)

SERVER_IP = "127.0.0.1"
PORT = 8080
MISSION_ID_LENGTH = 31
RECEIVE_TIMEOUT = 1.0
MAP_WIDTH = 40
MAP_HEIGHT = 30


class DroneClient:
    """The drone side of one connection."""

    def __init__(self, sock: socket.socket, drone_id: int, coord: Coord) -> None:
        self.sock = sock
        self.drone = Drone(id=drone_id, coord=coord, sock=sock)
        self.label = format_drone_id(drone_id)
        self.receiver = LineReceiver(sock)

    def handshake(self) -> dict[str, Any]:
        """Introduce the drone and return the acknowledgement.

        Raises ConnectionError when no HANDSHAKE_ACK comes back.
        """
        send_message(self.sock, handshake_message(self.label))
        log.info("Sent HANDSHAKE: drone_id=%s", self.label)
        try:
            ack = self.receiver.receive()
        except (ReceiveTimeout, ValueError) as exc:
            raise ConnectionError("Handshake failed") from exc
        if not isinstance(ack, dict) or ack.get("type") != "HANDSHAKE_ACK":
            raise ConnectionError("Handshake failed")
        log.info("Received HANDSHAKE_ACK")
        return ack

    def navigate_to_target(self) -> Optional[dict[str, Any]]:
        """Move one cell toward the target; on arrival go idle and report completion."""
        drone = self.drone
        with drone.lock:
            drone.coord = drone.coord.step_toward(drone.target)
            if drone.coord != drone.target:
                return None
            drone.status = DroneStatus.IDLE
            message = mission_complete_message(
                self.label, drone.mission_id, timestamp=int(time.time())
            )
            send_message(self.sock, message)
            log.info("Sent MISSION_COMPLETE: mission_id=%s", drone.mission_id)
            return message

    def send_status(self) -> dict[str, Any]:
        """Send and return a STATUS_UPDATE with the current position."""
        with self.drone.lock:
            message = status_update_message(
                self.label, self.drone.coord, self.drone.status
            )
            send_message(self.sock, message)
        log.info("Sent STATUS_UPDATE: x=%d, y=%d, status=%s",
                 self.drone.coord.x, self.drone.coord.y, message["status"])
        return message

    def handle_message(self, message: Any) -> Optional[dict[str, Any]]:
        """React to a coordinator message; return any reply that was sent."""
        kind = message.get("type") if isinstance(message, dict) else None
        log.info("Received message: type=%s", kind)
        if kind == "ASSIGN_MISSION":
            target = message.get("target")
            if not isinstance(target, dict):
                target = {}
            mission_id = message.get("mission_id")
            mission_id = mission_id if isinstance(mission_id, str) else ""
            with self.drone.lock:
                self.drone.target = Coord(int(target.get("x", 0)), int(target.get("y", 0)))
                self.drone.status = DroneStatus.ON_MISSION
                self.drone.mission_id = mission_id[:MISSION_ID_LENGTH]
            log.info("Received ASSIGN_MISSION: mission_id=%s, target=(%d, %d)",
                     mission_id, self.drone.target.x, self.drone.target.y)
        elif kind == "HEARTBEAT":
            response = heartbeat_response_message(self.label)
            send_message(self.sock, response)
            log.info("Sent HEARTBEAT_RESPONSE")
            return response
        elif kind == "ERROR":
            log.error("Error from server: %s", message.get("message"))
        return None

    def run(self, interval: float = 0.5) -> int:
        """Report and fly until the server disconnects; return the updates sent."""
        updates = 0
        while True:
            try:
                with self.drone.lock:
                    if self.drone.status == DroneStatus.ON_MISSION:
                        self.navigate_to_target()
                    self.send_status()
            except OSError as exc:
                log.error("Server disconnected: %s", exc)
                break
            updates += 1
            try:
                message = self.receiver.receive()
            except ReceiveTimeout:
                pass
            except ValueError as exc:
                log.warning("Failed to parse message: %s", exc)
            else:
                if message is None:
                    log.error("Server disconnected")
                    break
                try:
                    self.handle_message(message)
                except OSError as exc:
                    log.error("Server disconnected: %s", exc)
                    break
            time.sleep(interval)
        return updates


def main(argv: Optional[list[str]] = None) -> int:
    """Connect a randomly placed drone to the coordinator and run it."""
    parser = argparse.ArgumentParser(description="Run one drone client.")
    parser.add_argument("--host", default=SERVER_IP)
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--interval", type=float, default=0.5)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    rng = random.Random()
    drone_id = rng.randrange(1000)
    coord = Coord(rng.randrange(MAP_WIDTH), rng.randrange(MAP_HEIGHT))
    try:
        sock = socket.create_connection((args.host, args.port))
    except OSError as exc:
        log.error("Connection failed: %s", exc)
        return 1
    with contextlib.closing(sock):
        log.info("Connected to server at %s:%d", args.host, args.port)
        sock.settimeout(RECEIVE_TIMEOUT)
        client = DroneClient(sock, drone_id, coord)
        try:
            client.handshake()
        except (ConnectionError, OSError) as exc:
            log.error("%s", exc)
            return 1
        client.run(args.interval)
    return 0