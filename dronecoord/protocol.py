"""Newline-delimited JSON messages exchanged between drones and the coordinator."""

from __future__ import annotations

import json
import socket
import time
from typing import Any, Optional

from dronecoord.models import Coord, DroneStatus

BUFFER_SIZE = 4096
SESSION_ID = "S123"
MISSION_CHECKSUM = "a1b2c3"
DEFAULT_COMPLETE_DETAILS = "Reached survivor location"


def _now() -> int:
    return int(time.time())


def encode_message(message: dict[str, Any]) -> bytes:
    """Serialise a message compactly and terminate it with a newline."""
    text = json.dumps(message, separators=(",", ":"), ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def send_message(sock: socket.socket, message: dict[str, Any]) -> None:
    """Send one framed message over a connected socket."""
    sock.sendall(encode_message(message))


class ReceiveTimeout(TimeoutError):
    """Raised when no complete message arrived before the socket timed out."""


class LineReceiver:
    """Reads newline-framed JSON messages from a socket, buffering partial lines."""

    def __init__(self, sock: socket.socket, buffer_size: int = BUFFER_SIZE) -> None:
        if buffer_size < 2:
            raise ValueError("buffer_size must be at least 2")
        self.sock = sock
        self.buffer_size = buffer_size
        self._buffer = b""

    def receive(self) -> Optional[Any]:
        """Return the next message, or None once the peer has closed.

        Raises ReceiveTimeout when the socket times out (buffered data is kept)
        and ValueError when a framed line is not valid JSON.
        """
        while True:
            line, sep, rest = self._buffer.partition(b"\n")
            if sep:
                self._buffer = rest
                return json.loads(line)

            room = self.buffer_size - len(self._buffer) - 1
            chunk = b""
            if room > 0:
                try:
                    chunk = self.sock.recv(room)
                except (TimeoutError, BlockingIOError):
                    raise ReceiveTimeout("no message before timeout") from None
                except OSError:
                    chunk = b""

            if not chunk:
                if self._buffer:
                    data, self._buffer = self._buffer, b""
                    return json.loads(data)
                return None
            self._buffer += chunk


def handshake_message(drone_id: str) -> dict[str, Any]:
    """Build the HANDSHAKE a drone sends when it connects."""
    return {
        "type": "HANDSHAKE",
        "drone_id": drone_id,
        "capabilities": {
            "max_speed": 30,
            "battery_capacity": 100,
            "payload": "medical",
        },
    }


def handshake_ack_message() -> dict[str, Any]:
    """Build the coordinator's reply to a HANDSHAKE."""
    return {
        "type": "HANDSHAKE_ACK",
        "session_id": SESSION_ID,
        "config": {"status_update_interval": 5, "heartbeat_interval": 10},
    }


def status_update_message(
    drone_id: str,
    coord: Coord,
    status: DroneStatus,
    timestamp: Optional[int] = None,
) -> dict[str, Any]:
    """Build a STATUS_UPDATE; any status other than idle is reported as busy."""
    return {
        "type": "STATUS_UPDATE",
        "drone_id": drone_id,
        "timestamp": _now() if timestamp is None else timestamp,
        "location": {"x": coord.x, "y": coord.y},
        "status": "idle" if status == DroneStatus.IDLE else "busy",
        "battery": 85,
        "speed": 5,
    }


def assign_mission_message(
    mission_id: str, target: Coord, expiry: Optional[int] = None
) -> dict[str, Any]:
    """Build an ASSIGN_MISSION; the expiry defaults to one hour from now."""
    return {
        "type": "ASSIGN_MISSION",
        "mission_id": mission_id,
        "priority": "high",
        "target": {"x": target.x, "y": target.y},
        "expiry": _now() + 3600 if expiry is None else expiry,
        "checksum": MISSION_CHECKSUM,
    }


def mission_complete_message(
    drone_id: str,
    mission_id: str,
    details: str = DEFAULT_COMPLETE_DETAILS,
    timestamp: Optional[int] = None,
) -> dict[str, Any]:
    """Build a successful MISSION_COMPLETE; the timestamp is left out when None."""
    message: dict[str, Any] = {
        "type": "MISSION_COMPLETE",
        "drone_id": drone_id,
        "mission_id": mission_id,
    }
    if timestamp is not None:
        message["timestamp"] = timestamp
    message["success"] = True
    message["details"] = details
    return message


def heartbeat_response_message(
    drone_id: str, timestamp: Optional[int] = None
) -> dict[str, Any]:
    """Build a drone's answer to a HEARTBEAT."""
    return {
        "type": "HEARTBEAT_RESPONSE",
        "drone_id": drone_id,
        "timestamp": _now() if timestamp is None else timestamp,
    }


def error_message(text: str) -> dict[str, Any]:
    """Build an ERROR message with code 400."""
    return {"type": "ERROR", "code": 400, "message": text}