"""TCP coordinator that accepts drone connections and routes their messages."""

from __future__ import annotations

import contextlib
import logging
import random
import select
import socket
import threading
from typing import Any, Optional

from dronecoord.handlers import dispatch
from dronecoord.models import Drone, DroneStatus
from dronecoord.protocol import LineReceiver, ReceiveTimeout, send_message
from dronecoord.survivors import survivor_generator
from dronecoord.world import World

log = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
LISTEN_BACKLOG = 3


class DroneServer:
    """Listens for drones and serves each connection on its own thread."""

    poll_interval = 1.0
    client_timeout = 5.0

    def __init__(
        self,
        world: World,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.world = world
        self.host = host
        self.port = port
        self.rng = rng if rng is not None else random.Random()
        self.address: Optional[tuple[str, int]] = None
        self._listener: Optional[socket.socket] = None

    def bind(self) -> tuple[str, int]:
        """Open the listening socket and return the address it is bound to."""
        if self._listener is not None:
            raise RuntimeError("server already bound")
        listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            listener.bind((self.host, self.port))
            listener.listen(LISTEN_BACKLOG)
        except OSError:
            listener.close()
            raise
        self._listener = listener
        host, port = listener.getsockname()[:2]
        self.address = (host, port)
        log.info("Server listening on port %d", port)
        return self.address

    def serve_forever(self) -> None:
        """Accept connections until the world shuts down or the socket closes."""
        listener = self._listener
        if listener is None:
            raise RuntimeError("server is not bound")
        while not self.world.shutting_down:
            try:
                ready, _, _ = select.select([listener], [], [], self.poll_interval)
            except InterruptedError:
                continue
            except (OSError, ValueError):
                break
            if not ready:
                continue
            try:
                conn, peer = listener.accept()
            except InterruptedError:
                continue
            except OSError as exc:
                log.warning("accept failed: %s", exc)
                continue
            client_ip = peer[0]
            log.info("Connection accepted from %s:%d", client_ip, peer[1])
            threading.Thread(
                target=self.handle_client,
                args=(conn, client_ip),
                name=f"drone-client-{client_ip}",
                daemon=True,
            ).start()
        log.info("Server shutting down")

    def handle_client(self, sock: socket.socket, client_ip: str) -> Optional[Drone]:
        """Serve one connection until it closes; return the drone it identified."""
        sock.settimeout(self.client_timeout)
        receiver = LineReceiver(sock)
        current: Optional[Drone] = None

        def send(message: dict[str, Any]) -> None:
            try:
                send_message(sock, message)
            except OSError as exc:
                log.warning("send to %s failed: %s", client_ip, exc)

        try:
            while not self.world.shutting_down:
                try:
                    message = receiver.receive()
                except (ReceiveTimeout, ValueError) as exc:
                    log.info("receive from %s failed: %s", client_ip, exc)
                    message = None
                if message is None:
                    log.info("Client %s disconnected", client_ip)
                    break
                drone = dispatch(
                    self.world, send, message, client_ip, self.rng, self.respawn
                )
                if drone is not None:
                    with drone.lock:
                        if drone.sock is None:
                            drone.sock = sock
                    current = drone
        finally:
            if current is not None:
                with current.lock:
                    current.status = DroneStatus.DISCONNECTED
            with contextlib.suppress(OSError):
                sock.close()
        return current

    def respawn(self) -> threading.Thread:
        """Start another survivor generator after a rescue."""
        thread = threading.Thread(
            target=survivor_generator,
            args=(self.world, self.rng),
            name="survivor-respawn",
            daemon=True,
        )
        thread.start()
        return thread

    def close(self) -> None:
        """Close the listening socket."""
        if self._listener is not None:
            with contextlib.suppress(OSError):
                self._listener.close()
            self._listener = None


def run_server_loop(
    world: World, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT
) -> tuple[str, int]:
    """Bind, serve until shutdown, close, and return the address that was served."""
    server = DroneServer(world, host, port)
    address = server.bind()
    try:
        server.serve_forever()
    finally:
        server.close()
    return address