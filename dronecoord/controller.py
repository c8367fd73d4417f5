"""Coordinator entry point: starts the workers, the server and the window."""

from __future__ import annotations

import argparse
import logging
import signal
import threading
import time
from typing import Any, Optional

import pygame

from dronecoord.ai import ai_controller
from dronecoord.server import DEFAULT_HOST, DEFAULT_PORT, DroneServer
from dronecoord.survivors import survivor_generator
from dronecoord.view import MapView
from dronecoord.world import World

log = logging.getLogger(__name__)

MAP_HEIGHT = 30
MAP_WIDTH = 40
FRAME_DELAY = 0.3


class Simulation:
    """The coordinator's shared world and the threads that work on it."""

    def __init__(
        self,
        height: int = MAP_HEIGHT,
        width: int = MAP_WIDTH,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self.world = World(height, width)
        log.info("Map initialised: %dx%d", width, height)
        self.server = DroneServer(self.world, host, port)
        self.address: Optional[tuple[str, int]] = None
        self._threads: list[threading.Thread] = []

    @property
    def threads(self) -> tuple[threading.Thread, ...]:
        return tuple(self._threads)

    def start(self) -> tuple[str, int]:
        """Bind the server and start the generator, AI and server threads.

        Returns the bound address; raises OSError if the port cannot be bound.
        """
        if self._threads:
            raise RuntimeError("simulation already started")
        self.address = self.server.bind()
        workers = [
            ("survivor-generator", survivor_generator, (self.world,)),
            ("ai-controller", ai_controller, (self.world,)),
            ("server", self.server.serve_forever, ()),
        ]
        for name, target, args in workers:
            thread = threading.Thread(target=target, args=args, name=name, daemon=True)
            thread.start()
            self._threads.append(thread)
            log.info("%s thread started", name)
        return self.address

    def shutdown(self) -> None:
        """Signal every worker to stop, wait for them, and close the server."""
        log.info("Shutting down")
        self.world.request_shutdown()
        for thread in self._threads:
            thread.join()
        self.server.close()


def _install_signal_handlers(world: World) -> dict[int, Any]:
    if threading.current_thread() is not threading.main_thread():
        return {}

    def handle(signum: int, frame: Any) -> None:
        log.info("Received shutdown signal")
        world.request_shutdown()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, handle)
    return previous


def _restore_signal_handlers(previous: dict[int, Any]) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


def _ui_loop(world: World, view: MapView) -> None:
    while not world.shutting_down:
        frame_start = time.monotonic()
        if view.check_events():
            world.request_shutdown()
            break
        view.draw_map()
        remaining = FRAME_DELAY - (time.monotonic() - frame_start)
        if remaining > 0:
            world.shutdown.wait(remaining)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the coordinator with its window until it is closed or interrupted."""
    parser = argparse.ArgumentParser(description="Run the drone coordinator.")
    parser.add_argument("--height", type=int, default=MAP_HEIGHT)
    parser.add_argument("--width", type=int, default=MAP_WIDTH)
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")

    try:
        simulation = Simulation(args.height, args.width, args.host, args.port)
    except ValueError as exc:
        log.error("%s", exc)
        return 1
    try:
        simulation.start()
    except OSError as exc:
        log.error("Failed to start server: %s", exc)
        simulation.shutdown()
        return 1

    previous = _install_signal_handlers(simulation.world)
    try:
        try:
            view = MapView(simulation.world)
        except pygame.error as exc:
            log.error("Failed to initialise window: %s", exc)
            return 1
        try:
            _ui_loop(simulation.world, view)
        finally:
            view.close()
    finally:
        simulation.shutdown()
        _restore_signal_handlers(previous)
    return 0