"""Window that draws the grid, the survivors and the drones."""

from __future__ import annotations

import logging
from typing import Optional

import pygame

from dronecoord.models import DroneStatus
from dronecoord.world import World

log = logging.getLogger(__name__)

CELL_SIZE = 20
FALLBACK_WINDOW_SIZE = (800, 600)
WINDOW_TITLE = "Drone Simulator"

GRID_COLOR = (128, 128, 128)
SURVIVOR_COLOR = (255, 0, 0)
HELPED_SURVIVOR_COLOR = (255, 100, 100)
DRONE_IDLE_COLOR = (0, 0, 255)
DRONE_BUSY_COLOR = (0, 255, 0)
MISSION_LINE_COLOR = (0, 255, 0)
BACKGROUND_COLOR = (255, 255, 255)

Rect = tuple[int, int, int, int]


def cell_rect(x: int, y: int, cell_size: int = CELL_SIZE) -> Rect:
    """Return the screen rectangle of a cell, inset by one pixel on each side."""
    return (x * cell_size + 1, y * cell_size + 1, cell_size - 2, cell_size - 2)


def cell_center(x: int, y: int, cell_size: int = CELL_SIZE) -> tuple[int, int]:
    """Return the screen point at the centre of a cell."""
    return (x * cell_size + cell_size // 2, y * cell_size + cell_size // 2)


def drone_rect(x: int, y: int, cell_size: int = CELL_SIZE) -> Rect:
    """Return the screen rectangle of a drone: the full cell around its centre."""
    screen_x, screen_y = cell_center(x, y, cell_size)
    return (
        screen_x - cell_size // 2,
        screen_y - cell_size // 2,
        cell_size,
        cell_size,
    )


class MapView:
    """A window showing one world; drawing is done on demand."""

    def __init__(self, world: World, cell_size: int = CELL_SIZE) -> None:
        if cell_size <= 0:
            raise ValueError("cell_size must be positive")
        self.world = world
        self.cell_size = cell_size
        width = world.map.width * cell_size
        height = world.map.height * cell_size
        if width <= 0 or height <= 0:
            log.error("Map dimensions are invalid: %dx%d", world.map.width, world.map.height)
            width, height = FALLBACK_WINDOW_SIZE
        pygame.display.init()
        try:
            self.surface: Optional[pygame.Surface] = pygame.display.set_mode(
                (width, height), 0, 32
            )
        except pygame.error:
            pygame.display.quit()
            raise
        pygame.display.set_caption(WINDOW_TITLE)
        self._last_survivor_count = -1
        log.info("Window initialised: %dx%d", width, height)

    def _target(self) -> pygame.Surface:
        if self.surface is None:
            raise RuntimeError("view is closed")
        return self.surface

    def _draw_cell(self, x: int, y: int, color: tuple[int, int, int]) -> bool:
        if not self.world.map.contains(x, y):
            log.warning("Attempted to draw cell outside map bounds at (%d, %d)", x, y)
            return False
        pygame.draw.rect(self._target(), color, cell_rect(x, y, self.cell_size))
        return True

    def draw_grid(self) -> None:
        """Draw the grid lines between cells."""
        surface = self._target()
        size = self.cell_size
        right = self.world.map.width * size
        bottom = self.world.map.height * size
        for x in range(0, right + 1, size):
            pygame.draw.line(surface, GRID_COLOR, (x, 0), (x, bottom))
        for y in range(0, bottom + 1, size):
            pygame.draw.line(surface, GRID_COLOR, (0, y), (right, y))

    def draw_survivors(self) -> tuple[int, int]:
        """Draw waiting and helped survivors; return how many of each were listed."""
        self._target()
        with self.world.survivors.lock:
            waiting = list(self.world.survivors)
        for survivor in waiting:
            if self.world.map.contains(survivor.coord.x, survivor.coord.y):
                self._draw_cell(survivor.coord.x, survivor.coord.y, SURVIVOR_COLOR)
        if len(waiting) != self._last_survivor_count:
            log.info("draw_survivors: survivors in list = %d", len(waiting))
            self._last_survivor_count = len(waiting)

        with self.world.helped_survivors.lock:
            helped = list(self.world.helped_survivors)
        for survivor in helped:
            if self.world.map.contains(survivor.coord.x, survivor.coord.y):
                self._draw_cell(survivor.coord.x, survivor.coord.y, HELPED_SURVIVOR_COLOR)
        log.debug("Total helped survivors drawn: %d", len(helped))
        return len(waiting), len(helped)

    def draw_drones(self) -> int:
        """Draw every drone and the path of those on a mission; return the count."""
        surface = self._target()
        size = self.cell_size
        count = 0
        with self.world.drones.lock:
            for drone in self.world.drones:
                with drone.lock:
                    color = (
                        DRONE_IDLE_COLOR
                        if drone.status == DroneStatus.IDLE
                        else DRONE_BUSY_COLOR
                    )
                    pygame.draw.rect(
                        surface, color, drone_rect(drone.coord.x, drone.coord.y, size)
                    )
                    if drone.status == DroneStatus.ON_MISSION and self.world.map.contains(
                        drone.target.x, drone.target.y
                    ):
                        pygame.draw.line(
                            surface,
                            MISSION_LINE_COLOR,
                            cell_center(drone.coord.x, drone.coord.y, size),
                            cell_center(drone.target.x, drone.target.y, size),
                        )
                count += 1
        log.debug("Total drones drawn: %d", count)
        return count

    def draw_map(self) -> pygame.Surface:
        """Redraw the whole frame, show it, and return the drawn surface."""
        surface = self._target()
        surface.fill(BACKGROUND_COLOR)
        self.draw_grid()
        self.draw_survivors()
        self.draw_drones()
        pygame.display.flip()
        return surface

    def check_events(self) -> bool:
        """Drain pending events; return True if the window was closed or Escape pressed."""
        quit_requested = False
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                quit_requested = True
        return quit_requested

    def close(self) -> None:
        """Close the window."""
        if self.surface is not None:
            self.surface = None
            pygame.display.quit()
            log.info("Display closed")