"""Creation and removal of survivors on the shared map."""

from __future__ import annotations

import contextlib
import logging
import random
from datetime import datetime
from typing import Callable, Optional

from dronecoord.models import Coord, Survivor, create_survivor
from dronecoord.pool_list import ListFullError
from dronecoord.world import World

log = logging.getLogger(__name__)


def spawn_survivor(world: World, rng: Optional[random.Random] = None) -> Survivor:
    """Create a survivor at a random cell and register it globally and in its cell.

    Raises ListFullError when the global survivor list is full. A full cell list
    is only logged; the survivor then stays in the global list alone.
    """
    rng = rng if rng is not None else random
    coord = Coord(rng.randrange(world.map.width), rng.randrange(world.map.height))
    info = f"SURV-{rng.randrange(10000):04d}"
    survivor = create_survivor(coord, info, datetime.now())

    world.survivors.add(survivor)
    cell = world.map.cell(coord.x, coord.y)
    try:
        cell.survivors.add(survivor)
    except ListFullError:
        log.warning("cell (%d, %d) is full; %s kept in global list only",
                    coord.x, coord.y, info)
    log.info("New survivor at (%d,%d): %s", coord.x, coord.y, info)
    return survivor


def survivor_generator(
    world: World,
    rng: Optional[random.Random] = None,
    sleep: Optional[Callable[[float], object]] = None,
) -> int:
    """Spawn survivors every 2 to 4 seconds until shutdown; return how many were made."""
    rng = rng if rng is not None else random
    wait = sleep if sleep is not None else world.shutdown.wait
    spawned = 0
    log.info("Survivor generator running")
    while not world.shutting_down:
        try:
            spawn_survivor(world, rng)
            spawned += 1
        except ListFullError:
            log.warning("survivor list is full")
        wait(rng.randrange(3) + 2)
    log.info("Survivor generator exiting")
    return spawned


def survivor_cleanup(world: World, survivor: Survivor) -> None:
    """Remove a survivor from the list of the cell it stands on."""
    coord = survivor.coord
    if not world.map.contains(coord.x, coord.y):
        return
    cell_list = world.map.cell(coord.x, coord.y).survivors
    with cell_list.lock, contextlib.suppress(ValueError):
        cell_list.remove_data(survivor)