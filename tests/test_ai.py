import socket

import pytest

from dronecoord.ai import ai_controller, ai_step, assign_mission, find_closest_idle_drone
from dronecoord.models import Coord, Drone, DroneStatus, create_survivor
from dronecoord.protocol import LineReceiver, assign_mission_message
from dronecoord.world import World


def _drone(world, drone_id, x, y, status=DroneStatus.IDLE):
    drone = Drone(id=drone_id, coord=Coord(x, y), status=status)
    world.drones.add(drone)
    return drone


def test_closest_idle_drone_skips_busy_ones():
    world = World(10, 10)
    far = _drone(world, 1, 9, 9)
    _drone(world, 2, 1, 1, DroneStatus.ON_MISSION)
    near = _drone(world, 3, 3, 3)
    assert find_closest_idle_drone(world, Coord(0, 0)) is near
    assert find_closest_idle_drone(world, Coord(9, 8)) is far


def test_closest_idle_drone_none_when_no_idle():
    world = World(10, 10)
    _drone(world, 1, 2, 2, DroneStatus.DISCONNECTED)
    assert find_closest_idle_drone(world, Coord(0, 0)) is None


def test_tie_goes_to_first_in_list_order():
    world = World(10, 10)
    _drone(world, 1, 2, 0)
    second = _drone(world, 2, 0, 2)
    # new drones are added at the head, so the later one is seen first
    assert find_closest_idle_drone(world, Coord(0, 0)) is second


def test_assign_mission_sends_framed_message():
    a, b = socket.socketpair()
    try:
        drone = Drone(id=5, coord=Coord(0, 0), sock=a)
        message = assign_mission(drone, Coord(4, 2), "SURV-0007", now=1000)
        received = LineReceiver(b).receive()
    finally:
        a.close()
        b.close()
    assert received == message
    assert message == assign_mission_message("SURV-0007", Coord(4, 2), 1000 + 3600)
    assert received["checksum"] == "a1b2c3"
    assert drone.status == DroneStatus.ON_MISSION
    assert drone.target == Coord(4, 2)


def test_assign_mission_without_socket_updates_state():
    drone = Drone(id=5, coord=Coord(0, 0))
    message = assign_mission(drone, Coord(1, 3), "SURV-0001", now=0)
    assert message["type"] == "ASSIGN_MISSION"
    assert message["target"] == {"x": 1, "y": 3}
    assert drone.status == DroneStatus.ON_MISSION


def test_ai_step_assigns_head_survivor_and_keeps_it():
    world = World(10, 10)
    drone = _drone(world, 1, 0, 0)
    survivor = create_survivor(Coord(2, 3), "SURV-1234", None)
    world.survivors.add(survivor)
    assert ai_step(world, now=0) == (drone, survivor)
    assert drone.target == Coord(2, 3)
    assert drone.status == DroneStatus.ON_MISSION
    assert list(world.survivors) == [survivor]


@pytest.mark.parametrize("with_drone,with_survivor", [(False, True), (True, False)])
def test_ai_step_needs_drone_and_survivor(with_drone, with_survivor):
    world = World(10, 10)
    if with_drone:
        _drone(world, 1, 0, 0)
    if with_survivor:
        world.survivors.add(create_survivor(Coord(1, 1), "SURV-0001", None))
    assert ai_step(world) is None


def test_ai_controller_stops_on_shutdown():
    world = World(10, 10)
    drone = _drone(world, 1, 0, 0)
    world.survivors.add(create_survivor(Coord(1, 1), "SURV-0001", None))
    world.request_shutdown()
    ai_controller(world, 0.01)
    assert drone.status == DroneStatus.IDLE