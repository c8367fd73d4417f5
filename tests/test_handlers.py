import random

import pytest

from dronecoord.handlers import (
    dispatch,
    process_handshake,
    process_heartbeat_response,
    process_mission_complete,
    process_status_update,
)
from dronecoord.models import Coord, Drone, DroneStatus, create_survivor
from dronecoord.protocol import (
    error_message,
    handshake_ack_message,
    handshake_message,
    heartbeat_response_message,
    mission_complete_message,
    status_update_message,
)
from dronecoord.world import World


def _place(world, x, y, info="SURV-0001"):
    survivor = create_survivor(Coord(x, y), info, None)
    world.survivors.add(survivor)
    world.map.cell(x, y).survivors.add(survivor)
    return survivor


def _register(world, drone_id, x, y, status=DroneStatus.IDLE):
    drone = Drone(id=drone_id, coord=Coord(x, y), status=status)
    world.drones.add(drone)
    return drone


def test_handshake_registers_new_drone():
    world = World(5, 5)
    sent = []
    drone = process_handshake(world, sent.append, handshake_message("D7"),
                              "127.0.0.1", random.Random(1))
    assert drone.id == 7
    assert world.find_drone_by_id(7) is drone
    assert sent == [handshake_ack_message()]
    assert world.map.contains(drone.coord.x, drone.coord.y)
    assert drone.status == DroneStatus.IDLE
    assert drone.last_update is not None


def test_handshake_of_known_drone_does_not_duplicate():
    world = World(5, 5)
    existing = _register(world, 7, 1, 1)
    sent = []
    assert process_handshake(world, sent.append, handshake_message("D7"), "h") is existing
    assert len(world.drones) == 1
    assert sent == [handshake_ack_message()]


def test_handshake_rejects_missing_capabilities():
    world = World(5, 5)
    sent = []
    with pytest.raises(ValueError):
        process_handshake(world, sent.append, {"type": "HANDSHAKE", "drone_id": "D1"}, "h")
    assert sent == []
    assert len(world.drones) == 0


def test_handshake_rejects_bad_id_and_full_list():
    world = World(5, 5, drone_capacity=1)
    sent = []
    with pytest.raises(ValueError):
        process_handshake(world, sent.append, handshake_message("X7"), "h")
    _register(world, 1, 0, 0)
    with pytest.raises(ValueError):
        process_handshake(world, sent.append, handshake_message("D2"), "h")
    assert sent == []


def test_status_update_moves_drone():
    world = World(5, 5)
    drone = _register(world, 3, 0, 0)
    sent = []
    message = status_update_message("D3", Coord(2, 1), DroneStatus.ON_MISSION, 0)
    assert process_status_update(world, sent.append, message) is None
    assert drone.coord == Coord(2, 1)
    assert drone.status == DroneStatus.ON_MISSION
    assert sent == []


def test_status_update_at_survivor_rescues_it():
    world = World(5, 5)
    drone = _register(world, 3, 2, 1, DroneStatus.ON_MISSION)
    survivor = _place(world, 2, 2, "SURV-0042")
    sent, calls = [], []
    message = status_update_message("D3", Coord(2, 2), DroneStatus.ON_MISSION, 0)
    helped = process_status_update(world, sent.append, message, lambda: calls.append(1))
    assert sent == [mission_complete_message("D3", "SURV-0042",
                                             details="Delivered aid to survivor")]
    assert helped.status == 1
    assert helped.helped_time is not None
    assert helped.info == survivor.info
    assert list(world.helped_survivors) == [helped]
    assert len(world.survivors) == 0
    assert len(world.map.cell(2, 2).survivors) == 0
    assert drone.status == DroneStatus.IDLE
    assert calls == [1]


def test_status_update_from_unknown_drone_still_rescues():
    world = World(5, 5)
    _place(world, 4, 4)
    message = status_update_message("D99", Coord(4, 4), DroneStatus.IDLE, 0)
    process_status_update(world, lambda m: None, message)
    assert len(world.helped_survivors) == 1
    assert len(world.survivors) == 0


def test_status_update_requires_status():
    world = World(5, 5)
    with pytest.raises(ValueError):
        process_status_update(world, lambda m: None,
                              {"type": "STATUS_UPDATE", "drone_id": "D1"})


def test_mission_complete_moves_survivor_to_helped():
    world = World(5, 5)
    drone = _register(world, 4, 1, 1, DroneStatus.ON_MISSION)
    survivor = _place(world, 1, 1)
    calls = []
    helped = process_mission_complete(world, mission_complete_message("D4", "SURV-0001"),
                                      lambda: calls.append(1))
    assert helped.info == survivor.info
    assert helped.status == 1
    assert drone.status == DroneStatus.IDLE
    assert len(world.survivors) == 0
    assert len(world.map.cell(1, 1).survivors) == 0
    assert calls == [1]


def test_mission_complete_without_survivor_still_respawns():
    world = World(5, 5)
    drone = _register(world, 4, 1, 1, DroneStatus.ON_MISSION)
    calls = []
    result = process_mission_complete(world, mission_complete_message("D4", "M"),
                                      lambda: calls.append(1))
    assert result is None
    assert drone.status == DroneStatus.IDLE
    assert calls == [1]


def test_failed_mission_changes_nothing():
    world = World(5, 5)
    drone = _register(world, 4, 1, 1, DroneStatus.ON_MISSION)
    _place(world, 1, 1)
    calls = []
    message = dict(mission_complete_message("D4", "SURV-0001"), success=False)
    assert process_mission_complete(world, message, lambda: calls.append(1)) is None
    assert drone.status == DroneStatus.ON_MISSION
    assert len(world.survivors) == 1
    assert calls == []


def test_mission_complete_errors():
    world = World(5, 5)
    with pytest.raises(ValueError):
        process_mission_complete(world, mission_complete_message("D4", "M"))
    with pytest.raises(ValueError):
        process_mission_complete(world, {"drone_id": "D4", "success": True})


def test_heartbeat_response_updates_drone():
    world = World(5, 5)
    drone = _register(world, 6, 0, 0)
    assert process_heartbeat_response(world, heartbeat_response_message("D6", 0)) is drone
    assert drone.last_update is not None
    assert process_heartbeat_response(world, {"drone_id": "bad"}) is None
    with pytest.raises(ValueError):
        process_heartbeat_response(world, {"type": "HEARTBEAT_RESPONSE"})


@pytest.mark.parametrize(
    "message,text",
    [
        ({"drone_id": "D1"}, "Missing message type"),
        ([1, 2], "Missing message type"),
        ({"type": "DANCE"}, "Invalid message type"),
    ],
)
def test_dispatch_reports_bad_types(message, text):
    sent = []
    assert dispatch(World(5, 5), sent.append, message, "h") is None
    assert sent == [error_message(text)]


def test_dispatch_handshake_returns_drone():
    world = World(5, 5)
    sent = []
    drone = dispatch(world, sent.append, handshake_message("D12"), "h", random.Random(3))
    assert drone is world.find_drone_by_id(12)
    assert sent == [handshake_ack_message()]


def test_dispatch_swallows_rejected_messages():
    world = World(5, 5)
    sent = []
    result = dispatch(world, sent.append, {"type": "HANDSHAKE", "drone_id": "D1"}, "h")
    assert result is None
    assert sent == []
    assert dispatch(world, sent.append, mission_complete_message("D9", "M"), "h") is None
    assert len(world.drones) == 0