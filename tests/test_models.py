import pytest

from dronecoord.models import (
    Coord,
    Drone,
    DroneStatus,
    Survivor,
    create_survivor,
    format_drone_id,
    parse_drone_id,
)


def test_manhattan_is_symmetric_and_zero_on_self():
    a = Coord(3, 9)
    b = Coord(10, 2)
    assert a.manhattan(b) == b.manhattan(a)
    assert a.manhattan(a) == 0
    assert a.manhattan(b) == abs(3 - 10) + abs(9 - 2)


def test_step_toward_moves_horizontally_first():
    start = Coord(0, 0)
    step = start.step_toward(Coord(2, 5))
    assert step.y == start.y
    assert step.x == start.x + 1


def test_step_toward_moves_vertically_once_aligned():
    start = Coord(4, 1)
    step = start.step_toward(Coord(4, 0))
    assert step.x == 4
    assert step.y == 0


def test_step_toward_reaches_target_one_cell_at_a_time():
    current = Coord(7, 2)
    target = Coord(1, 11)
    steps = 0
    while current != target:
        nxt = current.step_toward(target)
        assert nxt.manhattan(target) == current.manhattan(target) - 1
        assert current.manhattan(nxt) == 1
        current = nxt
        steps += 1
    assert steps == Coord(7, 2).manhattan(target)
    assert current.step_toward(target) == target


def test_parse_and_format_round_trip():
    for value in (0, 7, 42, 999):
        assert parse_drone_id(format_drone_id(value)) == value


def test_parse_drone_id_accepts_trailing_text():
    assert parse_drone_id("D42xyz") == 42


@pytest.mark.parametrize("text", ["", "X12", "D", "Dabc", "12"])
def test_parse_drone_id_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_drone_id(text)


def test_format_drone_id_prefix():
    assert format_drone_id(5).startswith("D")
    assert format_drone_id(5)[1:] == "5"


def test_drone_label_and_defaults():
    drone = Drone(id=42, coord=Coord(1, 2))
    assert drone.label() == format_drone_id(42)
    assert drone.status is DroneStatus.IDLE
    assert drone.target == Coord(0, 0)


def test_drones_compare_by_identity():
    a = Drone(id=1, coord=Coord(0, 0))
    b = Drone(id=1, coord=Coord(0, 0))
    assert a == a
    assert not (a == b)


def test_create_survivor_truncates_info():
    long_info = "SURV-" + "9" * 40
    survivor = create_survivor(Coord(1, 1), long_info, None)
    assert survivor.info == long_info[:24]
    assert survivor.status == 0
    assert survivor.coord == Coord(1, 1)


def test_create_survivor_keeps_short_info():
    survivor = create_survivor(Coord(2, 3), "SURV-0001", None)
    assert survivor == Survivor(coord=Coord(2, 3), info="SURV-0001")