# dronecoord

A small emergency drone coordination system. The coordinator keeps a grid map
of survivors waiting for help. Drones connect over TCP and report their
position. The coordinator assigns each one a rescue mission and shows the map
in a pygame window.

## What it does

- A survivor generator places a survivor on a random cell every 2 to 4
  seconds. The grid is 40 columns by 30 rows unless you choose otherwise.
- An AI controller runs once a second. It takes the newest waiting survivor
  and sends the nearest idle drone to it, measuring distance in Manhattan
  steps. The drone gets an `ASSIGN_MISSION` message.
- Drones and the coordinator exchange newline-delimited JSON messages, on
  port 8080 by default. A drone sends `HANDSHAKE`, `STATUS_UPDATE`,
  `MISSION_COMPLETE` and `HEARTBEAT_RESPONSE`. The coordinator answers with
  `HANDSHAKE_ACK`, `ASSIGN_MISSION`, `MISSION_COMPLETE` or `ERROR`.
- When a drone reports a position where a survivor is waiting, the survivor
  moves to the helped list and the drone goes idle. Another survivor
  generator thread is then started.
- When a drone's connection closes, the drone is marked disconnected.
- The window draws:
  - the grid;
  - waiting survivors in red and helped survivors in a lighter red;
  - idle drones in blue and all other drones in green;
  - a line from each drone on a mission to its target.

## Installing

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Running

Start the coordinator. It opens the map window:

```
dronecoord-server [--height 30] [--width 40] [--host 0.0.0.0] [--port 8080]
```

Then start one or more drones in other terminals:

```
dronecoord-drone [--host 127.0.0.1] [--port 8080] [--interval 0.5]
```

Each drone picks a random id below 1000 and a random starting cell. It shakes
hands with the coordinator, then repeats a loop until the coordinator closes
the connection:

1. It moves one cell toward its target, horizontally first.
2. It sends a `STATUS_UPDATE`.
3. It waits up to one second for a message.
4. It sleeps for `--interval` seconds.

When it reaches its target it goes idle and sends `MISSION_COMPLETE`.

To stop the coordinator, close the window, press Escape, or send SIGINT
(Ctrl+C) or SIGTERM.

## Using the pieces

The building blocks can also be used directly:

- `dronecoord.models`: `Coord`, `Drone`, `DroneStatus`, `Survivor`,
  `create_survivor`, `parse_drone_id`, `format_drone_id`.
- `dronecoord.pool_list`: `PoolList`, a thread-safe list with a fixed
  capacity that adds at the head. It raises `ListFullError` when full.
- `dronecoord.world`: `GridMap` and `World`, which hold the shared state and
  the shutdown event.
- `dronecoord.protocol`: the message builders, `encode_message`,
  `send_message` and `LineReceiver`.
- `dronecoord.survivors`: `spawn_survivor`, `survivor_generator` and
  `survivor_cleanup`.
- `dronecoord.drone_sim`: `drone_step`, `drone_behavior` and `DroneFleet`.
  These are drones simulated in-process; the coordinator command does not
  start them.
- `dronecoord.ai`: `find_closest_idle_drone`, `assign_mission`, `ai_step` and
  `ai_controller`.
- `dronecoord.handlers`: `dispatch` and the per-message handlers.
- `dronecoord.server`: `DroneServer` and `run_server_loop`.
- `dronecoord.client`: `DroneClient`.
- `dronecoord.view`: `MapView`, plus the `cell_rect`, `drone_rect` and
  `cell_center` geometry helpers.
- `dronecoord.controller`: `Simulation`, which starts the generator, AI and
  server threads without a window.

## What it does not do

- State lives in memory only. Nothing is saved between runs.
- The coordinator never sends `HEARTBEAT` messages. It only records the time
  of any `HEARTBEAT_RESPONSE` it receives.
- The battery, speed and capabilities that drones report are fixed values.
  The coordinator does not use them.
- There is no authentication. The session id in `HANDSHAKE_ACK` is a fixed
  string.

## Tests

```
pytest
```