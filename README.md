# airbrakes

Building blocks for a rocket airbrake system. This is a plain Python library
with no third-party dependencies. Sensor readings come in as method calls and
plain values. Results go out as return values and attribute changes. The same
code therefore runs in a simulation, on a test bench or in a ground-station
tool.

## Modules

- `airbrakes.flightplan`: `FlightPlan` holds a flight-plan mesh of target
  altitude against vertical velocity (m/s) and angle to the horizontal
  (radians), together with the launch parameters.
  - Loading: `load(file_name)` reads a file and `load_text(text)` reads a
    string.
  - Mesh queries: `altitude`, `velocity_partial` and `angle_partial`
    interpolate between mesh points.
  - Parameters: `target_apogee`, `min_drag_area`, `max_drag_area`,
    `deployment_angle_limit`, `dry_mass`, `ground_temperature` and
    `ground_pressure` return the values loaded from the plan.
  - `describe()` returns a text summary of the plan.
  - `read_floats(text)` yields the numbers found in a plan's text.
  - Errors all derive from `FlightPlanError`:
    - `FormattingError` for malformed or short text.
    - `PlanMemoryError` when the mesh does not fit the memory size. It is a
      subclass of `FormattingError`.
    - `PlanFileError` when the file cannot be opened.
    - `NotLoadedError` when a query is made before a plan is loaded.
- `airbrakes.controller`: `Controller` works from an observer and an actuator.
  - `clock()` reads altitude, vertical velocity and angle from the observer
    and compares them with the plan.
  - It computes a drag area with `update_rule` and clamps it with
    `best_possible_drag_area`.
  - It then passes the matching deployment to the actuator's
    `set_target_deployment`.
  - `drag_area_to_position` and `position_to_drag_area` convert between drag
    area and deployment (0..1). They raise `ValueError` when the value is out
    of range.
  - `start()` raises `NotLoadedError` when no plan is loaded.
  - `air_density(altitude, ground_pressure, ground_temperature)` is the
    lapse-rate density model the controller uses.
- `airbrakes.actuator`: `Actuator` models a stepper-driven airbrake mechanism
  with feedback from an `Encoder`.
  - Each call to `step(elapsed_us)` is one step-timer tick. In the active
    state the actuator moves toward its target and holds once it is within
    tolerance.
  - `begin_zero()` retracts until the mechanism stalls and takes that point
    as zero.
  - `begin_tare()` finds both ends of the stroke, records the stroke length,
    then zeroes.
  - Stepping resolution is a `SteppingMode`; the other enums are `Direction`
    and `ActuatorState`.
  - `period_conversion_power` gives the power-of-two change in step period
    between two modes.
  - `set_stepping_speed`, `set_stepping_mode` and
    `set_stepping_characteristics` raise `RuntimeError` while a calibration
    runs.
  - `set_target_deployment` and `set_actuator_limit` raise `ValueError`
    outside 0..1.
- `airbrakes.detection`: `EventDetection` is a named set of thresholds held in
  a `DetectionData`. `default_launch()`, `default_burnout()` and
  `default_apogee()` return the stock values.
  - Note: `vertical_velocity_threshold()` returns the stored acceleration
    field.
  - `vertical_acceleration_threshold()` returns the stored velocity field.
- `airbrakes.persistent`: `PersistentStore` keeps named `Setting`s at aligned
  addresses in an `Eeprom` byte image. The image starts erased, filled with
  `0xFF`.
  - A 32-bit layout hash is stored first.
  - `restore()` loads the saved values when the hash matches and returns
    `False`. Otherwise it writes the defaults and returns `True`.
  - `save()` writes only the bytes that changed and returns how many it wrote.
  - Helpers: `str_hash` (DJB2), `circular_shift`, `merge_hashes` and `align`.
- `airbrakes.ringqueue`: `RingQueue(capacity)` is a FIFO queue over
  `capacity` slots.
  - One slot is kept free, so the queue holds at most `capacity - 1` items.
  - `push` raises `OverflowError` when the queue is full.
  - `pop` raises `IndexError` when it is empty.

## Examples

Loading a flight plan from text and querying it:

```python
from airbrakes.flightplan import FlightPlan

# apogee, min/max drag area, angle limit (deg), dry mass, temperature,
# pressure, max velocity, velocity samples, angle samples, then the mesh
plan_text = "3000, 0.01, 0.05, 45, 20, 288.15, 101325, 300, 2, 2, 2900, 2800, 2700, 2600"

plan = FlightPlan("flightPath.csv", 0x4000)
plan.load_text(plan_text)          # or plan.load("flightPath.csv")
print(plan.target_apogee(), plan.altitude(120.0, 0.5))
print(plan.describe())
```

Running the controller against an actuator:

```python
from airbrakes.actuator import Actuator
from airbrakes.controller import Controller

class Observer:
    def altitude(self): return 1200.0
    def vertical_velocity(self): return 150.0
    def angle_to_horizontal(self): return 1.3

actuator = Actuator()
controller = Controller(plan, Observer(), actuator)
controller.start()
controller.clock()
print(controller.requested_drag_area, actuator.target())
```

Settings that survive a restart:

```python
from airbrakes.persistent import Eeprom, PersistentStore, Setting

settings = [
    Setting("telemetry refresh", 100, "<I"),
    Setting("log file name", "log.txt", "64s"),
]
eeprom = Eeprom(1024)
store = PersistentStore(eeprom, settings, 0, 4)
store.restore()       # loads saved values, or writes defaults after a layout change
store["telemetry refresh"] = 200
store.save()
```

A fixed-size queue:

```python
from airbrakes.ringqueue import RingQueue

queue = RingQueue(16)
queue.push("packet")
print(len(queue), queue.pop())
```

## What this package does not do

- There is no flight-phase state machine. Nothing moves between standby,
  armed, boost, coast and recovery. `EventDetection` only holds the
  thresholds such logic would use.
- There is no application loop, telemetry or log file writer, or text
  command shell. Nothing is installed as a command to run.
- There is no hardware access: no sensor drivers, motor pins, timers or
  real EEPROM.
  - `Actuator` tracks driver levels in attributes and is advanced by calls
    to `step`.
  - `Eeprom` is an in-memory byte image.