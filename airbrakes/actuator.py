"""Stepper-driven airbrake actuator with encoder feedback and calibration."""

from __future__ import annotations

from collections import deque
from enum import Enum
from typing import Deque, Tuple

ENCODER_TOLERANCE = 48
ENCODER_SAMPLE_PERIOD_US = 10000
DIFFERENTIATOR_ORDER = 6

DEFAULT_FULL_STROKE_STEPS = 745
DEFAULT_FULL_STROKE_POSITIONS = 15000
DEFAULT_SPEED = 1.0
DEFAULT_LIMIT = 1.0


class SteppingMode(Enum):
    """Driver stepping resolution; the value is the halving order."""

    FULL_STEP = 0
    HALF_STEP = 1
    QUARTER_STEP = 2
    MICRO_STEP = 3


class Direction(Enum):
    EXTEND = "extend"
    RETRACT = "retract"


class ActuatorState(Enum):
    SLEEP = "sleep"
    ACTIVE = "active"
    TARE_RETRACT = "tare retract"
    TARE_EXTEND = "tare extend"
    ZERO = "zero"


_CALIBRATING = frozenset({ActuatorState.TARE_RETRACT, ActuatorState.TARE_EXTEND, ActuatorState.ZERO})

_MODE_PINS = {
    SteppingMode.FULL_STEP: (False, False),
    SteppingMode.HALF_STEP: (True, False),
    SteppingMode.QUARTER_STEP: (False, True),
    SteppingMode.MICRO_STEP: (True, True),
}


def period_conversion_power(initial: SteppingMode, new: SteppingMode) -> int:
    """Power of two by which a step period scales when switching modes."""
    return initial.value - new.value


class Encoder:
    """Quadrature encoder position counter."""

    def __init__(self, position: int = 0) -> None:
        self._position = int(position)

    def read(self) -> int:
        """Current position count."""
        return self._position

    def write(self, value: int) -> None:
        """Overwrite the position count."""
        self._position = int(value)


class _Differentiator:
    """Change in position across a short window of samples."""

    def __init__(self, order: int) -> None:
        self.size = order
        self._samples: Deque[int] = deque(maxlen=order)

    def push(self, value: int) -> None:
        self._samples.append(value)

    def output(self) -> int:
        if len(self._samples) < 2:
            return 0
        return self._samples[-1] - self._samples[0]

    def reset(self) -> None:
        self._samples.clear()


class Actuator:
    """Moves the airbrakes to a target deployment between 0 and 1."""

    def __init__(
        self,
        encoder: Encoder | None = None,
        full_stroke_steps: int = DEFAULT_FULL_STROKE_STEPS,
        full_stroke_positions: int = DEFAULT_FULL_STROKE_POSITIONS,
        speed: float = DEFAULT_SPEED,
        mode: SteppingMode = SteppingMode.HALF_STEP,
    ) -> None:
        self.encoder = encoder if encoder is not None else Encoder()
        self.limit = DEFAULT_LIMIT
        self.full_stroke_steps = full_stroke_steps
        self.full_stroke_positions = full_stroke_positions
        self.state = ActuatorState.SLEEP
        self.mode = mode
        self.target_position = 0
        self.current_position = 0
        self.current_derivative = 0
        self.direction = Direction.RETRACT
        self.step_level = False
        self.driver_enabled = False
        self.running = False
        self._differentiator = _Differentiator(DIFFERENTIATOR_ORDER)
        self._since_sample_us = 0
        self._cycles = 0
        self._calibration_steps = 0
        self.timer_period_us = self.step_period_us(speed, mode)

    @property
    def mode_pins(self) -> Tuple[bool, bool]:
        """Levels of the two mode-select lines for the current mode."""
        return _MODE_PINS[self.mode]

    # --- power ----------------------------------------------------------
    def sleep(self) -> None:
        """Stop stepping and disable the driver."""
        self.state = ActuatorState.SLEEP
        self.running = False
        self.driver_enabled = False

    def wake(self) -> None:
        """Enable the driver and start tracking the target."""
        self.state = ActuatorState.ACTIVE
        self.running = True
        self.driver_enabled = True

    # --- configuration --------------------------------------------------
    def _refuse_during_calibration(self) -> None:
        if self.state in _CALIBRATING:
            raise RuntimeError("stepping cannot be changed during calibration")

    def set_stepping_characteristics(self, units: float, mode: SteppingMode) -> None:
        """Set speed (strokes per second) and stepping mode together."""
        self._refuse_during_calibration()
        period = self.step_period_us(units, mode)
        self.mode = mode
        self.timer_period_us = period

    def set_stepping_speed(self, units: float) -> None:
        """Set speed in strokes per second for the current mode."""
        self._refuse_during_calibration()
        self.timer_period_us = self.step_period_us(units, self.mode)

    def set_stepping_mode(self, mode: SteppingMode) -> None:
        """Change stepping mode, keeping the same actuator speed."""
        self._refuse_during_calibration()
        power = period_conversion_power(self.mode, mode)
        if power >= 0:
            self.timer_period_us <<= power
        else:
            self.timer_period_us >>= -power
        self.mode = mode

    def set_target_deployment(self, units: float) -> None:
        """Set the target deployment; ValueError outside 0..1."""
        if units < 0 or units > 1:
            raise ValueError("deployment must lie between 0 and 1")
        self.target_position = self.encoder_position_from_deployment(units)

    def set_actuator_limit(self, limit: float) -> None:
        """Limit the usable fraction of the full stroke; ValueError outside 0..1."""
        if limit < 0 or limit > 1:
            raise ValueError("actuator limit must lie between 0 and 1")
        self.limit = limit

    # --- status ---------------------------------------------------------
    def current_deployment(self) -> float:
        """Deployment read straight from the encoder."""
        return self.deployment_from_encoder_position(self.encoder.read())

    def on_target(self) -> bool:
        """True when the last sampled position is within tolerance of the target."""
        return abs(self.current_position - self.target_position) < ENCODER_TOLERANCE

    def target(self) -> float:
        """Target deployment."""
        return self.deployment_from_encoder_position(self.target_position)

    # --- calibration ----------------------------------------------------
    def _start_if_sleeping(self, was_sleeping: bool) -> None:
        if was_sleeping:
            self.running = True
            self.driver_enabled = True

    def begin_tare(self) -> None:
        """Find both ends of the stroke, then zero at the retracted end."""
        was_sleeping = self.state is ActuatorState.SLEEP
        self.state = ActuatorState.TARE_RETRACT
        self._differentiator.reset()
        self._cycles = 0
        self._since_sample_us = 0
        self._start_if_sleeping(was_sleeping)

    def begin_zero(self) -> None:
        """Retract until stalled and take that point as zero."""
        was_sleeping = self.state is ActuatorState.SLEEP
        self.state = ActuatorState.ZERO
        self._differentiator.reset()
        self.current_derivative = 0
        self._cycles = 0
        self._since_sample_us = 0
        self._calibration_steps = 0
        self._start_if_sleeping(was_sleeping)

    # --- stepping -------------------------------------------------------
    def step(self, elapsed_us: int = 0) -> None:
        """Handle one step-timer tick, ``elapsed_us`` after the previous one."""
        if not self.running:
            return
        self._since_sample_us += elapsed_us
        self.current_position = self.encoder.read()
        if self._since_sample_us > ENCODER_SAMPLE_PERIOD_US:
            self._differentiator.push(self.current_position)
            self._since_sample_us = 0
            self._cycles += 1
        self.current_derivative = self._differentiator.output()
        settled = self._cycles > 2 * self._differentiator.size

        if self.state is ActuatorState.ACTIVE:
            error = self.current_position - self.target_position
            if abs(error) < ENCODER_TOLERANCE:
                self.step_level = False
                return
            self._set_direction(Direction.EXTEND if error > 0 else Direction.RETRACT)
            self.step_level = not self.step_level
            return

        if self.state in (ActuatorState.ZERO, ActuatorState.TARE_RETRACT):
            self._set_direction(Direction.RETRACT)
            if self._differentiator.output() <= 0 and settled:
                self.encoder.write(0)
                self.target_position = 0
                self.current_position = 0
                self._differentiator.reset()
                self.current_derivative = 0
                self._cycles = 0
                if self.state is ActuatorState.TARE_RETRACT:
                    self.state = ActuatorState.TARE_EXTEND
                else:
                    self.state = ActuatorState.ACTIVE
                self.step_level = False
                return
            self.step_level = not self.step_level
            return

        if self.state is ActuatorState.TARE_EXTEND:
            self._set_direction(Direction.EXTEND)
            self._calibration_steps += 1
            if self._differentiator.output() >= 0 and settled:
                self.full_stroke_positions = abs(self.encoder.read())
                steps = self._calibration_steps // 2
                self.full_stroke_steps = steps >> -period_conversion_power(SteppingMode.FULL_STEP, self.mode)
                self.begin_zero()
                self.step_level = False
                return
            self.step_level = not self.step_level

    def _set_direction(self, direction: Direction) -> None:
        self.direction = direction

    # --- conversions ----------------------------------------------------
    def _limited_positions(self) -> int:
        return int(self.limit * self.full_stroke_positions)

    def step_period_us(self, units_per_second: float, mode: SteppingMode) -> int:
        """Half period of the step signal, in microseconds, for a given speed."""
        if units_per_second <= 0:
            raise ValueError("speed must be positive")
        us_per_step = self.full_stroke_positions * 1_000_000 / (
            units_per_second * self.full_stroke_steps * self._limited_positions()
        )
        multiplier = 1 << abs(period_conversion_power(mode, SteppingMode.FULL_STEP))
        return int(us_per_step / (2 * multiplier))

    def encoder_position_from_deployment(self, units: float) -> int:
        """Encoder count at deployment ``units``; extension counts downward."""
        return -int(units * self._limited_positions())

    def deployment_from_encoder_position(self, position: int) -> float:
        """Deployment at encoder count ``position``."""
        return -position / self._limited_positions()