"""Flight plan: a precomputed altitude mesh over vertical velocity and angle.

A plan file holds ten header numbers followed by a mesh of altitudes:

    target apogee (m), minimum drag area (m^2), maximum drag area (m^2),
    deployment angle limit (degrees), dry mass (kg), ground temperature (K),
    ground pressure (Pa), maximum velocity (m/s), number of velocity samples,
    number of angle samples, then the mesh values.

Numbers may be separated by any characters that cannot start a number.
The mesh is stored in reverse: the first value belongs to the highest
velocity and angle sample.
"""

from __future__ import annotations

import math
import re
from typing import Iterator, List, Optional

DEFAULT_FILE_NAME = "flightPath.csv"
DEFAULT_MEMORY_SIZE = 0x4000
MAX_ANGLE = math.pi / 2

_NUMBER_START = re.compile(r"[0-9-]")
_NUMBER = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")


class FlightPlanError(Exception):
    """Base class for flight plan failures."""


class FormattingError(FlightPlanError):
    """The plan text is malformed or incomplete."""


class PlanMemoryError(FormattingError):
    """The mesh does not fit in the memory allotted to the plan."""


class PlanFileError(FlightPlanError):
    """The plan file could not be opened."""


class NotLoadedError(FlightPlanError):
    """No flight plan is loaded."""


def read_floats(text: str) -> Iterator[float]:
    """Yield the numbers in ``text`` in order.

    Characters before a number that are neither digits nor ``-`` are
    skipped, and the single character ending each number is consumed.
    A ``-`` without a digit after it, or a ``.`` without a digit after it,
    raises FormattingError.
    """
    pos = 0
    while (start := _NUMBER_START.search(text, pos)) is not None:
        match = _NUMBER.match(text, start.start())
        if match is None:
            raise FormattingError(f"'-' without digits at offset {start.start()}")
        token = match.group()
        end = match.end()
        if "." not in token and text[end:end + 1] == ".":
            raise FormattingError(f"decimal point without digits at offset {end}")
        yield float(token)
        pos = end + 1


class FlightPlan:
    """Altitude mesh and launch parameters loaded from a plan file."""

    def __init__(self, file_name: str = DEFAULT_FILE_NAME, memory_size: int = DEFAULT_MEMORY_SIZE) -> None:
        self.file_name = file_name
        self.memory_size = memory_size
        self._memory: List[float] = [0.0] * memory_size
        self._loaded = False
        self._target_apogee = 0.0
        self._min_drag_area = 0.0
        self._max_drag_area = 0.0
        self._deployment_angle_limit = 0.0
        self._dry_mass = 0.0
        self._ground_temperature = 0.0
        self._ground_pressure = 0.0
        self._max_velocity = 0.0
        self._num_velocity = 0
        self._num_angle = 0

    # --- loading -------------------------------------------------------
    def load(self, file_name: Optional[str] = None) -> None:
        """Load the plan from ``file_name`` (or the current file name)."""
        if file_name is not None:
            self.file_name = file_name
        try:
            with open(self.file_name, "r", encoding="latin-1") as handle:
                text = handle.read()
        except OSError as exc:
            self._loaded = False
            raise PlanFileError(f"failed to open flight plan '{self.file_name}'") from exc
        self.load_text(text)

    def load_text(self, text: str) -> None:
        """Load the plan from its text; the plan is unloaded on failure."""
        self._loaded = False
        numbers = read_floats(text)

        def take() -> float:
            try:
                return next(numbers)
            except StopIteration:
                raise FormattingError("flight plan ended early") from None

        target_apogee = take()
        min_drag = take()
        max_drag = take()
        angle_limit = take() * math.pi / 180
        dry_mass = take()
        temperature = take()
        pressure = take()
        max_velocity = take()
        num_velocity = int(take())
        num_angle = int(take())
        if num_velocity < 1 or num_angle < 1:
            raise FormattingError("the mesh needs at least one sample on each axis")

        memory = [0.0] * self.memory_size
        for i in range(num_angle):
            for j in range(num_velocity):
                value = take()
                index = num_velocity * (num_velocity - 1 - j) + (num_angle - 1 - i)
                if index >= self.memory_size:
                    raise PlanMemoryError("not enough memory allotted for the flight plan mesh")
                memory[index] = value

        self._memory = memory
        self._target_apogee = target_apogee
        self._min_drag_area = min_drag
        self._max_drag_area = max_drag
        self._deployment_angle_limit = angle_limit
        self._dry_mass = dry_mass
        self._ground_temperature = temperature
        self._ground_pressure = pressure
        self._max_velocity = max_velocity
        self._num_velocity = num_velocity
        self._num_angle = num_angle
        self._loaded = True

    def is_loaded(self) -> bool:
        """True once a plan has been loaded successfully."""
        return self._loaded

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise NotLoadedError("no flight plan is loaded")

    # --- mesh lookups --------------------------------------------------
    def altitude(self, velocity: float, angle: float) -> float:
        """Interpolated planned altitude at ``velocity`` (m/s) and ``angle`` (rad)."""
        self._require_loaded()
        return self._interpolate(self._value, velocity, angle)

    def velocity_partial(self, velocity: float, angle: float) -> float:
        """Interpolated derivative of the planned altitude by velocity."""
        self._require_loaded()
        return self._interpolate(self._velocity_partial_at, velocity, angle)

    def angle_partial(self, velocity: float, angle: float) -> float:
        """Interpolated derivative of the planned altitude by angle."""
        self._require_loaded()
        return self._interpolate(self._angle_partial_at, velocity, angle)

    # --- parameters ----------------------------------------------------
    def target_apogee(self) -> float:
        self._require_loaded()
        return self._target_apogee

    def min_drag_area(self) -> float:
        self._require_loaded()
        return self._min_drag_area

    def max_drag_area(self) -> float:
        self._require_loaded()
        return self._max_drag_area

    def deployment_angle_limit(self) -> float:
        """Deployment angle limit in radians."""
        self._require_loaded()
        return self._deployment_angle_limit

    def dry_mass(self) -> float:
        self._require_loaded()
        return self._dry_mass

    def ground_temperature(self) -> float:
        self._require_loaded()
        return self._ground_temperature

    def ground_pressure(self) -> float:
        self._require_loaded()
        return self._ground_pressure

    def describe(self) -> str:
        """Human-readable summary of the plan."""
        available_kb = self.memory_size * 4 // 1024
        if not self._loaded:
            return f"No flight plan is loaded\n{available_kb} kB available for storage\n"
        used_kb = self._num_angle * self._num_velocity * 4 // 1024
        return (
            f"Flight plan '{self.file_name}':\n"
            f"Target apogee: {self._target_apogee:.2f}m\n"
            f"Deployment range: 0 degrees - {math.degrees(self._deployment_angle_limit):.2f} degrees\n"
            f"Effective drag area range: {self._min_drag_area:.4f}m^2 - {self._max_drag_area:.4f}m^2\n"
            f"Dry mass: {self._dry_mass:.2f}kg\n"
            f"Launch site conditions: {self._ground_temperature - 273.15:.2f}C at {self._ground_pressure:.2f}pa\n"
            f"Vertical velocity range: 0m/s - {self._max_velocity:.2f}m/s with {self._num_velocity} samples\n"
            f"Angle with horizontal range: 0 degrees - {math.degrees(MAX_ANGLE):.2f} degrees"
            f" with {self._num_angle} samples\n"
            f"Using {used_kb} kB of available {available_kb} kB storage\n"
        )

    # --- helpers -------------------------------------------------------
    def _velocity_increment(self) -> float:
        return self._max_velocity / self._num_velocity

    def _angle_increment(self) -> float:
        return MAX_ANGLE / self._num_angle

    def _velocity_index(self, velocity: float) -> int:
        return min(max(0, int(velocity / self._velocity_increment())), self._num_velocity - 1)

    def _angle_index(self, angle: float) -> int:
        return min(max(0, int(angle / self._angle_increment())), self._num_angle - 1)

    def _in_mesh(self, vi: int, ai: int) -> bool:
        return 0 <= vi < self._num_velocity and 0 <= ai < self._num_angle

    def _value(self, vi: int, ai: int) -> Optional[float]:
        if not self._in_mesh(vi, ai):
            return None
        return self._memory[self._num_velocity * vi + ai]

    def _velocity_partial_at(self, vi: int, ai: int) -> Optional[float]:
        if not self._in_mesh(vi, ai):
            return None
        if self._num_velocity == 1:
            return 0.0
        inc = self._velocity_increment()
        if vi == 0:
            return (self._value(vi + 1, ai) - self._value(vi, ai)) / inc
        if vi == self._num_velocity - 1:
            return (self._value(vi, ai) - self._value(vi - 1, ai)) / inc
        return (self._value(vi + 1, ai) - self._value(vi - 1, ai)) / (2 * inc)

    def _angle_partial_at(self, vi: int, ai: int) -> Optional[float]:
        if not self._in_mesh(vi, ai):
            return None
        if self._num_angle == 1:
            return 0.0
        inc = self._angle_increment()
        if ai == 0:
            return (self._value(vi, ai + 1) - self._value(vi, ai)) / inc
        if ai == self._num_angle - 1:
            return (self._value(vi, ai) - self._value(vi, ai - 1)) / inc
        return (self._value(vi, ai + 1) - self._value(vi, ai - 1)) / (2 * inc)

    def _interpolate(self, field, velocity: float, angle: float) -> float:
        vi = self._velocity_index(velocity)
        ai = self._angle_index(angle)
        root = field(vi, ai)
        v_leg = field(vi + 1, ai)
        a_leg = field(vi, ai + 1)
        v_inc = self._velocity_increment()
        a_inc = self._angle_increment()
        result = root
        if a_leg is not None:
            result += (a_leg - root) / a_inc * (angle - ai * a_inc)
        if v_leg is not None:
            result += (v_leg - root) / v_inc * (velocity - vi * v_inc)
        return result