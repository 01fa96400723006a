"""Altitude controller that steers the airbrake drag area toward the flight plan."""

from __future__ import annotations

import math
from typing import Protocol, Tuple

from .flightplan import FlightPlan, NotLoadedError

TEMPERATURE_LAPSE_RATE = 0.0065  # K/m
GRAVITATIONAL_CONSTANT = 9.80665  # m/s^2
IDEAL_GAS_CONSTANT = 8.31446  # J/mol/K
MOLAR_MASS_OF_DRY_AIR = 0.0289652  # kg/mol

DEFAULT_CLOCK_PERIOD_US = 100000
DEFAULT_DECAY_RATE = -2.5


class _StateSource(Protocol):
    def altitude(self) -> float: ...

    def vertical_velocity(self) -> float: ...

    def angle_to_horizontal(self) -> float: ...


class _DeploymentDrive(Protocol):
    def current_deployment(self) -> float: ...

    def set_target_deployment(self, units: float) -> None: ...


def air_density(altitude: float, ground_pressure: float, ground_temperature: float) -> float:
    """Air density (kg/m^3) at ``altitude`` from the standard lapse-rate model.

    Raises ValueError above the altitude where the model's temperature
    falls to zero.
    """
    exponent = GRAVITATIONAL_CONSTANT * MOLAR_MASS_OF_DRY_AIR / (
        IDEAL_GAS_CONSTANT * TEMPERATURE_LAPSE_RATE
    ) - 1
    base = 1 - TEMPERATURE_LAPSE_RATE * altitude / ground_temperature
    ground_density = ground_pressure * MOLAR_MASS_OF_DRY_AIR / (IDEAL_GAS_CONSTANT * ground_temperature)
    return ground_density * math.pow(base, exponent)


def _sin_squared(x: float) -> float:
    s = math.sin(x)
    return s * s


class Controller:
    """Computes the drag area needed to follow the flight plan each clock tick."""

    def __init__(
        self,
        plan: FlightPlan,
        observer: _StateSource,
        actuator: _DeploymentDrive,
        decay_rate: float = DEFAULT_DECAY_RATE,
        shutdown_velocity: float = 0.0,
    ) -> None:
        self.plan = plan
        self.observer = observer
        self.actuator = actuator
        self.decay_rate = decay_rate
        self.shutdown_velocity = shutdown_velocity
        self.clock_period_us = DEFAULT_CLOCK_PERIOD_US
        self.active = False
        self.fault = False
        self.error = 0.0
        self.flight_path = 0.0
        self.velocity_partial = 0.0
        self.angle_partial = 0.0
        self.update_rule_drag_area = 0.0
        self.adjusted_drag_area = 0.0
        self.requested_drag_area = 0.0
        self.current_drag_area = 0.0
        self.update_rule_clamped = False
        self.saturated = False

    def start(self) -> None:
        """Begin a new controlled flight; raise NotLoadedError without a plan."""
        if not self.plan.is_loaded():
            self.active = False
            raise NotLoadedError("cannot start the controller without a flight plan")
        self.update_rule_clamped = False
        self.saturated = False
        self.requested_drag_area = self.plan.min_drag_area()
        self.active = True

    def stop(self) -> None:
        """Stop controlling and report the airbrakes as retracted."""
        self.active = False
        if self.plan.is_loaded():
            minimum = self.plan.min_drag_area()
            self.current_drag_area = minimum
            self.requested_drag_area = minimum

    def clock(self) -> None:
        """Run one control step and hand the new target to the actuator."""
        self.fault = False
        altitude = self.observer.altitude()
        velocity = self.observer.vertical_velocity()
        angle = self.observer.angle_to_horizontal()
        if not self.plan.is_loaded():
            self.fault = True
            return

        self.flight_path = self.plan.altitude(velocity, angle)
        self.velocity_partial = self.plan.velocity_partial(velocity, angle)
        self.angle_partial = self.plan.angle_partial(velocity, angle)
        self.error = altitude - self.flight_path

        if velocity < self.shutdown_velocity:
            self.update_rule_clamped = True
        else:
            try:
                self.update_rule_drag_area = self.update_rule(
                    self.error, velocity, angle, altitude, self.velocity_partial, self.angle_partial
                )
            except (ZeroDivisionError, ValueError):
                self.fault = True

        self.adjusted_drag_area = self.update_rule_drag_area
        self.requested_drag_area = self.best_possible_drag_area(self.adjusted_drag_area, self.error)
        self.saturated = self.requested_drag_area != self.adjusted_drag_area

        current, ok = self._position_to_drag_area(self.actuator.current_deployment())
        if not ok:
            self.fault = True
        self.current_drag_area = current

        position, ok = self._drag_area_to_position(self.requested_drag_area)
        if not ok:
            self.fault = True
        self.actuator.set_target_deployment(position)

    def update_rule(
        self,
        error: float,
        vertical_velocity: float,
        angle: float,
        altitude: float,
        velocity_partial: float,
        angle_partial: float,
    ) -> float:
        """Drag area that makes the altitude error decay at the set rate.

        Derived from two-dimensional rocket dynamics.
        """
        density = air_density(altitude, self.plan.ground_pressure(), self.plan.ground_temperature())
        gravity_term = GRAVITATIONAL_CONSTANT * (
            velocity_partial + angle_partial * math.sin(2 * angle) / (2 * vertical_velocity)
        )
        numerator = 2 * self.plan.dry_mass() * math.sin(angle) * (
            self.decay_rate * error - vertical_velocity - gravity_term
        )
        return numerator / (density * vertical_velocity * vertical_velocity * velocity_partial)

    def best_possible_drag_area(self, drag_area: float, error: float) -> float:
        """Clamp ``drag_area`` to what the airbrakes can physically reach."""
        minimum = self.plan.min_drag_area()
        maximum = self.plan.max_drag_area()
        if minimum <= drag_area <= maximum:
            return drag_area
        return maximum if error > 0 else minimum

    def drag_area_to_position(self, drag_area: float) -> float:
        """Actuator deployment (0..1) giving ``drag_area``; ValueError if unreachable."""
        position, ok = self._drag_area_to_position(drag_area)
        if not ok:
            raise ValueError(f"drag area {drag_area} is outside the airbrakes' range")
        return position

    def position_to_drag_area(self, position: float) -> float:
        """Drag area at actuator deployment ``position``; ValueError outside 0..1."""
        drag_area, ok = self._position_to_drag_area(position)
        if not ok:
            raise ValueError(f"deployment {position} is outside 0..1")
        return drag_area

    def _drag_area_to_position(self, drag_area: float) -> Tuple[float, bool]:
        minimum = self.plan.min_drag_area()
        maximum = self.plan.max_drag_area()
        if drag_area == minimum:
            return 0.0, True
        if drag_area == maximum:
            return 1.0, True
        if drag_area < minimum:
            return 0.0, False
        if drag_area > maximum:
            return 1.0, False
        limit = self.plan.deployment_angle_limit()
        ratio = (drag_area - minimum) * _sin_squared(limit) / (maximum - minimum)
        return math.asin(min(1.0, math.sqrt(ratio))) / limit, True

    def _position_to_drag_area(self, position: float) -> Tuple[float, bool]:
        minimum = self.plan.min_drag_area()
        maximum = self.plan.max_drag_area()
        if position == 0:
            return minimum, True
        if position == 1:
            return maximum, True
        if position > 1:
            return maximum, False
        if position < 0:
            return minimum, False
        limit = self.plan.deployment_angle_limit()
        return minimum + _sin_squared(position * limit) / _sin_squared(limit) * (maximum - minimum), True