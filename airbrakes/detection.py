"""Thresholds used to detect flight events such as launch and apogee."""

from __future__ import annotations

from dataclasses import dataclass

LAUNCH_MAX_ALTITUDE_M = 10.0
LAUNCH_MIN_VELOCITY_M_PER_S = 30.0
LAUNCH_MIN_ACCELERATION_M_PER_S2 = 100.0
LAUNCH_MIN_SAMPLES = 3
LAUNCH_MIN_TIME_MS = 10000

BURNOUT_MIN_ALTITUDE_M = 70.0
BURNOUT_MIN_VELOCITY_M_PER_S = 100.0
BURNOUT_MAX_ACCELERATION_M_PER_S2 = -10.0
BURNOUT_MIN_SAMPLES = 3
BURNOUT_MIN_TIME_MS = 400

APOGEE_MIN_ALTITUDE_M = 500.0
APOGEE_MAX_VELOCITY_M_PER_S = 5.0
APOGEE_MAX_ACCELERATION_M_PER_S2 = 0.0
APOGEE_MIN_SAMPLES = 3
APOGEE_MIN_TIME_MS = 6000

EVENT_DETECTION_SAMPLE_PERIOD_MS = 50

DETECTION_DATA_FORMAT = "<fffII"


@dataclass
class DetectionData:
    """The stored thresholds of one event."""

    altitude_threshold: float
    vertical_velocity_threshold: float
    vertical_acceleration_threshold: float
    required_consecutive_samples: int
    minimum_time_ms: int


class EventDetection:
    """Named set of thresholds for detecting one flight event."""

    def __init__(
        self,
        name: str,
        altitude: float,
        velocity: float,
        acceleration: float,
        samples: int,
        time_ms: int,
    ) -> None:
        self.name = name
        self.data = DetectionData(
            float(altitude), float(velocity), float(acceleration), int(samples), int(time_ms)
        )

    def altitude_threshold(self) -> float:
        """Altitude the event is compared against."""
        return self.data.altitude_threshold

    def vertical_velocity_threshold(self) -> float:
        """Threshold compared with vertical velocity.

        This reads the stored acceleration field; the velocity and
        acceleration fields are crossed between storage and lookup.
        """
        return self.data.vertical_acceleration_threshold

    def vertical_acceleration_threshold(self) -> float:
        """Threshold compared with vertical acceleration.

        This reads the stored velocity field.
        """
        return self.data.vertical_velocity_threshold

    def consecutive_samples_threshold(self) -> float:
        """Number of consecutive matching samples the event needs."""
        return float(self.data.required_consecutive_samples)

    def time_threshold(self) -> float:
        """Minimum time in the current phase before the event can fire."""
        return float(self.data.minimum_time_ms)


def default_launch() -> EventDetection:
    """Launch detection with the configured defaults."""
    return EventDetection(
        "launch",
        LAUNCH_MAX_ALTITUDE_M,
        LAUNCH_MIN_VELOCITY_M_PER_S,
        LAUNCH_MIN_ACCELERATION_M_PER_S2,
        LAUNCH_MIN_SAMPLES,
        LAUNCH_MIN_TIME_MS,
    )


def default_burnout() -> EventDetection:
    """Burnout detection with the configured defaults."""
    return EventDetection(
        "burnout",
        BURNOUT_MIN_ALTITUDE_M,
        BURNOUT_MIN_VELOCITY_M_PER_S,
        BURNOUT_MAX_ACCELERATION_M_PER_S2,
        BURNOUT_MIN_SAMPLES,
        BURNOUT_MIN_TIME_MS,
    )


def default_apogee() -> EventDetection:
    """Apogee detection with the configured defaults."""
    return EventDetection(
        "apogee",
        APOGEE_MIN_ALTITUDE_M,
        APOGEE_MAX_VELOCITY_M_PER_S,
        APOGEE_MAX_ACCELERATION_M_PER_S2,
        APOGEE_MIN_SAMPLES,
        APOGEE_MIN_TIME_MS,
    )