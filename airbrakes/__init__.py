"""Rocket airbrake logic: flight plans, drag-area control, actuation, event thresholds and persistence."""

__version__ = "0.1.0"

__all__ = [
    "actuator",
    "controller",
    "detection",
    "flightplan",
    "persistent",
    "ringqueue",
]