import math

import pytest

from airbrakes.flightplan import (
    FlightPlan,
    FormattingError,
    NotLoadedError,
    PlanFileError,
    PlanMemoryError,
    read_floats,
)

HEADER = "1000, 0.01, 0.05, 45, 10, 288.15, 101325, 100, 2, 2,\n"
# Mesh values by (velocity index, angle index):
# (0,0)=100, (1,0)=200, (0,1)=300, (1,1)=400; stored in reverse order.
MESH = "400, 300, 200, 100\n"


def loaded_plan(memory_size=64):
    plan = FlightPlan(memory_size=memory_size)
    plan.load_text(HEADER + MESH)
    return plan


def test_read_floats_skips_separators():
    assert list(read_floats("a1.5,-2 x3")) == [1.5, -2.0, 3.0]


def test_read_floats_consumes_terminator():
    assert list(read_floats("1.2.3")) == [1.2, 3.0]


def test_read_floats_minus_without_digit():
    with pytest.raises(FormattingError):
        list(read_floats("1, -x"))


def test_read_floats_point_without_digit():
    with pytest.raises(FormattingError):
        list(read_floats("5."))


def test_header_values():
    plan = loaded_plan()
    assert plan.is_loaded()
    assert plan.target_apogee() == 1000
    assert plan.min_drag_area() == pytest.approx(0.01)
    assert plan.max_drag_area() == pytest.approx(0.05)
    assert plan.deployment_angle_limit() == pytest.approx(math.pi / 4)
    assert plan.dry_mass() == 10
    assert plan.ground_temperature() == pytest.approx(288.15)
    assert plan.ground_pressure() == 101325


def test_altitude_at_mesh_points():
    plan = loaded_plan()
    assert plan.altitude(0, 0) == pytest.approx(100)
    assert plan.altitude(100, math.pi / 2) == pytest.approx(400)
    assert plan.altitude(50, 0) == pytest.approx(200)


def test_altitude_is_linear_between_samples():
    plan = loaded_plan()
    low = plan.altitude(0, 0)
    assert plan.altitude(25, 0) == pytest.approx((low + 200) / 2)
    assert low < plan.altitude(10, 0) < plan.altitude(40, 0) < 200


def test_partials_of_linear_mesh_are_constant():
    plan = loaded_plan()
    velocity_slope = (200 - 100) / 50
    angle_slope = (300 - 100) / (math.pi / 4)
    for velocity, angle in [(0, 0), (10, 0.2), (75, 1.0)]:
        assert plan.velocity_partial(velocity, angle) == pytest.approx(velocity_slope)
        assert plan.angle_partial(velocity, angle) == pytest.approx(angle_slope)


def test_not_loaded_raises():
    plan = FlightPlan()
    assert not plan.is_loaded()
    with pytest.raises(NotLoadedError):
        plan.altitude(0, 0)
    with pytest.raises(NotLoadedError):
        plan.min_drag_area()


def test_short_file_is_formatting_error():
    plan = loaded_plan()
    with pytest.raises(FormattingError):
        plan.load_text(HEADER + "400, 300")
    assert not plan.is_loaded()


def test_zero_samples_is_formatting_error():
    plan = FlightPlan()
    with pytest.raises(FormattingError):
        plan.load_text("1000, 0.01, 0.05, 45, 10, 288.15, 101325, 100, 0, 2")


def test_insufficient_memory():
    plan = FlightPlan(memory_size=3)
    with pytest.raises(PlanMemoryError):
        plan.load_text(HEADER + MESH)
    assert not plan.is_loaded()


def test_missing_file(tmp_path):
    plan = FlightPlan(str(tmp_path / "missing.csv"))
    with pytest.raises(PlanFileError):
        plan.load()
    assert not plan.is_loaded()


def test_load_from_file(tmp_path):
    path = tmp_path / "plan.csv"
    path.write_text(HEADER + MESH)
    plan = FlightPlan(memory_size=64)
    plan.load(str(path))
    assert plan.file_name == str(path)
    assert plan.altitude(0, 0) == pytest.approx(100)


def test_describe():
    assert "No flight plan is loaded" in FlightPlan().describe()
    assert "64 kB available for storage" in FlightPlan().describe()
    text = loaded_plan().describe()
    assert "Target apogee: 1000.00m" in text
    assert "with 2 samples" in text