import numpy as np
import pytest

from cemconv.core import center
from cemconv.core.model import ORIGIN, FlatVertex, Frame
from cemconv.core.transform import AxisTransformer

POINTS = [
    (0.0, 0.0, 0.0),
    (1.5, -2.25, 3.0),
    (-10.0, 4.0, 0.125),
    (1e3, 1e-3, -7.0),
]


@pytest.fixture
def axes():
    return AxisTransformer()


@pytest.mark.parametrize("point", POINTS)
def test_point_round_trip_is_identity(axes, point):
    back = axes.to_authoring_point(axes.to_runtime_point(point))

    assert back == pytest.approx(point, abs=1e-9)


def test_direction_round_trip_is_identity(axes):
    direction = (0.0, 0.6, 0.8)
    back = axes.to_authoring_direction(axes.to_runtime_direction(direction))

    assert back == pytest.approx(direction, abs=1e-12)


def test_y_up_becomes_z_up(axes):
    assert axes.to_runtime_point((0.0, 1.0, 0.0)) == pytest.approx((0.0, 0.0, 1.0), abs=1e-12)
    assert axes.to_authoring_point((0.0, 0.0, 1.0)) == pytest.approx((0.0, 1.0, 0.0), abs=1e-12)


def test_directions_are_normalized(axes):
    normal = axes.to_runtime_direction((3.0, 0.0, 0.0))

    assert np.linalg.norm(normal) == pytest.approx(1.0)


def test_zero_direction_stays_zero(axes):
    assert axes.to_runtime_direction((0.0, 0.0, 0.0)) == (0.0, 0.0, 0.0)


def test_center_without_updates_is_origin():
    assert center.build(center.begin()) == ORIGIN


def test_center_is_bounding_box_midpoint():
    accumulator = center.begin()
    for position in [(0.0, 0.0, 0.0), (2.0, -4.0, 1.0), (1.0, 1.0, 5.0)]:
        center.update(accumulator, position)

    assert center.build(accumulator) == pytest.approx((1.0, -1.5, 2.5))
    assert accumulator.count == 3


def test_frame_bounds_and_radius():
    vertices = [
        FlatVertex((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0)),
        FlatVertex((2.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0)),
    ]

    frame = Frame.from_vertices(vertices, [], (1.0, 0.0, 0.0))

    assert frame.radius == pytest.approx(1.0)
    assert frame.bounds == ((0.0, 0.0, 0.0), (2.0, 0.0, 0.0))
