"""
Axis Transform
==============

Single responsibility: Convert between the authoring coordinate
convention (Y up) and the runtime convention (Z up).

The conversion is one fixed rotation about the X axis: +90 degrees on
import, -90 degrees on export. Positions are transformed as full affine
points and normals as pure directions (translation zeroed), so the two
directions are exact inverses up to floating-point rounding.
"""

from typing import Sequence

import numpy as np

from cemconv.core.model import Vec3


def rotation_x(degrees: float) -> np.ndarray:
    """
    Build a 4x4 homogeneous rotation about the X axis.

    Args:
        degrees: Rotation angle in degrees

    Returns:
        (4, 4) float64 matrix
    """
    theta = np.deg2rad(degrees)
    c, s = np.cos(theta), np.sin(theta)

    return np.array([
        [1.0, 0.0, 0.0, 0.0],
        [0.0, c, -s, 0.0],
        [0.0, s, c, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])


class AxisTransformer:
    """
    Rotate points and directions between authoring and runtime space.

    Single responsibility: Coordinate system conversion.

    Example:
        >>> axes = AxisTransformer()
        >>> axes.to_runtime_point((0.0, 1.0, 0.0))  # Y up becomes Z up
        (0.0, 6.123233995736766e-17, 1.0)
    """

    def __init__(self, degrees: float = 90.0):
        self.import_matrix = rotation_x(degrees)
        self.export_matrix = rotation_x(-degrees)

    @staticmethod
    def _apply_point(matrix: np.ndarray, point: Sequence[float]) -> Vec3:
        homogeneous = matrix @ np.array([point[0], point[1], point[2], 1.0])
        x, y, z = homogeneous[:3] / homogeneous[3]
        return (float(x), float(y), float(z))

    @staticmethod
    def _apply_direction(matrix: np.ndarray, direction: Sequence[float]) -> Vec3:
        vector = np.array([direction[0], direction[1], direction[2]], dtype=np.float64)
        length = np.linalg.norm(vector)
        if length > 0.0:
            vector = vector / length

        x, y, z = (matrix @ np.append(vector, 0.0))[:3]
        return (float(x), float(y), float(z))

    def to_runtime_point(self, point: Sequence[float]) -> Vec3:
        return self._apply_point(self.import_matrix, point)

    def to_runtime_direction(self, direction: Sequence[float]) -> Vec3:
        """Rotate a direction into runtime space. Non-zero input is normalized first."""
        return self._apply_direction(self.import_matrix, direction)

    def to_authoring_point(self, point: Sequence[float]) -> Vec3:
        return self._apply_point(self.export_matrix, point)

    def to_authoring_direction(self, direction: Sequence[float]) -> Vec3:
        return self._apply_direction(self.export_matrix, direction)


# Shared instance; the transform holds no per-call state.
AXES = AxisTransformer()
