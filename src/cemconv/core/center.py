"""
Center Accumulator
==================

Single responsibility: Compute a model's declared pivot in one pass.

The pivot is the midpoint of the axis-aligned bounding box of the base
frame's positions. Morph frames reuse it unchanged.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from cemconv.core.model import ORIGIN, Vec3


@dataclass
class CenterAccumulator:
    """Running bounding box; `lower`/`upper` stay None until the first update."""

    lower: Optional[np.ndarray] = None
    upper: Optional[np.ndarray] = None
    count: int = 0


def begin() -> CenterAccumulator:
    return CenterAccumulator()


def update(accumulator: CenterAccumulator, position: Sequence[float]) -> None:
    """Fold one more position into the running bounds."""
    point = np.asarray(position, dtype=np.float64)

    if accumulator.lower is None:
        accumulator.lower = point.copy()
        accumulator.upper = point.copy()
    else:
        np.minimum(accumulator.lower, point, out=accumulator.lower)
        np.maximum(accumulator.upper, point, out=accumulator.upper)

    accumulator.count += 1


def build(accumulator: CenterAccumulator) -> Vec3:
    """
    Finalize the accumulator into a center point.

    Args:
        accumulator: State produced by begin() and update()

    Returns:
        Bounding box midpoint, or the origin when no position was folded in
    """
    if accumulator.lower is None:
        return ORIGIN

    x, y, z = (accumulator.lower + accumulator.upper) / 2.0
    return (float(x), float(y), float(z))
