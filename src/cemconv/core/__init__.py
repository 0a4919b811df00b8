"""Core conversion algorithms.

This module contains the format-independent parts of a conversion:
- Split-indexed and flat-indexed data model
- Axis transform between authoring and runtime space
- Center accumulation
- Vertex deduplication
- Morph frame topology validation
"""

from .model import (
    FlatModel,
    FlatVertex,
    Frame,
    Geometry,
    Material,
    Shape,
    SplitIndex,
    SplitObject,
    TriangleSelection,
)
from .transform import AxisTransformer
from .dedup import VertexDeduplicator, VertexConvention, OBJ_CONVENTION, COLLADA_CONVENTION
from .validator import validate
from .exceptions import *

__all__ = [
    # Data model
    "FlatModel",
    "FlatVertex",
    "Frame",
    "Geometry",
    "Material",
    "Shape",
    "SplitIndex",
    "SplitObject",
    "TriangleSelection",
    # Algorithms
    "AxisTransformer",
    "VertexDeduplicator",
    "VertexConvention",
    "OBJ_CONVENTION",
    "COLLADA_CONVENTION",
    "validate",
]
