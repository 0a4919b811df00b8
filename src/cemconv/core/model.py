"""
Model Data Structures
=====================

Single responsibility: Define the split-indexed source graph and the
flat-indexed runtime model.

Split-indexed objects come out of the authoring format readers, where
every face corner references position, texture coordinate and normal
through independent indices. The flat model is what the runtime codec
stores: one index per vertex shared by all attributes, and any number of
frames that reuse one triangle buffer.
"""

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Triangle = Tuple[int, int, int]

ORIGIN: Vec3 = (0.0, 0.0, 0.0)


# ============================================================================
# Split-indexed source graph
# ============================================================================

class SplitIndex(NamedTuple):
    """One face corner of a split-indexed source.

    A missing texture or normal means "use the format default",
    never index 0.
    """

    position: int
    texture: Optional[int] = None
    normal: Optional[int] = None


POINT = "point"
LINE = "line"
TRIANGLE = "triangle"


class Shape(NamedTuple):
    """A primitive (point, line or triangle) over split-indexed corners."""

    kind: str
    corners: Tuple[SplitIndex, ...]

    @classmethod
    def triangle(cls, a: SplitIndex, b: SplitIndex, c: SplitIndex) -> "Shape":
        return cls(TRIANGLE, (a, b, c))

    @classmethod
    def line(cls, a: SplitIndex, b: SplitIndex) -> "Shape":
        return cls(LINE, (a, b))

    @classmethod
    def point(cls, a: SplitIndex) -> "Shape":
        return cls(POINT, (a,))


@dataclass
class Geometry:
    """One primitive group of a source object (OBJ group, COLLADA <triangles>)."""

    shapes: List[Shape] = field(default_factory=list)
    material: Optional[str] = None


@dataclass
class SplitObject:
    """A split-indexed object as handed back by a format reader.

    Attributes:
        id: Object name (OBJ) or geometry id (COLLADA)
        vertices: Position array
        tex_vertices: Texture coordinate array
        normals: Normal array
        geometry: Primitive groups in declaration order
    """

    id: str
    vertices: List[Vec3] = field(default_factory=list)
    tex_vertices: List[Vec2] = field(default_factory=list)
    normals: List[Vec3] = field(default_factory=list)
    geometry: List[Geometry] = field(default_factory=list)

    def iter_shapes(self):
        for geometry in self.geometry:
            yield from geometry.shapes


# ============================================================================
# Flat-indexed runtime model
# ============================================================================

@dataclass(frozen=True)
class FlatVertex:
    position: Vec3
    normal: Vec3
    texture: Vec2


@dataclass(frozen=True)
class TriangleSelection:
    """Contiguous run of triangles inside one LOD level's triangle buffer."""

    offset: int
    length: int


@dataclass
class Material:
    name: str = ""
    texture: int = 0
    triangles: List[TriangleSelection] = field(default_factory=list)
    vertex_offset: int = 0
    vertex_count: int = 0
    texture_name: str = ""


@dataclass
class Frame:
    """One full vertex set sharing the model's triangle buffer.

    Attributes:
        vertices: Flat vertices, same count in every frame of a model
        tag_points: Tag point positions for this frame
        radius: Largest distance from the model center to any vertex
        bounds: (min, max) corners of the axis-aligned bounding box
    """

    vertices: List[FlatVertex]
    tag_points: List[Vec3] = field(default_factory=list)
    radius: float = 0.0
    bounds: Tuple[Vec3, Vec3] = (ORIGIN, ORIGIN)

    @classmethod
    def from_vertices(
        cls,
        vertices: List[FlatVertex],
        tag_points: List[Vec3],
        center: Vec3
    ) -> "Frame":
        """
        Build a frame and derive its radius and bounds from the vertices.

        Args:
            vertices: Flat vertices of the frame
            tag_points: Tag point positions
            center: Model center the radius is measured from

        Returns:
            Frame with computed radius and bounding box
        """
        if not vertices:
            return cls(vertices=vertices, tag_points=tag_points)

        positions = np.asarray([v.position for v in vertices], dtype=np.float64)
        offsets = positions - np.asarray(center, dtype=np.float64)

        radius = float(np.linalg.norm(offsets, axis=1).max())
        lower = tuple(float(x) for x in positions.min(axis=0))
        upper = tuple(float(x) for x in positions.max(axis=0))

        return cls(
            vertices=vertices,
            tag_points=tag_points,
            radius=radius,
            bounds=(lower, upper),
        )


@dataclass
class AttributeSet:
    """One frame expanded back into authoring space, ready for an emitter."""

    positions: List[Vec3]
    normals: List[Vec3]
    texcoords: List[Vec2]


@dataclass(frozen=True)
class ModelHeader:
    magic: bytes
    major: int
    minor: int

    @property
    def version(self) -> Tuple[int, int]:
        return (self.major, self.minor)


CEM_MAGIC = b"SSMF"
V2_HEADER = ModelHeader(CEM_MAGIC, 2, 0)


@dataclass
class FlatModel:
    """Flat-indexed model (CEM v2 body).

    Attributes:
        center: Declared pivot, computed from the base frame
        materials: Triangle partitions, each with a name and texture id
        lod_levels: Triangle buffers; level 0 is the full-detail mesh
        tag_points: Tag point names; positions live in each frame
        frames: Vertex sets sharing lod_levels
    """

    center: Vec3
    materials: List[Material]
    lod_levels: List[List[Triangle]]
    tag_points: List[str]
    frames: List[Frame]

    @property
    def triangles(self) -> List[Triangle]:
        return self.lod_levels[0] if self.lod_levels else []

    @property
    def vertex_count(self) -> int:
        return len(self.frames[0].vertices) if self.frames else 0
