"""
Vertex Deduplication
====================

Single responsibility: Collapse split-indexed face corners into a
minimal flat vertex buffer.

Each face corner is canonicalized by replacing a missing texture or
normal reference with a sentinel one past the end of the respective
source array. Canonical triples are looked up in an insertion-ordered
table; the first time a triple is seen it receives the next flat index.
As a result:

- the flat vertex count equals the number of distinct canonical triples,
- flat indices follow first-encounter order over the face list,
- rewritten triangles keep the source corner order (winding).
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from cemconv.core.model import TRIANGLE, FlatVertex, Shape, SplitIndex, SplitObject, Triangle, Vec2, Vec3
from cemconv.core.transform import AXES, AxisTransformer
from cemconv.utils.logging import get_logger

logger = get_logger(__name__)

CanonicalTriple = Tuple[int, int, int]


@dataclass(frozen=True)
class VertexConvention:
    """Per-format defaults for missing references and texture V orientation.

    Attributes:
        name: Format name for diagnostics
        default_texture: Coordinate used when a corner has no texture reference
        default_normal: Direction used when a corner has no normal reference
        flip_v: Store V as 1 - v (applied on both import and export)
    """

    name: str
    default_texture: Vec2
    default_normal: Vec3
    flip_v: bool

    def texture_to_runtime(self, texture: Vec2) -> Vec2:
        u, v = float(texture[0]), float(texture[1])
        return (u, 1.0 - v) if self.flip_v else (u, v)

    # The flip is its own inverse.
    texture_to_authoring = texture_to_runtime


OBJ_CONVENTION = VertexConvention(
    name="obj",
    default_texture=(0.0, 0.0),
    default_normal=(1.0, 0.0, 0.0),
    flip_v=False,
)

COLLADA_CONVENTION = VertexConvention(
    name="collada",
    default_texture=(0.0, 0.0),
    default_normal=(1.0, 0.0, 0.0),
    flip_v=True,
)


class VertexDeduplicator:
    """
    Association table from canonical split triples to flat indices.

    Single responsibility: Assign flat indices and remember the triple
    behind each one, so any object with the same topology can be
    materialized against the same assignment.

    Example:
        >>> dedup = VertexDeduplicator(texture_count=4, normal_count=1)
        >>> dedup.dedup(SplitIndex(0, 0, 0))
        0
        >>> dedup.dedup(SplitIndex(1, None, 0))
        1
        >>> dedup.dedup(SplitIndex(0, 0, 0))
        0
        >>> dedup.associations
        [(0, 0, 0), (1, 4, 0)]
    """

    def __init__(self, texture_count: int, normal_count: int):
        self.texture_sentinel = texture_count
        self.normal_sentinel = normal_count

        # indices come from associations, never from dict iteration
        self.reverse: Dict[CanonicalTriple, int] = {}
        self.associations: List[CanonicalTriple] = []

    @classmethod
    def for_object(cls, source: SplitObject) -> "VertexDeduplicator":
        return cls(len(source.tex_vertices), len(source.normals))

    def canonicalize(self, corner: SplitIndex) -> CanonicalTriple:
        return (
            corner.position,
            self.texture_sentinel if corner.texture is None else corner.texture,
            self.normal_sentinel if corner.normal is None else corner.normal,
        )

    def dedup(self, corner: SplitIndex) -> int:
        """
        Return the flat index for a face corner, assigning a new one if unseen.

        Args:
            corner: Split-indexed face corner

        Returns:
            Zero-based flat vertex index
        """
        triple = self.canonicalize(corner)

        index = self.reverse.get(triple)
        if index is None:
            index = len(self.associations)
            self.associations.append(triple)
            self.reverse[triple] = index

        return index

    def add_shapes(self, shapes: Iterable[Shape]) -> List[Triangle]:
        """
        Rewrite triangles to flat indices, discarding lines and points.

        Args:
            shapes: Primitives in source order

        Returns:
            Triangles as flat index triples, corner order preserved
        """
        triangles = []

        for shape in shapes:
            if shape.kind != TRIANGLE:
                continue  # lines and points are not supported

            a, b, c = shape.corners
            triangles.append((self.dedup(a), self.dedup(b), self.dedup(c)))

        return triangles

    def build_flat_vertices(
        self,
        source: SplitObject,
        convention: VertexConvention,
        axes: AxisTransformer = AXES
    ) -> List[FlatVertex]:
        """
        Materialize one flat vertex per recorded triple from a source object.

        The source may be the object the table was built from or any frame
        proven to share its topology; attribute values are fetched at the
        same recorded indices from the source's own arrays.

        Args:
            source: Object whose arrays supply the attribute values
            convention: Format defaults and V orientation
            axes: Transform into runtime space

        Returns:
            Flat vertices in flat index order
        """
        vertices = []

        for position_index, texture_index, normal_index in self.associations:
            position = source.vertices[position_index]

            if texture_index == self.texture_sentinel:
                texture = convention.default_texture
            else:
                texture = source.tex_vertices[texture_index]

            if normal_index == self.normal_sentinel:
                normal = convention.default_normal
            else:
                normal = source.normals[normal_index]

            vertices.append(FlatVertex(
                position=axes.to_runtime_point(position),
                normal=axes.to_runtime_direction(normal),
                texture=convention.texture_to_runtime(texture),
            ))

        return vertices

    def __len__(self) -> int:
        return len(self.associations)
