"""
Exporters
=========

Single responsibility: Expand flat model frames back into authoring-space
attribute sets and hand them to the format emitters.

No re-deduplication happens here: the flat buffer is already minimal, so
every flat vertex becomes exactly one position, normal and texcoord entry.
"""

from typing import List

from cemconv.core.dedup import COLLADA_CONVENTION, OBJ_CONVENTION, VertexConvention
from cemconv.core.exceptions import FrameIndexError
from cemconv.core.model import AttributeSet, FlatModel, Frame
from cemconv.core.transform import AXES, AxisTransformer
from cemconv.formats.collada import DEFAULT_TIMESTAMP, emit_collada
from cemconv.formats.obj import emit_obj


def frame_attributes(
    frame: Frame,
    convention: VertexConvention,
    axes: AxisTransformer = AXES
) -> AttributeSet:
    """Inverse-transform one frame into a standalone attribute set."""
    return AttributeSet(
        positions=[axes.to_authoring_point(v.position) for v in frame.vertices],
        normals=[axes.to_authoring_direction(v.normal) for v in frame.vertices],
        texcoords=[convention.texture_to_authoring(v.texture) for v in frame.vertices],
    )


def triangle_polygons(model: FlatModel) -> List[int]:
    """
    Flatten the first LOD level into one index list, three per triangle.

    Each material's selection is offset by the material's vertex offset.
    """
    triangles = model.triangles
    polygons = [0] * (len(triangles) * 3)

    for material in model.materials:
        selection = material.triangles[0]
        for index in range(selection.offset, selection.offset + selection.length):
            for corner, vertex in enumerate(triangles[index]):
                polygons[index * 3 + corner] = material.vertex_offset + vertex

    return polygons


def model_to_obj(model: FlatModel, frame_index: int = 0) -> str:
    """
    Write one frame of a model as OBJ text.

    OBJ has no notion of frames, so exactly one frame is written.

    Args:
        model: Flat model
        frame_index: Frame to extract

    Returns:
        OBJ document text

    Raises:
        FrameIndexError: If the model has no such frame
    """
    if not 0 <= frame_index < len(model.frames):
        raise FrameIndexError(frame_index, len(model.frames))

    attributes = frame_attributes(model.frames[frame_index], OBJ_CONVENTION)

    return emit_obj(
        attributes.positions,
        attributes.normals,
        attributes.texcoords,
        model.materials,
        model.triangles,
    )


def model_to_collada(model: FlatModel, timestamp: str = DEFAULT_TIMESTAMP) -> str:
    """
    Write every frame of a model as COLLADA, linking frames 1..N-1 as morph targets.

    Args:
        model: Flat model
        timestamp: Creation time written into the asset block

    Returns:
        COLLADA document text
    """
    frames = [frame_attributes(frame, COLLADA_CONVENTION) for frame in model.frames]

    return emit_collada(frames, triangle_polygons(model), timestamp=timestamp)
