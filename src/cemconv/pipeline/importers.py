"""
Importers
=========

Single responsibility: Turn split-indexed source documents into a flat model.

Both importers share one pipeline: validate morph frames against the base
object, deduplicate the base object once, materialize every frame from
that single index assignment, then compute the center from the base frame.
"""

from typing import Optional, Sequence

from cemconv.core import center
from cemconv.core.dedup import COLLADA_CONVENTION, OBJ_CONVENTION, VertexConvention, VertexDeduplicator
from cemconv.core.exceptions import DocumentError, NoRootGeometryError
from cemconv.core.model import FlatModel, Frame, Material, SplitObject, TriangleSelection
from cemconv.core.validator import validate
from cemconv.formats.collada import Node, find_root_geometry, read_geometries, read_morph_links
from cemconv.formats.obj import ObjSet
from cemconv.utils.diagnostics import DiagnosticSink


def build_model(
    base: SplitObject,
    frames: Sequence[SplitObject],
    convention: VertexConvention,
    sink: Optional[DiagnosticSink] = None
) -> FlatModel:
    """
    Merge a base object and its morph frames into one flat model.

    Args:
        base: Object that defines topology and frame 0
        frames: Additional frames, in linkage order
        convention: Source format defaults and V orientation
        sink: Receives the vertex count summary

    Returns:
        Flat model with 1 + len(frames) frames sharing one triangle buffer

    Raises:
        TopologyMismatchError: If any frame differs in topology from the base
    """
    sink = sink if sink is not None else DiagnosticSink()
    validate(base, frames)

    dedup = VertexDeduplicator.for_object(base)
    triangles = dedup.add_shapes(base.iter_shapes())

    sink.info(
        f"{len(triangles)} triangles with {len(dedup)} flattened vertices "
        f"(from: {len(base.vertices)} position, {len(base.tex_vertices)} tex, "
        f"{len(base.normals)} normal)"
    )

    base_vertices = dedup.build_flat_vertices(base, convention)

    accumulator = center.begin()
    for vertex in base_vertices:
        center.update(accumulator, vertex.position)
    model_center = center.build(accumulator)

    # TODO: tag points are not read from either source format yet
    model_frames = [Frame.from_vertices(base_vertices, [], model_center)]
    for frame in frames:
        vertices = dedup.build_flat_vertices(frame, convention)
        model_frames.append(Frame.from_vertices(vertices, [], model_center))

    return FlatModel(
        center=model_center,
        materials=[Material(
            name="",
            texture=0,
            triangles=[TriangleSelection(offset=0, length=len(triangles))],
            vertex_offset=0,
            vertex_count=len(dedup),
            texture_name="",
        )],
        lod_levels=[triangles],
        tag_points=[],
        frames=model_frames,
    )


def obj_to_model(obj_set: ObjSet, sink: Optional[DiagnosticSink] = None) -> FlatModel:
    """
    Convert parsed OBJ data into a single-frame flat model.

    Only the first object is converted.

    Raises:
        NoRootGeometryError: If the file declares no object data
    """
    sink = sink if sink is not None else DiagnosticSink()

    if not obj_set.objects:
        raise NoRootGeometryError("No root geometry! The OBJ file declares no objects")

    if len(obj_set.objects) > 1:
        sink.warning(
            "obj",
            f"ignoring {len(obj_set.objects) - 1} additional objects for now, "
            f"submodels are not supported yet",
        )

    return build_model(obj_set.objects[0], [], OBJ_CONVENTION, sink)


def collada_to_model(root: Node, sink: Optional[DiagnosticSink] = None) -> FlatModel:
    """
    Convert a COLLADA document into a flat model, morph targets becoming frames.

    Args:
        root: <COLLADA> root node
        sink: Receives warnings for skipped content

    Returns:
        Flat model; frame 0 is the root geometry, then its morph targets in order

    Raises:
        NoRootGeometryError: If the primary scene instances no geometry
        DocumentError: If the root geometry or a morph target is missing
        TopologyMismatchError: If a morph target uses different geometry
    """
    sink = sink if sink is not None else DiagnosticSink()

    objects = read_geometries(root)
    morph_links = read_morph_links(root, sink)
    root_geometry = find_root_geometry(root, sink)

    if not root_geometry:
        raise NoRootGeometryError("No root geometry!")
    if len(root_geometry) > 1:
        sink.warning("collada", "ignoring additional root geometry for now, submodels are not supported yet")

    root_name = root_geometry[0]
    base = objects.get(root_name)
    if base is None:
        raise DocumentError(f"geometry library missing root geometry {root_name!r}")

    frames = []
    for name in morph_links.get(root_name, []):
        if name not in objects:
            raise DocumentError(f"geometry library missing geometry frame {name!r}")
        frames.append(objects[name])

    return build_model(base, frames, COLLADA_CONVENTION, sink)
