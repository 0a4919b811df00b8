"""
COLLADA Reading and Writing
===========================

Single responsibility: Read split-indexed geometry, scene roots and morph
links out of a COLLADA document, and write flat frames back as COLLADA.

Document traversal goes through `Node`, a narrow read-only view over
`xml.etree.ElementTree` elements with namespaces stripped from tag names.
"""

import xml.etree.ElementTree as ET
from typing import Dict, List, Optional, Sequence

from cemconv import __version__
from cemconv.core.exceptions import DocumentError, ParseError
from cemconv.core.model import AttributeSet, Geometry, Shape, SplitIndex, SplitObject
from cemconv.utils.diagnostics import DiagnosticSink
from cemconv.utils.logging import get_logger

logger = get_logger(__name__)

SOURCE = "collada"
DEFAULT_TIMESTAMP = "1970-01-01T00:00:00"


# ============================================================================
# Document nodes
# ============================================================================

class Node:
    """Read-only view over one XML element."""

    def __init__(self, element: ET.Element):
        self.element = element

    @property
    def name(self) -> str:
        tag = self.element.tag
        return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""

    @property
    def text(self) -> str:
        return self.element.text or ""

    def get_child(self, name: str) -> Optional["Node"]:
        for child in self.children():
            if child.name == name:
                return child
        return None

    def get_attribute(self, name: str) -> Optional[str]:
        return self.element.get(name)

    def children(self) -> List["Node"]:
        return [Node(child) for child in self.element if isinstance(child.tag, str)]

    def children_named(self, name: str) -> List["Node"]:
        return [child for child in self.children() if child.name == name]


def parse_document(data: bytes) -> Node:
    """
    Parse COLLADA bytes into the root node.

    Raises:
        ParseError: If the XML is malformed, with the offending line number
    """
    try:
        return Node(ET.fromstring(data))
    except ET.ParseError as e:
        line = e.position[0] if getattr(e, "position", None) else 0
        raise ParseError(line, str(e), "COLLADA") from e


def trim_hash(name: str) -> str:
    return name[1:] if name.startswith("#") else name


def _require(node: Optional[Node], message: str) -> Node:
    if node is None:
        raise DocumentError(message)
    return node


# ============================================================================
# Geometry library
# ============================================================================

def _numbers(node: Node, kind, what: str) -> list:
    try:
        return [kind(token) for token in node.text.split()]
    except ValueError as e:
        raise DocumentError(f"malformed {what} ({e})") from e


def _read_source(source: Node, width: int) -> list:
    """Read a <source> float array as tuples of `width` components."""
    array = _require(source.get_child("float_array"), f"source {source.get_attribute('id')!r} has no float_array")
    values = _numbers(array, float, f"float_array in source {source.get_attribute('id')!r}")

    stride = width
    technique = source.get_child("technique_common")
    accessor = technique.get_child("accessor") if technique is not None else None
    if accessor is not None and accessor.get_attribute("stride"):
        stride = int(accessor.get_attribute("stride"))

    if stride < width:
        raise DocumentError(f"source {source.get_attribute('id')!r} has stride {stride}, need {width}")

    return [tuple(values[i:i + width]) for i in range(0, len(values) - stride + 1, stride)]


class _MeshReader:
    """Builds one SplitObject out of a <geometry><mesh> element."""

    PRIMITIVES = ("triangles", "polylist", "lines")

    def __init__(self, geometry_id: str, mesh: Node):
        self.geometry_id = geometry_id
        self.mesh = mesh
        self.sources = {s.get_attribute("id"): s for s in mesh.children_named("source")}
        self.source_ids: Dict[str, Optional[str]] = {"NORMAL": None, "TEXCOORD": None}

        vertices = _require(mesh.get_child("vertices"), f"geometry {geometry_id!r} has no <vertices>")
        self.vertices_id = vertices.get_attribute("id")
        self.vertex_inputs = {i.get_attribute("semantic"): i for i in vertices.children_named("input")}

        position = _require(self.vertex_inputs.get("POSITION"), f"geometry {geometry_id!r} has no POSITION input")
        self.position_source = self.source(position.get_attribute("source"))

    def source(self, reference: Optional[str]) -> Node:
        node = self.sources.get(trim_hash(reference or ""))
        return _require(node, f"geometry {self.geometry_id!r} references missing source {reference!r}")

    def bind(self, semantic: str, reference: str) -> None:
        """Remember the attribute source; every primitive group must agree on it."""
        source_id = trim_hash(reference)
        bound = self.source_ids[semantic]
        if bound is not None and bound != source_id:
            raise DocumentError(
                f"geometry {self.geometry_id!r} mixes {semantic} sources {bound!r} and {source_id!r}"
            )
        self.source_ids[semantic] = source_id

    def corners(self, primitive: Node) -> List[SplitIndex]:
        inputs = primitive.children_named("input")
        stride = 1 + max((int(i.get_attribute("offset") or 0) for i in inputs), default=0)

        offsets: Dict[str, int] = {}
        for i in inputs:
            semantic = i.get_attribute("semantic")
            if semantic in offsets or semantic not in ("VERTEX", "NORMAL", "TEXCOORD"):
                continue
            offsets[semantic] = int(i.get_attribute("offset") or 0)
            if semantic != "VERTEX":
                self.bind(semantic, i.get_attribute("source") or "")

        if "VERTEX" not in offsets:
            raise DocumentError(f"<{primitive.name}> in geometry {self.geometry_id!r} has no VERTEX input")

        # Attributes declared on <vertices> share the position index.
        for semantic in ("NORMAL", "TEXCOORD"):
            if semantic not in offsets and semantic in self.vertex_inputs:
                self.bind(semantic, self.vertex_inputs[semantic].get_attribute("source") or "")
                offsets[semantic] = offsets["VERTEX"]

        values: List[int] = []
        for p in primitive.children_named("p"):
            values.extend(_numbers(p, int, f"<p> in geometry {self.geometry_id!r}"))

        corners = []
        for start in range(0, len(values) - stride + 1, stride):
            chunk = values[start:start + stride]
            corners.append(SplitIndex(
                chunk[offsets["VERTEX"]],
                chunk[offsets["TEXCOORD"]] if "TEXCOORD" in offsets else None,
                chunk[offsets["NORMAL"]] if "NORMAL" in offsets else None,
            ))
        return corners

    def shapes(self, primitive: Node) -> List[Shape]:
        corners = self.corners(primitive)

        if primitive.name == "triangles":
            return [Shape.triangle(*corners[i:i + 3]) for i in range(0, len(corners) - 2, 3)]

        if primitive.name == "lines":
            return [Shape.line(*corners[i:i + 2]) for i in range(0, len(corners) - 1, 2)]

        # polylist: split each polygon into a fan
        vcount = primitive.get_child("vcount")
        counts = _numbers(vcount, int, "vcount") if vcount is not None else []
        shapes, start = [], 0
        for count in counts:
            polygon = corners[start:start + count]
            start += count
            if count == 2:
                shapes.append(Shape.line(*polygon))
            elif count == 1:
                shapes.append(Shape.point(*polygon))
            for i in range(1, count - 1):
                shapes.append(Shape.triangle(polygon[0], polygon[i], polygon[i + 1]))
        return shapes

    def read(self) -> SplitObject:
        obj = SplitObject(id=self.geometry_id)

        for primitive in self.mesh.children():
            if primitive.name in self.PRIMITIVES:
                obj.geometry.append(Geometry(
                    shapes=self.shapes(primitive),
                    material=primitive.get_attribute("material"),
                ))
            elif primitive.name not in ("source", "vertices", "extra"):
                logger.debug(f"Skipping unsupported <{primitive.name}> in geometry {self.geometry_id!r}")

        obj.vertices = _read_source(self.position_source, 3)
        if self.source_ids["NORMAL"] is not None:
            obj.normals = _read_source(self.source(self.source_ids["NORMAL"]), 3)
        if self.source_ids["TEXCOORD"] is not None:
            obj.tex_vertices = _read_source(self.source(self.source_ids["TEXCOORD"]), 2)

        self.check_indices(obj)
        return obj

    def check_indices(self, obj: SplitObject) -> None:
        """Reject corners that point past the end of their source arrays."""
        for shape in obj.iter_shapes():
            for corner in shape.corners:
                for what, index, values in (
                    ("position", corner.position, obj.vertices),
                    ("texture", corner.texture, obj.tex_vertices),
                    ("normal", corner.normal, obj.normals),
                ):
                    if index is not None and not 0 <= index < len(values):
                        raise DocumentError(
                            f"geometry {self.geometry_id!r} uses {what} index {index}, "
                            f"but its source only has {len(values)} entries"
                        )


def read_geometries(root: Node) -> Dict[str, SplitObject]:
    """
    Read every mesh in <library_geometries> as a split-indexed object.

    Args:
        root: <COLLADA> root node

    Returns:
        Objects keyed by geometry id, in document order
    """
    library = root.get_child("library_geometries")
    if library is None:
        return {}

    objects = {}
    for geometry in library.children_named("geometry"):
        geometry_id = geometry.get_attribute("id") or ""
        mesh = geometry.get_child("mesh")
        if mesh is None:
            logger.debug(f"Skipping geometry {geometry_id!r} without a <mesh>")
            continue
        objects[geometry_id] = _MeshReader(geometry_id, mesh).read()

    return objects


# ============================================================================
# Scene roots and morph links
# ============================================================================

_TRANSFORMS = {"lookat", "matrix", "rotate", "scale", "skew", "translate"}
_IGNORED_INSTANCES = {
    "instance_camera": "Ignoring instance_camera",
    "instance_controller": "Ignoring instance_controller",
    "instance_light": "Lights are unsupported",
    "instance_node": "Ignoring instance_node",
    "node": "Nested nodes are unsupported",
}


def find_root_geometry(root: Node, sink: DiagnosticSink) -> List[str]:
    """
    Collect geometry ids instanced by the nodes of the primary visual scene.

    Unsupported node content is reported to the sink and skipped.

    Args:
        root: <COLLADA> root node
        sink: Receives warnings for skipped content

    Returns:
        Geometry ids in node order

    Raises:
        DocumentError: If the scene reference cannot be followed
    """
    scene = _require(root.get_child("scene"), "Collada document requires a root scene")
    instance = _require(scene.get_child("instance_visual_scene"), "Collada document missing root visual scene")
    url = instance.get_attribute("url")
    if url is None:
        raise DocumentError('<instance_visual_scene> missing "url" attribute')
    primary = trim_hash(url)

    library = _require(root.get_child("library_visual_scenes"), "Collada document has to have visual scenes")
    visual_scene = next(
        (s for s in library.children_named("visual_scene") if s.get_attribute("id") == primary),
        None,
    )
    visual_scene = _require(visual_scene, f"The scene named in <instance_visual_scene> ({primary!r}) does not exist")

    geometry_ids = []
    for node in visual_scene.children_named("node"):
        if node.get_attribute("type") == "JOINT":
            sink.warning(SOURCE, "unsupported node type JOINT, ignoring...")
            continue

        for element in node.children():
            if element.name in _TRANSFORMS:
                sink.warning(
                    SOURCE,
                    f"transformations on nodes are not supported yet "
                    f"(tried to use transformation type: {element.name})...",
                )
            elif element.name == "instance_geometry":
                url = element.get_attribute("url")
                if url is None:
                    sink.warning(SOURCE, "degenerate <instance_geometry> is missing a url tag")
                    continue
                geometry_ids.append(trim_hash(url))
            elif element.name in _IGNORED_INSTANCES:
                sink.warning(SOURCE, _IGNORED_INSTANCES[element.name])

    return geometry_ids


def _get_input(parent: Node, semantic: str) -> Optional[Node]:
    return next((i for i in parent.children_named("input") if i.get_attribute("semantic") == semantic), None)


def _get_input_source(parent: Node, input_node: Node, seen: Optional[set] = None) -> Optional[Node]:
    """Follow an input's source reference among the parent's children to a <source>."""
    reference = input_node.get_attribute("source")
    if reference is None:
        return None

    seen = seen or set()
    if reference in seen:
        return None
    seen.add(reference)

    for child in parent.children():
        child_id = child.get_attribute("id")
        if child_id is None or "#" + child_id != reference:
            continue
        if child.name == "source":
            return child
        nested = child.get_child("input")
        return _get_input_source(parent, nested, seen) if nested is not None else None

    return None


def read_morph_links(root: Node, sink: DiagnosticSink) -> Dict[str, List[str]]:
    """
    Map base geometry ids to their ordered morph target ids.

    Morph blocks that cannot be resolved are skipped.

    Args:
        root: <COLLADA> root node
        sink: Receives a warning for the unsupported RELATIVE method

    Returns:
        {base geometry id: [target geometry id, ...]}
    """
    controllers = root.get_child("library_controllers")
    if controllers is None:
        return {}

    links = {}
    for controller in controllers.children_named("controller"):
        morph = controller.get_child("morph")
        if morph is None:
            continue

        if morph.get_attribute("method") == "RELATIVE":
            sink.warning(SOURCE, "unsupported morph method RELATIVE, treating it as NORMALIZED...")

        base = morph.get_attribute("source")
        targets = morph.get_child("targets")
        if base is None or targets is None:
            continue

        target_input = _get_input(targets, "MORPH_TARGET")
        source = _get_input_source(morph, target_input) if target_input is not None else None
        array = source.get_child("IDREF_array") if source is not None else None
        if array is None:
            continue

        links[trim_hash(base)] = array.text.split()

    return links


# ============================================================================
# Emitter
# ============================================================================

_FORMAT_POS = '<param name="X" type="float"/><param name="Y" type="float"/><param name="Z" type="float"/>'
_FORMAT_TEX = '<param name="S" type="float"/><param name="T" type="float"/>'


def _header(timestamp: str) -> List[str]:
    return [
        '<?xml version="1.0" encoding="utf-8"?>',
        '<COLLADA xmlns="http://www.collada.org/2005/11/COLLADASchema" version="1.4.1">',
        '  <asset>',
        '    <contributor>',
        '      <author>cemconv user</author>',
        f'      <authoring_tool>cemconv {__version__} collada exporter</authoring_tool>',
        '    </contributor>',
        f'    <created>{timestamp}</created>',
        f'    <modified>{timestamp}</modified>',
        '    <unit name="meter" meter="1"/>',
        '    <up_axis>Y_UP</up_axis>',
        '  </asset>',
        '  <library_cameras/>',
        '  <library_lights/>',
        '  <library_images/>',
        '  <library_geometries>',
    ]


def _source(name: str, source: str, components: Sequence[Sequence[float]], stride: int, params: str) -> List[str]:
    values = [value for component in components for value in component]
    return [
        f'        <source id="{name}-{source}">',
        f'          <float_array id="{name}-{source}-array" count="{len(values)}">'
        + "".join(f"{value:.8f} " for value in values) + '</float_array>',
        f'          <technique_common><accessor source="#{name}-{source}-array" '
        f'count="{len(components)}" stride="{stride}">{params}</accessor></technique_common>',
        '        </source>',
    ]


def _geometry(name: str, attributes: AttributeSet, polygons: Sequence[int]) -> List[str]:
    lines = [
        f'    <geometry id="{name}-mesh" name="{name}">',
        '      <mesh>',
    ]
    lines += _source(name, "mesh-positions", attributes.positions, 3, _FORMAT_POS)
    lines += _source(name, "mesh-normals", attributes.normals, 3, _FORMAT_POS)
    lines += _source(name, "mesh-map", attributes.texcoords, 2, _FORMAT_TEX)
    lines += [
        f'        <vertices id="{name}-mesh-vertices">'
        f'<input semantic="POSITION" source="#{name}-mesh-positions"/></vertices>',
        f'        <triangles count="{len(polygons) // 3}">',
        f'          <input semantic="VERTEX" source="#{name}-mesh-vertices" offset="0"/>',
        f'          <input semantic="NORMAL" source="#{name}-mesh-normals" offset="1"/>',
        f'          <input semantic="TEXCOORD" source="#{name}-mesh-map" offset="2" set="0"/>',
        '          <p>' + "".join(f"{i} {i} {i} " for i in polygons) + '</p>',
        '        </triangles>',
        '      </mesh>',
        '    </geometry>',
    ]
    return lines


def _morph_controller(name: str, frame_count: int) -> List[str]:
    targets = frame_count - 1
    lines = [
        f'    <controller id="{name}-morph" name="{name}-morph">',
        f'      <morph source="#{name}_frame0-mesh" method="NORMALIZED">',
        f'        <source id="{name}-targets">',
        f'          <IDREF_array id="{name}-targets-array" count="{targets}">',
    ]
    lines += [f'            {name}_frame{i}-mesh' for i in range(1, frame_count)]
    lines += [
        '          </IDREF_array>',
        f'          <technique_common><accessor source="#{name}-targets-array" count="{targets}" stride="1">'
        '<param name="IDREF" type="IDREF"/></accessor></technique_common>',
        '        </source>',
        f'        <source id="{name}-weights">',
        f'          <float_array id="{name}-weights-array" count="{targets}">' + "0 " * targets + '</float_array>',
        f'          <technique_common><accessor source="#{name}-weights-array" count="{targets}" stride="1">'
        '<param name="MORPH_WEIGHT" type="float"/></accessor></technique_common>',
        '        </source>',
        '        <targets>',
        f'          <input semantic="MORPH_TARGET" source="#{name}-targets"/>',
        f'          <input semantic="MORPH_WEIGHT" source="#{name}-weights"/>',
        '        </targets>',
        '      </morph>',
        '    </controller>',
    ]
    return lines


def emit_collada(
    frames: Sequence[AttributeSet],
    polygons: Sequence[int],
    name: str = "scene_root",
    timestamp: str = DEFAULT_TIMESTAMP
) -> str:
    """
    Write frames as a COLLADA document.

    Each frame becomes an independent geometry. With more than one frame,
    a morph controller names frames 1..N-1 as targets of frame 0 with
    zero weights. One scene node instances frame 0.

    Args:
        frames: Attribute sets in authoring space, base frame first
        polygons: Flat triangle indices, three per triangle
        name: Base name for generated ids
        timestamp: Value for <created> and <modified>

    Returns:
        COLLADA document text
    """
    lines = _header(timestamp)

    for frame_index, attributes in enumerate(frames):
        lines += _geometry(f"{name}_frame{frame_index}", attributes, polygons)

    lines.append('  </library_geometries>')
    lines.append('  <library_controllers>')
    if len(frames) > 1:
        lines += _morph_controller(name, len(frames))
    lines.append('  </library_controllers>')

    base = f"{name}_frame0"
    lines += [
        '  <library_visual_scenes><visual_scene id="Scene" name="Scene">',
        f'<node id="{base}" name="{base}" type="NODE"><matrix sid="transform">'
        f'1 0 0 0 0 1 0 0 0 0 1 0 0 0 0 1</matrix><instance_geometry url="#{base}-mesh"/></node>',
        '  </visual_scene></library_visual_scenes>',
        '  <scene><instance_visual_scene url="#Scene"/></scene>',
        '</COLLADA>',
    ]

    return "\n".join(lines) + "\n"
