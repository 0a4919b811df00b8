"""
Wavefront OBJ Reading and Writing
=================================

Single responsibility: Turn OBJ text into split-indexed objects and
flat attribute sets back into OBJ text.

The reader keeps one array set per `o` object, with face indices rebased
so that they are local to the object. Polygons with more than three
corners are split into a triangle fan around their first corner.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from cemconv.core.exceptions import ParseError
from cemconv.core.model import Geometry, Material, Shape, SplitIndex, SplitObject, Triangle, Vec2, Vec3
from cemconv.utils.logging import get_logger

logger = get_logger(__name__)

_IGNORED = {"s", "mtllib", "vp", "cstype", "deg", "curv", "curv2", "surf", "bmat", "step"}


@dataclass
class ObjSet:
    objects: List[SplitObject] = field(default_factory=list)


class _ObjParser:
    """
    Line-by-line OBJ reader.

    Position, texture and normal counts are tracked over the whole file so
    that negative (relative) indices resolve correctly; each object remembers
    where its arrays start.
    """

    def __init__(self):
        self.result = ObjSet()
        self.totals = [0, 0, 0]  # positions, textures, normals
        self.line_number = 0
        self.current: Optional[SplitObject] = None
        self.offsets = (0, 0, 0)
        self.material: Optional[str] = None

    def error(self, message: str) -> ParseError:
        return ParseError(self.line_number, message)

    def floats(self, args: Sequence[str], minimum: int, maximum: int) -> List[float]:
        if not minimum <= len(args) <= maximum:
            raise self.error(f"expected {minimum} to {maximum} numbers, found {len(args)}")
        try:
            return [float(a) for a in args]
        except ValueError as e:
            raise self.error(f"invalid number ({e})") from e

    def object(self) -> SplitObject:
        if self.current is None:
            self.begin_object("")
        return self.current

    def begin_object(self, name: str) -> None:
        obj = self.current
        if obj is not None and not (obj.vertices or obj.tex_vertices or obj.normals or obj.geometry):
            obj.id = name
            return

        self.current = SplitObject(id=name)
        self.offsets = tuple(self.totals)
        self.result.objects.append(self.current)

    def geometry(self) -> Geometry:
        obj = self.object()
        if not obj.geometry:
            obj.geometry.append(Geometry(material=self.material))
        return obj.geometry[-1]

    def begin_geometry(self) -> None:
        obj = self.object()
        if obj.geometry and not obj.geometry[-1].shapes:
            obj.geometry[-1].material = self.material
        else:
            obj.geometry.append(Geometry(material=self.material))

    def resolve(self, token: str, slot: int, required: bool) -> Optional[int]:
        if token == "":
            if required:
                raise self.error("missing position index")
            return None

        try:
            value = int(token)
        except ValueError as e:
            raise self.error(f"invalid index {token!r}") from e

        total = self.totals[slot]
        if value > 0:
            absolute = value - 1
        elif value < 0:
            absolute = total + value
        else:
            raise self.error("index 0 is not valid, OBJ indices start at 1")

        if not 0 <= absolute < total:
            raise self.error(f"index {value} is out of range ({total} declared)")

        local = absolute - self.offsets[slot]
        if local < 0:
            raise self.error(f"index {value} refers to data outside the current object")

        return local

    def corner(self, token: str) -> SplitIndex:
        parts = token.split("/")
        if len(parts) > 3:
            raise self.error(f"malformed vertex reference {token!r}")

        parts += [""] * (3 - len(parts))
        return SplitIndex(
            self.resolve(parts[0], 0, required=True),
            self.resolve(parts[1], 1, required=False),
            self.resolve(parts[2], 2, required=False),
        )

    def parse_line(self, line: str) -> None:
        line = line.split("#", 1)[0].strip()
        if not line:
            return

        keyword, *args = line.split()

        if keyword == "v":
            x, y, z = self.floats(args, 3, 4)[:3]
            self.object().vertices.append((x, y, z))
            self.totals[0] += 1
        elif keyword == "vt":
            coords = self.floats(args, 1, 3) + [0.0]
            self.object().tex_vertices.append((coords[0], coords[1]))
            self.totals[1] += 1
        elif keyword == "vn":
            self.object().normals.append(tuple(self.floats(args, 3, 3)))
            self.totals[2] += 1
        elif keyword == "f":
            if len(args) < 3:
                raise self.error(f"a face needs at least 3 vertices, found {len(args)}")
            corners = [self.corner(a) for a in args]
            shapes = self.geometry().shapes
            for i in range(1, len(corners) - 1):
                shapes.append(Shape.triangle(corners[0], corners[i], corners[i + 1]))
        elif keyword == "l":
            if len(args) < 2:
                raise self.error(f"a line needs at least 2 vertices, found {len(args)}")
            corners = [self.corner(a) for a in args]
            shapes = self.geometry().shapes
            for a, b in zip(corners, corners[1:]):
                shapes.append(Shape.line(a, b))
        elif keyword == "p":
            if not args:
                raise self.error("a point element needs at least 1 vertex")
            shapes = self.geometry().shapes
            for a in args:
                shapes.append(Shape.point(self.corner(a)))
        elif keyword == "o":
            self.begin_object(" ".join(args))
        elif keyword == "g":
            self.begin_geometry()
        elif keyword == "usemtl":
            self.material = " ".join(args) or None
            self.begin_geometry()
        elif keyword in _IGNORED:
            pass
        else:
            logger.debug(f"Ignoring unsupported OBJ statement {keyword!r} on line {self.line_number}")

    def parse(self, text: str) -> ObjSet:
        for number, line in enumerate(text.splitlines(), start=1):
            self.line_number = number
            self.parse_line(line)
        return self.result


def parse_obj(text: str) -> ObjSet:
    """
    Parse OBJ text into split-indexed objects.

    Args:
        text: Complete OBJ document

    Returns:
        ObjSet with objects in declaration order

    Raises:
        ParseError: On malformed syntax, with the offending line number
    """
    return _ObjParser().parse(text)


def format_float(value: float) -> str:
    """Shortest decimal that reads back as the same 32-bit float."""
    return str(np.float32(value))


def emit_obj(
    positions: Sequence[Vec3],
    normals: Sequence[Vec3],
    texcoords: Sequence[Vec2],
    materials: Sequence[Material],
    triangles: Sequence[Triangle]
) -> str:
    """
    Write one frame's attribute set as OBJ text.

    Every face corner references the same index for position, texture and
    normal, since the flat model shares one index across attributes.

    Args:
        positions: Positions in authoring space
        normals: Normals in authoring space
        texcoords: Texture coordinates
        materials: Materials whose first triangle selection picks the faces
        triangles: Triangle buffer the selections index into

    Returns:
        OBJ document text
    """
    lines = []

    for position, normal, texture in zip(positions, normals, texcoords):
        lines.append("v " + " ".join(format_float(c) for c in position))
        lines.append("vn " + " ".join(format_float(c) for c in normal))
        lines.append("vt " + " ".join(format_float(c) for c in texture))

    for material in materials:
        selection = material.triangles[0]

        lines.append(
            f"# name: {material.name}, texture: {material.texture}, "
            f"texture_name: {material.texture_name}"
        )

        for index in range(selection.offset, selection.offset + selection.length):
            a, b, c = (material.vertex_offset + i + 1 for i in triangles[index])
            lines.append(f"f {a}/{a}/{a} {b}/{b}/{b} {c}/{c}/{c}")

    return "\n".join(lines) + "\n"
