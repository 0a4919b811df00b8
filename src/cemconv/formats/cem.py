"""
CEM Model Codec
===============

Single responsibility: Read and write the binary runtime model.

Layout (all little endian):

    header     magic "SSMF", u16 major, u16 minor
    counts     u32 vertices, u32 tag points, u32 materials, u32 frames, u32 LODs
    center     3 x f32
    LODs       per level: u32 triangle count, then 3 x u32 per triangle
    materials  str name, u32 texture, (u32 offset, u32 length) per LOD,
               u32 vertex offset, u32 vertex count, str texture name
    tag names  str per tag point
    frames     f32 radius, 8 x f32 per vertex (position, normal, texture),
               3 x f32 per tag point, 3 x f32 bounds min, 3 x f32 bounds max

Strings are a u32 byte length followed by UTF-8 bytes.
"""

import struct
from typing import BinaryIO, List

import numpy as np

from cemconv.core.exceptions import HeaderError, UnsupportedVersionError
from cemconv.core.model import (
    CEM_MAGIC,
    V2_HEADER,
    FlatModel,
    FlatVertex,
    Frame,
    Material,
    ModelHeader,
    TriangleSelection,
)
from cemconv.utils.logging import get_logger

logger = get_logger(__name__)

_HEADER = struct.Struct("<4sHH")
_COUNTS = struct.Struct("<5I")
_U32 = struct.Struct("<I")
_F32 = struct.Struct("<f")
_VEC3 = struct.Struct("<3f")
_SELECTION = struct.Struct("<2I")

_VERTEX_FLOATS = 8


class _Reader:
    """Exact-size reads over a binary stream."""

    def __init__(self, stream: BinaryIO):
        self.stream = stream
        self.offset = 0

    def read(self, n: int) -> bytes:
        data = self.stream.read(n)
        if len(data) != n:
            raise HeaderError(f"Unexpected end of CEM data at offset {self.offset}, need {n} bytes")
        self.offset += n
        return data

    def unpack(self, fmt: struct.Struct) -> tuple:
        return fmt.unpack(self.read(fmt.size))

    def u32(self) -> int:
        return self.unpack(_U32)[0]

    def f32(self) -> float:
        return self.unpack(_F32)[0]

    def vec3(self) -> tuple:
        return self.unpack(_VEC3)

    def floats(self, count: int) -> np.ndarray:
        return np.frombuffer(self.read(count * 4), dtype="<f4")

    def string(self) -> str:
        start = self.offset
        data = self.read(self.u32())
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise HeaderError(f"Invalid UTF-8 string at offset {start} of CEM data ({e.reason})") from e


def read_header(stream: BinaryIO) -> ModelHeader:
    """
    Read and check the model header.

    Args:
        stream: Binary stream positioned at the start of a model

    Returns:
        Parsed header

    Raises:
        HeaderError: If the stream ends before a full header or the magic is wrong
    """
    data = stream.read(_HEADER.size)
    if len(data) != _HEADER.size:
        raise HeaderError("Unexpected end of stream while reading the CEM header")

    magic, major, minor = _HEADER.unpack(data)
    if magic != CEM_MAGIC:
        raise HeaderError(f"Not a CEM file (magic {magic!r}, expected {CEM_MAGIC!r})")

    return ModelHeader(magic, major, minor)


def read_body(stream: BinaryIO, header: ModelHeader = V2_HEADER) -> FlatModel:
    """
    Read a model body that follows an already-read header.

    Args:
        stream: Binary stream positioned right after the header
        header: Header returned by read_header()

    Returns:
        Decoded model

    Raises:
        UnsupportedVersionError: If the header is not CEM v2
        HeaderError: If the body is truncated, holds invalid UTF-8 or selects
            triangles past the end of a LOD level
    """
    if header != V2_HEADER:
        raise UnsupportedVersionError(header.version)

    r = _Reader(stream)
    vertex_count, tag_count, material_count, frame_count, lod_count = r.unpack(_COUNTS)
    center = r.vec3()

    lod_levels = []
    for _ in range(lod_count):
        count = r.u32()
        indices = np.frombuffer(r.read(count * 12), dtype="<u4").reshape(-1, 3)
        lod_levels.append([tuple(t) for t in indices.tolist()])

    materials = []
    for _ in range(material_count):
        name = r.string()
        texture = r.u32()
        selections = [TriangleSelection(*r.unpack(_SELECTION)) for _ in range(lod_count)]
        for triangles, selection in zip(lod_levels, selections):
            if selection.offset + selection.length > len(triangles):
                raise HeaderError(
                    f"Material {name!r} selects triangles {selection.offset}..{selection.offset + selection.length} "
                    f"of a LOD level with {len(triangles)}"
                )
        vertex_offset = r.u32()
        material_vertices = r.u32()
        texture_name = r.string()
        materials.append(Material(
            name=name,
            texture=texture,
            triangles=selections,
            vertex_offset=vertex_offset,
            vertex_count=material_vertices,
            texture_name=texture_name,
        ))

    tag_points = [r.string() for _ in range(tag_count)]

    frames = []
    for _ in range(frame_count):
        radius = r.f32()
        data = r.floats(vertex_count * _VERTEX_FLOATS).reshape(-1, _VERTEX_FLOATS).tolist()
        vertices = [
            FlatVertex(position=tuple(row[0:3]), normal=tuple(row[3:6]), texture=tuple(row[6:8]))
            for row in data
        ]
        frame_tags = [r.vec3() for _ in range(tag_count)]
        bounds = (r.vec3(), r.vec3())
        frames.append(Frame(vertices=vertices, tag_points=frame_tags, radius=radius, bounds=bounds))

    logger.debug(
        f"Read CEM v2: {vertex_count} vertices, {len(frames)} frames, "
        f"{len(lod_levels)} LOD levels, {len(materials)} materials"
    )

    return FlatModel(
        center=center,
        materials=materials,
        lod_levels=lod_levels,
        tag_points=tag_points,
        frames=frames,
    )


def read(stream: BinaryIO) -> FlatModel:
    return read_body(stream, read_header(stream))


def _pack_string(value: str) -> bytes:
    data = value.encode("utf-8")
    return _U32.pack(len(data)) + data


def _pack_floats(values) -> bytes:
    return np.asarray(values, dtype="<f4").tobytes()


def encode(model: FlatModel) -> bytes:
    """
    Encode a model, header included.

    Args:
        model: Model to encode; every frame must have the same vertex count

    Returns:
        Encoded bytes
    """
    vertex_count = model.vertex_count
    lod_count = len(model.lod_levels)
    parts: List[bytes] = [
        _HEADER.pack(V2_HEADER.magic, V2_HEADER.major, V2_HEADER.minor),
        _COUNTS.pack(vertex_count, len(model.tag_points), len(model.materials), len(model.frames), lod_count),
        _VEC3.pack(*model.center),
    ]

    for triangles in model.lod_levels:
        parts.append(_U32.pack(len(triangles)))
        parts.append(np.asarray(triangles, dtype="<u4").reshape(-1, 3).tobytes())

    for material in model.materials:
        if len(material.triangles) != lod_count:
            raise ValueError(
                f"Material {material.name!r} has {len(material.triangles)} triangle "
                f"selections but the model has {lod_count} LOD levels"
            )
        parts.append(_pack_string(material.name))
        parts.append(_U32.pack(material.texture))
        for selection in material.triangles:
            parts.append(_SELECTION.pack(selection.offset, selection.length))
        parts.append(_U32.pack(material.vertex_offset))
        parts.append(_U32.pack(material.vertex_count))
        parts.append(_pack_string(material.texture_name))

    for name in model.tag_points:
        parts.append(_pack_string(name))

    for frame in model.frames:
        if len(frame.vertices) != vertex_count:
            raise ValueError(
                f"Frame has {len(frame.vertices)} vertices, expected {vertex_count}"
            )
        parts.append(_F32.pack(frame.radius))
        parts.append(_pack_floats([v.position + v.normal + v.texture for v in frame.vertices]))
        parts.append(_pack_floats(frame.tag_points))
        parts.append(_VEC3.pack(*frame.bounds[0]))
        parts.append(_VEC3.pack(*frame.bounds[1]))

    return b"".join(parts)


def write(model: FlatModel, stream: BinaryIO) -> None:
    stream.write(encode(model))
