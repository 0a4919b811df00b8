import io
import struct

import pytest

from cemconv.core.exceptions import HeaderError, UnsupportedVersionError
from cemconv.core.model import V2_HEADER, TriangleSelection
from cemconv.formats import cem
from cemconv.formats.obj import parse_obj
from cemconv.pipeline.importers import obj_to_model

from conftest import QUAD_OBJ


@pytest.fixture
def model(sink):
    return obj_to_model(parse_obj(QUAD_OBJ), sink)


def test_round_trip_preserves_model(model):
    data = cem.encode(model)
    back = cem.read(io.BytesIO(data))

    assert back.lod_levels == model.lod_levels
    assert back.materials == model.materials
    assert back.tag_points == []
    assert len(back.frames) == 1
    assert back.center == pytest.approx(model.center, abs=1e-6)
    for a, b in zip(model.frames[0].vertices, back.frames[0].vertices):
        assert b.position == pytest.approx(a.position, abs=1e-6)
        assert b.normal == pytest.approx(a.normal, abs=1e-6)
        assert b.texture == pytest.approx(a.texture, abs=1e-6)
    assert back.frames[0].radius == pytest.approx(model.frames[0].radius, abs=1e-6)


def test_encoding_is_stable(model):
    data = cem.encode(model)

    assert cem.encode(cem.read(io.BytesIO(data))) == data


def test_header_is_read_separately(model):
    stream = io.BytesIO(cem.encode(model))

    header = cem.read_header(stream)
    body = cem.read_body(stream, header)

    assert header == V2_HEADER
    assert body.triangles == [(0, 1, 2), (0, 2, 3)]


def test_short_header_fails():
    with pytest.raises(HeaderError):
        cem.read_header(io.BytesIO(b"SSM"))


def test_wrong_magic_fails():
    with pytest.raises(HeaderError, match="Not a CEM file"):
        cem.read_header(io.BytesIO(b"OBJ!\x02\x00\x00\x00"))


def test_other_versions_are_not_read():
    stream = io.BytesIO(struct.pack("<4sHH", b"SSMF", 1, 3) + b"\x00" * 64)

    with pytest.raises(UnsupportedVersionError, match="v1.3"):
        cem.read(stream)


def test_truncated_body_fails(model):
    data = cem.encode(model)

    with pytest.raises(HeaderError, match="Unexpected end"):
        cem.read(io.BytesIO(data[:-5]))


def test_invalid_utf8_string_fails(model):
    model.materials[0].name = "ab"
    data = cem.encode(model).replace(b"\x02\x00\x00\x00ab", b"\x02\x00\x00\x00\xff\xfe", 1)

    with pytest.raises(HeaderError, match="Invalid UTF-8"):
        cem.read(io.BytesIO(data))


def test_selection_past_lod_level_fails(model):
    model.materials[0].triangles = [TriangleSelection(1, 5)]

    with pytest.raises(HeaderError, match="selects triangles 1..6"):
        cem.read(io.BytesIO(cem.encode(model)))
