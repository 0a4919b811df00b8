import pytest

from cemconv.core.exceptions import DocumentError, NoRootGeometryError, ParseError, TopologyMismatchError
from cemconv.formats.collada import find_root_geometry, parse_document, read_geometries, read_morph_links
from cemconv.pipeline.importers import collada_to_model

from conftest import collada_document, collada_geometry, collada_morph, geometry_node


def _morph_document(method="NORMALIZED", target_p=None):
    target = collada_geometry("frame1", lift=0.5) if target_p is None else collada_geometry("frame1", p=target_p)
    return collada_document(
        geometries=collada_geometry("base") + target + collada_geometry("frame2", lift=1.0),
        controllers=collada_morph("base", ["frame1", "frame2"], method=method),
        nodes=geometry_node("base"),
    )


def test_node_interface_strips_namespaces():
    root = parse_document(collada_document(geometries=collada_geometry("base"), nodes=geometry_node("base")))

    assert root.name == "COLLADA"
    assert root.get_child("scene").get_child("instance_visual_scene").get_attribute("url") == "#Scene"
    assert root.get_child("missing") is None
    assert root.get_attribute("version") == "1.4.1"


def test_read_geometries_builds_split_objects():
    root = parse_document(collada_document(geometries=collada_geometry("base"), nodes=geometry_node("base")))

    base = read_geometries(root)["base"]

    assert len(base.vertices) == 4
    assert base.normals == [(0.0, 0.0, 1.0)]
    assert base.tex_vertices[2] == (1.0, 1.0)
    shapes = list(base.iter_shapes())
    assert len(shapes) == 2
    assert shapes[0].corners[1] == (1, 1, 0)


def test_morph_links_are_ordered(sink):
    root = parse_document(_morph_document())

    assert read_morph_links(root, sink) == {"base": ["frame1", "frame2"]}
    assert sink.warnings == []


def test_morph_targets_become_frames(sink):
    model = collada_to_model(parse_document(_morph_document()), sink)

    assert len(model.frames) == 3
    assert model.vertex_count == 4
    assert model.triangles == [(0, 1, 2), (0, 2, 3)]
    # authoring +Z becomes runtime -Y
    assert model.frames[1].vertices[0].position == pytest.approx((0.0, -0.5, 0.0), abs=1e-12)
    assert model.frames[2].vertices[0].position == pytest.approx((0.0, -1.0, 0.0), abs=1e-12)


def test_center_comes_from_base_frame(sink):
    model = collada_to_model(parse_document(_morph_document()), sink)

    assert model.center == pytest.approx((0.5, 0.0, 0.5), abs=1e-12)


def test_texture_v_is_flipped(sink):
    model = collada_to_model(parse_document(_morph_document()), sink)

    # source texcoords (0, 0), (1, 0), (1, 1), (0, 1)
    assert [v.texture for v in model.frames[0].vertices] == [(0.0, 1.0), (1.0, 1.0), (1.0, 0.0), (0.0, 0.0)]


def test_relative_morph_method_is_downgraded_with_warning(sink):
    model = collada_to_model(parse_document(_morph_document(method="RELATIVE")), sink)

    assert len(model.frames) == 3
    assert sink.warnings == ["warning[collada]: unsupported morph method RELATIVE, treating it as NORMALIZED..."]


def test_mismatched_morph_target_reports_its_position(sink):
    rewired = "0 0 0 1 0 1 2 0 2 0 0 0 3 0 3 2 0 2"
    document = collada_document(
        geometries=collada_geometry("base") + collada_geometry("frame1", lift=0.5) + collada_geometry("frame2", p=rewired),
        controllers=collada_morph("base", ["frame1", "frame2"]),
        nodes=geometry_node("base"),
    )

    with pytest.raises(TopologyMismatchError) as excinfo:
        collada_to_model(parse_document(document), sink)

    assert excinfo.value.frame_index == 1


def test_unsupported_node_content_is_skipped_with_warnings(sink):
    extras = (
        '<translate>0 0 1</translate>'
        '<instance_camera url="#cam"/>'
        '<instance_light url="#sun"/>'
        '<instance_controller url="#skin"/>'
        '<instance_node url="#other"/>'
        '<node id="child"/>'
    )
    nodes = geometry_node("base", extra=extras) + '\n      <node id="hip" type="JOINT"><instance_geometry url="#base"/></node>'
    root = parse_document(collada_document(geometries=collada_geometry("base"), nodes=nodes))

    assert find_root_geometry(root, sink) == ["base"]
    assert len(sink.warnings) == 7
    assert "transformation type: translate" in sink.warnings[0]
    assert sink.warnings[-1] == "warning[collada]: unsupported node type JOINT, ignoring..."


def test_extra_root_geometry_warns_and_uses_first(sink):
    document = collada_document(
        geometries=collada_geometry("base") + collada_geometry("other", lift=2.0),
        nodes=geometry_node("base") + geometry_node("other"),
    )

    model = collada_to_model(parse_document(document), sink)

    assert len(model.frames) == 1
    assert model.frames[0].vertices[0].position == pytest.approx((0.0, 0.0, 0.0), abs=1e-12)
    assert any("additional root geometry" in w for w in sink.warnings)


def test_instance_geometry_without_url_warns(sink):
    nodes = '\n      <node id="n"><instance_geometry/></node>'
    root = parse_document(collada_document(geometries=collada_geometry("base"), nodes=nodes))

    with pytest.raises(NoRootGeometryError):
        collada_to_model(root, sink)

    assert sink.warnings == ["warning[collada]: degenerate <instance_geometry> is missing a url tag"]


def test_missing_visual_scene_is_fatal(sink):
    root = parse_document(collada_document(geometries=collada_geometry("base"), scene_url="#Nowhere"))

    with pytest.raises(DocumentError, match="does not exist"):
        collada_to_model(root, sink)


def test_missing_morph_target_geometry_is_fatal(sink):
    document = collada_document(
        geometries=collada_geometry("base"),
        controllers=collada_morph("base", ["ghost"]),
        nodes=geometry_node("base"),
    )

    with pytest.raises(DocumentError, match="ghost"):
        collada_to_model(parse_document(document), sink)


def test_malformed_xml_reports_line():
    with pytest.raises(ParseError) as excinfo:
        parse_document(b"<COLLADA>\n  <scene>\n</COLLADA>")

    assert excinfo.value.line_number == 3
    assert excinfo.value.format_name == "COLLADA"


@pytest.mark.parametrize("p, fragment", [
    ("0 0 9 1 0 1 2 0 2 0 0 0 2 0 2 3 0 3", "texture index 9"),
    ("0 3 0 1 0 1 2 0 2 0 0 0 2 0 2 3 0 3", "normal index 3"),
    ("7 0 0 1 0 1 2 0 2 0 0 0 2 0 2 3 0 3", "position index 7"),
])
def test_index_past_source_end_is_fatal(p, fragment):
    root = parse_document(collada_document(geometries=collada_geometry("base", p=p), nodes=geometry_node("base")))

    with pytest.raises(DocumentError, match=fragment):
        read_geometries(root)
