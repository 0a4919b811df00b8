import io

from click.testing import CliRunner

from cemconv.cli.main import cli
from cemconv.formats import cem

from conftest import QUAD_OBJ, collada_document, collada_geometry, geometry_node

LIT_SCENE = collada_document(
    geometries=collada_geometry("base"),
    nodes=geometry_node("base", extra='<instance_light url="#sun"/>'),
)


def test_obj_to_cem_file(tmp_path):
    source = tmp_path / "quad.obj"
    source.write_text(QUAD_OBJ)
    target = tmp_path / "quad.cem"

    result = CliRunner().invoke(cli, ["-g", "obj", "-f", "cem", "-i", str(source), str(target)])

    assert result.exit_code == 0, result.output
    assert cem.read(io.BytesIO(target.read_bytes())).vertex_count == 4


def test_cem_to_obj_frame(tmp_path):
    source = tmp_path / "quad.obj"
    source.write_text(QUAD_OBJ)
    model = tmp_path / "quad.cem"
    target = tmp_path / "back.obj"
    runner = CliRunner()

    runner.invoke(cli, ["-g", "obj", "-f", "cem", "-i", str(source), str(model)])
    result = runner.invoke(cli, ["-f", "obj", "-n", "0", "-i", str(model), str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_text().count("\nf ") == 2


def test_unknown_output_format_is_usage_error():
    result = CliRunner().invoke(cli, ["-f", "fbx"])

    assert result.exit_code == 2
    assert "Unrecognized format 'fbx'" in result.output


def test_output_format_is_required():
    result = CliRunner().invoke(cli, [])

    assert result.exit_code == 2


def test_missing_input_reports_one_error_line(tmp_path):
    result = CliRunner().invoke(cli, ["-f", "obj", "-i", str(tmp_path / "nope.cem")])

    assert result.exit_code == 1
    assert "error: conversion failed: failed to open the input file at" in result.output


def test_frame_out_of_range(tmp_path):
    source = tmp_path / "quad.obj"
    source.write_text(QUAD_OBJ)
    model = tmp_path / "quad.cem"
    runner = CliRunner()
    runner.invoke(cli, ["-g", "obj", "-f", "cem", "-i", str(source), str(model)])

    result = runner.invoke(cli, ["-f", "obj", "-n", "3", "-i", str(model)])

    assert result.exit_code == 1
    assert "frame index 3" in result.output


def test_warnings_are_printed_by_default(tmp_path):
    source = tmp_path / "lit.dae"
    source.write_bytes(LIT_SCENE)

    result = CliRunner().invoke(cli, ["-g", "dae", "-f", "cem", "-i", str(source), str(tmp_path / "lit.cem")])

    assert result.exit_code == 0, result.output
    assert "warning[collada]: Lights are unsupported" in result.output


def test_quiet_suppresses_warnings(tmp_path):
    source = tmp_path / "lit.dae"
    source.write_bytes(LIT_SCENE)
    target = tmp_path / "lit.cem"

    result = CliRunner().invoke(cli, ["-q", "-g", "dae", "-f", "cem", "-i", str(source), str(target)])

    assert result.exit_code == 0
    assert result.output == ""
    assert target.exists()


def test_log_file_receives_debug_records(tmp_path):
    source = tmp_path / "lit.dae"
    source.write_bytes(LIT_SCENE)
    log_file = tmp_path / "logs" / "convert.log"

    result = CliRunner().invoke(cli, [
        "-q", "--log-file", str(log_file),
        "-g", "dae", "-f", "cem", "-i", str(source), str(tmp_path / "lit.cem"),
    ])

    assert result.exit_code == 0, result.output
    assert result.output == ""
    text = log_file.read_text()
    assert "Converting collada -> cem2.0" in text
    assert "2 triangles with 4 flattened vertices" in text
    assert "WARNING - warning[collada]: Lights are unsupported" in text


def test_bad_collada_index_reports_one_error_line(tmp_path):
    source = tmp_path / "broken.dae"
    source.write_bytes(collada_document(
        geometries=collada_geometry("base", p="0 0 9 1 0 1 2 0 2 0 0 0 2 0 2 3 0 3"),
        nodes=geometry_node("base"),
    ))

    result = CliRunner().invoke(cli, ["-g", "dae", "-f", "cem", "-i", str(source)])

    assert result.exit_code == 1
    assert "error: conversion failed: geometry 'base' uses texture index 9" in result.output
    assert isinstance(result.exception, SystemExit)
