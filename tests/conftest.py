import copy

import pytest

from cemconv.core.model import Geometry, Shape, SplitIndex, SplitObject
from cemconv.utils.diagnostics import DiagnosticSink

QUAD_OBJ = """\
# unit quad in the XY plane
o quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
f 1/1/1 2/2/1 3/3/1
f 1/1/1 3/3/1 4/4/1
"""


def quad_object(name="quad", lift=0.0):
    """Two triangles sharing an edge: 4 distinct corners, 6 references."""
    corners = [SplitIndex(i, i, 0) for i in range(4)]
    return SplitObject(
        id=name,
        vertices=[(0.0, 0.0, lift), (1.0, 0.0, lift), (1.0, 1.0, lift), (0.0, 1.0, lift)],
        tex_vertices=[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)],
        normals=[(0.0, 0.0, 1.0)],
        geometry=[Geometry(shapes=[
            Shape.triangle(corners[0], corners[1], corners[2]),
            Shape.triangle(corners[0], corners[2], corners[3]),
        ])],
    )


@pytest.fixture
def quad():
    return quad_object()


@pytest.fixture
def lifted_quad():
    return quad_object("quad_lifted", lift=0.5)


@pytest.fixture
def rewired_quad():
    """Same arrays as the quad, but the second face references different corners."""
    obj = copy.deepcopy(quad_object("quad_rewired"))
    c = [SplitIndex(i, i, 0) for i in range(4)]
    obj.geometry[0].shapes[1] = Shape.triangle(c[0], c[3], c[2])
    return obj


@pytest.fixture
def sink():
    return DiagnosticSink(logger=None)


QUAD_P = "0 0 0 1 0 1 2 0 2 0 0 0 2 0 2 3 0 3"


def collada_geometry(name, lift=0.0, p=QUAD_P):
    positions = f"0 0 {lift} 1 0 {lift} 1 1 {lift} 0 1 {lift}"
    return f"""
    <geometry id="{name}" name="{name}">
      <mesh>
        <source id="{name}-positions">
          <float_array id="{name}-positions-array" count="12">{positions}</float_array>
          <technique_common><accessor source="#{name}-positions-array" count="4" stride="3"/></technique_common>
        </source>
        <source id="{name}-normals">
          <float_array id="{name}-normals-array" count="3">0 0 1</float_array>
          <technique_common><accessor source="#{name}-normals-array" count="1" stride="3"/></technique_common>
        </source>
        <source id="{name}-map">
          <float_array id="{name}-map-array" count="8">0 0 1 0 1 1 0 1</float_array>
          <technique_common><accessor source="#{name}-map-array" count="4" stride="2"/></technique_common>
        </source>
        <vertices id="{name}-vertices"><input semantic="POSITION" source="#{name}-positions"/></vertices>
        <triangles count="2">
          <input semantic="VERTEX" source="#{name}-vertices" offset="0"/>
          <input semantic="NORMAL" source="#{name}-normals" offset="1"/>
          <input semantic="TEXCOORD" source="#{name}-map" offset="2" set="0"/>
          <p>{p}</p>
        </triangles>
      </mesh>
    </geometry>"""


def collada_morph(base, targets, method="NORMALIZED"):
    return f"""
    <controller id="{base}-morph">
      <morph source="#{base}" method="{method}">
        <source id="{base}-targets">
          <IDREF_array id="{base}-targets-array" count="{len(targets)}">{" ".join(targets)}</IDREF_array>
        </source>
        <source id="{base}-weights">
          <float_array id="{base}-weights-array" count="{len(targets)}">{"0 " * len(targets)}</float_array>
        </source>
        <targets>
          <input semantic="MORPH_TARGET" source="#{base}-targets"/>
          <input semantic="MORPH_WEIGHT" source="#{base}-weights"/>
        </targets>
      </morph>
    </controller>"""


def collada_document(geometries="", controllers="", nodes="", scene_url="#Scene"):
    return f"""<?xml version="1.0" encoding="utf-8"?>
<COLLADA xmlns="http://www.collada.org/2005/11/COLLADASchema" version="1.4.1">
  <library_geometries>{geometries}
  </library_geometries>
  <library_controllers>{controllers}
  </library_controllers>
  <library_visual_scenes>
    <visual_scene id="Scene" name="Scene">{nodes}
    </visual_scene>
  </library_visual_scenes>
  <scene><instance_visual_scene url="{scene_url}"/></scene>
</COLLADA>
""".encode("utf-8")


def geometry_node(name, node_id=None, extra=""):
    node_id = node_id or f"{name}-node"
    return f'\n      <node id="{node_id}" type="NODE">{extra}<instance_geometry url="#{name}"/></node>'
