import io

import pytest

from rendertools.mtl import MaterialStreamReader
from rendertools.obj import (
    Index,
    fix_index,
    load_obj,
    load_obj_file,
    parse_triple,
)

QUAD = "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1 2 3 4\n"


def test_fix_index_positive_zero_and_relative():
    assert fix_index(1, 5) == 0
    assert fix_index(0, 5) == 0
    assert fix_index(-1, 5) == 4


@pytest.mark.parametrize(
    "token, expected",
    [
        ("1/2/3", Index(vertex_index=0, normal_index=2, texcoord_index=1)),
        ("1//3", Index(vertex_index=0, normal_index=2, texcoord_index=-1)),
        ("1/2", Index(vertex_index=0, normal_index=-1, texcoord_index=1)),
        ("4", Index(vertex_index=3, normal_index=-1, texcoord_index=-1)),
        ("-1/-1/-1", Index(vertex_index=2, normal_index=2, texcoord_index=2)),
    ],
)
def test_parse_triple_forms(token, expected):
    assert parse_triple(token, 3, 3, 3) == expected


def test_quad_is_triangulated_as_fan():
    data = load_obj(QUAD)
    assert len(data.attrib.vertices) == 12
    mesh = data.shapes[0].mesh
    assert [i.vertex_index for i in mesh.indices] == [0, 1, 2, 0, 2, 3]
    assert mesh.num_face_vertices == [3, 3]
    assert mesh.material_ids == [-1, -1]


def test_quad_kept_without_triangulation():
    mesh = load_obj(QUAD, triangulate=False).shapes[0].mesh
    assert mesh.num_face_vertices == [4]
    assert [i.vertex_index for i in mesh.indices] == [0, 1, 2, 3]


def test_crlf_and_comments_give_same_result():
    plain = load_obj(QUAD)
    crlf = load_obj("# comment\r\n\r\n" + QUAD.replace("\n", "\r\n"))
    assert crlf.attrib == plain.attrib
    assert crlf.shapes == plain.shapes


def test_normals_and_texcoords_collected():
    text = "v 1 2 3\nvn 0 0 1\nvt 0.5 0.25\nf 1/1/1 1/1/1 1/1/1\n"
    data = load_obj(io.StringIO(text))
    assert data.attrib.vertices == [1.0, 2.0, 3.0]
    assert data.attrib.normals == [0.0, 0.0, 1.0]
    assert data.attrib.texcoords == [0.5, 0.25]
    corner = data.shapes[0].mesh.indices[0]
    assert corner == Index(vertex_index=0, normal_index=0, texcoord_index=0)


def test_groups_make_separate_shapes():
    text = QUAD + "g first\nf 1 2 3\ng second\nf 2 3 4\n"
    data = load_obj(text)
    assert [s.name for s in data.shapes] == ["", "first", "second"]
    assert all(len(s.mesh.indices) % 3 == 0 for s in data.shapes)


def test_object_name():
    data = load_obj(QUAD.replace("f ", "o thing\nf "))
    assert [s.name for s in data.shapes] == ["thing"]


def test_relative_indices():
    data = load_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n")
    assert [i.vertex_index for i in data.shapes[0].mesh.indices] == [0, 1, 2]


def test_usemtl_with_stream_reader():
    reader = MaterialStreamReader(io.StringIO("newmtl red\nKd 1 0 0\n"))
    text = "mtllib x.mtl\n" + QUAD.replace("f ", "usemtl red\nf ")
    data = load_obj(text, reader)
    assert data.materials[0].name == "red"
    assert data.materials[0].diffuse == (1.0, 0.0, 0.0)
    assert data.shapes[0].mesh.material_ids == [0, 0]


def test_faces_kept_when_usemtl_is_last_line():
    reader = MaterialStreamReader(io.StringIO("newmtl red\n"))
    text = "mtllib a.mtl\nv 0 0 0\nusemtl red\nf 1 1 1\nusemtl missing\n"
    data = load_obj(text, reader)
    assert len(data.shapes) == 1
    assert data.shapes[0].mesh.material_ids == [0]


def test_missing_material_file_warns(tmp_path):
    obj = tmp_path / "m.obj"
    obj.write_text("mtllib nothere.mtl\n" + QUAD)
    data = load_obj_file(obj, str(tmp_path) + "/")
    assert "not found" in data.warnings
    assert "Failed to load material file(s)" in data.warnings
    assert len(data.shapes) == 1


def test_empty_mtllib_warns(tmp_path):
    obj = tmp_path / "m.obj"
    obj.write_text("mtllib \n" + QUAD)
    data = load_obj_file(obj, str(tmp_path) + "/")
    assert "empty filename for mtllib" in data.warnings


def test_load_obj_file_with_material(tmp_path):
    (tmp_path / "lib.mtl").write_text("newmtl blue\nKd 0 0 1\n")
    obj = tmp_path / "m.obj"
    obj.write_text("mtllib lib.mtl\nusemtl blue\n" + QUAD)
    data = load_obj_file(obj, str(tmp_path) + "/")
    assert [m.name for m in data.materials] == ["blue"]
    assert data.shapes[0].mesh.material_ids == [0, 0]
    assert data.warnings == ""


def test_load_obj_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        load_obj_file(tmp_path / "absent.obj")


def test_tags_parsed_and_attached():
    data = load_obj(QUAD + "t crease 2/1/0 1 2 3.5\nt label 0/0/1 hello\n")
    tags = data.shapes[0].mesh.tags
    assert [t.name for t in tags] == ["crease", "label"]
    assert tags[0].int_values == [1, 2]
    assert tags[0].float_values == [3.5]
    assert tags[1].string_values == ["hello"]


def test_no_faces_no_shapes():
    data = load_obj("v 1 2 3\n")
    assert data.shapes == []
    assert data.attrib.vertices == [1.0, 2.0, 3.0]