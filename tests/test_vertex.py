import struct

import pytest

from rendertools.vertex import (
    FORMAT_R32G32_SFLOAT,
    FORMAT_R32G32B32_SFLOAT,
    VERTEX_INPUT_RATE_VERTEX,
    Material,
    Vertex,
)


def _sample_vertex():
    return Vertex(
        pos=(1.0, 2.0, 3.0),
        color=(0.5, 0.25, 1.0),
        tex_coord=(0.125, 0.75),
        normal=(0.0, 1.0, 0.0),
        tangent=(1.0, 0.0, 0.0),
        bitangent=(0.0, 0.0, -1.0),
    )


def _sample_material():
    return Material(
        ambient=(0.5, 0.5, 0.5),
        diffuse=(1.0, 0.0, 0.25),
        specular=(0.75, 0.75, 0.75),
        shininess=(32.0, 0.0, 0.0),
        override_color=(0.0, 0.0, 1.0),
    )


def test_equal_vertices_hash_equal():
    a = _sample_vertex()
    b = _sample_vertex()
    assert a == b
    assert len({a, b}) == 1


def test_different_vertices_not_equal():
    a = _sample_vertex()
    b = Vertex(pos=(9.0, 2.0, 3.0), color=a.color, tex_coord=a.tex_coord,
               normal=a.normal, tangent=a.tangent, bitangent=a.bitangent)
    assert (a == b) is False


def test_binding_description():
    desc = Vertex.binding_description()
    assert desc.binding == 0
    assert desc.stride == Vertex.SIZE
    assert desc.input_rate == VERTEX_INPUT_RATE_VERTEX


def test_attribute_descriptions_layout():
    attrs = Vertex.attribute_descriptions()
    assert [a.location for a in attrs] == list(range(6))
    assert all(a.binding == 0 for a in attrs)
    assert attrs[2].format == FORMAT_R32G32_SFLOAT
    assert all(a.format == FORMAT_R32G32B32_SFLOAT for i, a in enumerate(attrs) if i != 2)
    offsets = [a.offset for a in attrs]
    assert offsets == sorted(offsets)
    assert offsets[0] == 0
    assert offsets[-1] < Vertex.SIZE


def test_attribute_formats_use_vulkan_values():
    attrs = Vertex.attribute_descriptions()
    assert attrs[0].format == 106
    assert attrs[2].format == 103


def test_vertex_pack_round_trip():
    vertex = _sample_vertex()
    data = vertex.pack()
    assert len(data) == Vertex.SIZE
    assert Vertex.unpack(data) == vertex


def test_vertex_unpack_wrong_size():
    with pytest.raises((struct.error, ValueError)):
        Vertex.unpack(b"\x00" * 3)


def test_material_packs_to_16_byte_aligned_fields():
    data = _sample_material().pack()
    assert len(data) == 5 * 16
    assert Material.SIZE == len(data)


def test_material_pack_round_trip():
    material = _sample_material()
    data = material.pack()
    assert len(data) == Material.SIZE
    assert Material.unpack(data) == material