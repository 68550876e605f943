"""Vertex and material records with their GPU memory layouts."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, Tuple

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

VERTEX_INPUT_RATE_VERTEX = 0
FORMAT_R32G32_SFLOAT = 103
FORMAT_R32G32B32_SFLOAT = 106


@dataclass(frozen=True)
class BindingDescription:
    """How a vertex buffer binding is stepped through."""

    binding: int
    stride: int
    input_rate: int


@dataclass(frozen=True)
class AttributeDescription:
    """Where one vertex attribute lives inside a vertex."""

    location: int
    binding: int
    format: int
    offset: int


_VERTEX_STRUCT = struct.Struct("<3f3f2f3f3f3f")


@dataclass(frozen=True)
class Vertex:
    """One mesh vertex; equal vertices hash equally, so they can be deduplicated."""

    pos: Vec3 = (0.0, 0.0, 0.0)
    color: Vec3 = (0.0, 0.0, 0.0)
    tex_coord: Vec2 = (0.0, 0.0)
    normal: Vec3 = (0.0, 0.0, 0.0)
    tangent: Vec3 = (0.0, 0.0, 0.0)
    bitangent: Vec3 = (0.0, 0.0, 0.0)

    SIZE: ClassVar[int] = _VERTEX_STRUCT.size

    @classmethod
    def binding_description(cls) -> BindingDescription:
        """The single per-vertex binding at slot 0."""
        return BindingDescription(0, cls.SIZE, VERTEX_INPUT_RATE_VERTEX)

    @staticmethod
    def attribute_descriptions() -> Tuple[AttributeDescription, ...]:
        """Descriptions of the six attributes, at locations 0 to 5."""
        layout = (
            (FORMAT_R32G32B32_SFLOAT, 3),
            (FORMAT_R32G32B32_SFLOAT, 3),
            (FORMAT_R32G32_SFLOAT, 2),
            (FORMAT_R32G32B32_SFLOAT, 3),
            (FORMAT_R32G32B32_SFLOAT, 3),
            (FORMAT_R32G32B32_SFLOAT, 3),
        )
        descriptions = []
        offset = 0
        for location, (fmt, count) in enumerate(layout):
            descriptions.append(AttributeDescription(location, 0, fmt, offset))
            offset += 4 * count
        return tuple(descriptions)

    def pack(self) -> bytes:
        """Little-endian float32 bytes in attribute order."""
        return _VERTEX_STRUCT.pack(
            *self.pos, *self.color, *self.tex_coord,
            *self.normal, *self.tangent, *self.bitangent,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Vertex":
        """Rebuild a vertex from bytes made by :meth:`pack`."""
        v = _VERTEX_STRUCT.unpack(data)
        return cls(v[0:3], v[3:6], v[6:8], v[8:11], v[11:14], v[14:17])


_MATERIAL_STRUCT = struct.Struct("<" + "3f4x" * 5)


@dataclass(frozen=True)
class Material:
    """Shading parameters; each vector is padded to 16 bytes on the GPU."""

    ambient: Vec3 = (0.0, 0.0, 0.0)
    diffuse: Vec3 = (0.0, 0.0, 0.0)
    specular: Vec3 = (0.0, 0.0, 0.0)
    shininess: Vec3 = (0.0, 0.0, 0.0)
    override_color: Vec3 = (0.0, 0.0, 0.0)

    SIZE: ClassVar[int] = _MATERIAL_STRUCT.size

    def pack(self) -> bytes:
        """Little-endian float32 bytes with 16-byte aligned vectors."""
        return _MATERIAL_STRUCT.pack(
            *self.ambient, *self.diffuse, *self.specular,
            *self.shininess, *self.override_color,
        )

    @classmethod
    def unpack(cls, data: bytes) -> "Material":
        """Rebuild a material from bytes made by :meth:`pack`."""
        v = _MATERIAL_STRUCT.unpack(data)
        return cls(v[0:3], v[3:6], v[6:9], v[9:12], v[12:15])