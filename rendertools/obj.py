"""Reader for Wavefront OBJ geometry files."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from os import PathLike
from typing import IO, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .mtl import MaterialFileReader, MtlMaterial, try_parse_double

MaterialReader = Callable[[str, List[MtlMaterial], Dict[str, int]], str]

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")
_WORDS = re.compile(r"[ \t\r]+")
_ATOI = re.compile(r"\s*([+-]?[0-9]+)")
_BLANK = " \t"
_TRIPLE_END = "/ \t\r"


@dataclass(frozen=True)
class Index:
    """Zero-based indices of one face corner; ``-1`` means not used."""

    vertex_index: int = -1
    normal_index: int = -1
    texcoord_index: int = -1


@dataclass
class Tag:
    """A subdivision tag (``t`` line) with its integer, real and string values."""

    name: str = ""
    int_values: List[int] = field(default_factory=list)
    float_values: List[float] = field(default_factory=list)
    string_values: List[str] = field(default_factory=list)


@dataclass
class Mesh:
    """Face corners, per-face vertex counts and per-face material ids."""

    indices: List[Index] = field(default_factory=list)
    num_face_vertices: List[int] = field(default_factory=list)
    material_ids: List[int] = field(default_factory=list)
    tags: List[Tag] = field(default_factory=list)


@dataclass
class Shape:
    """A named group or object of faces."""

    name: str = ""
    mesh: Mesh = field(default_factory=Mesh)


@dataclass
class Attrib:
    """Flat lists of positions (xyz), normals (xyz) and texture coords (uv)."""

    vertices: List[float] = field(default_factory=list)
    normals: List[float] = field(default_factory=list)
    texcoords: List[float] = field(default_factory=list)


@dataclass
class ObjData:
    """Everything read from an OBJ file."""

    attrib: Attrib = field(default_factory=Attrib)
    shapes: List[Shape] = field(default_factory=list)
    materials: List[MtlMaterial] = field(default_factory=list)
    warnings: str = ""


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _until(text: str, pos: int, chars: str) -> int:
    while pos < len(text) and text[pos] not in chars:
        pos += 1
    return pos


def fix_index(idx: int, n: int) -> int:
    """Make a one-based or negative (relative) OBJ index zero-based."""
    if idx > 0:
        return idx - 1
    if idx == 0:
        return 0
    return n + idx


def parse_triple(token: str, vsize: int, vnsize: int, vtsize: int) -> Index:
    """Parse one face corner: ``i``, ``i/j``, ``i//k`` or ``i/j/k``."""
    parts = token.split("/")
    vertex = fix_index(_atoi(parts[0]), vsize)
    if len(parts) == 1:
        return Index(vertex_index=vertex)
    if parts[1] == "" and len(parts) >= 3:
        return Index(
            vertex_index=vertex, normal_index=fix_index(_atoi(parts[2]), vnsize)
        )
    texcoord = fix_index(_atoi(parts[1]), vtsize)
    if len(parts) == 2:
        return Index(vertex_index=vertex, texcoord_index=texcoord)
    return Index(
        vertex_index=vertex,
        normal_index=fix_index(_atoi(parts[2]), vnsize),
        texcoord_index=texcoord,
    )


def _reals(rest: str, defaults: Sequence[float]) -> List[float]:
    words = [w for w in _WORDS.split(rest) if w]
    values = []
    for position, default in enumerate(defaults):
        value = try_parse_double(words[position]) if position < len(words) else None
        values.append(default if value is None else value)
    return values


def _first_word(text: str) -> str:
    words = text.split()
    return words[0] if words else ""


def _split_keyword(token: str) -> Optional[Tuple[str, str]]:
    for position, char in enumerate(token):
        if char in _BLANK:
            return token[:position], token[position + 1:]
    return None


def _parse_tag(rest: str) -> Tag:
    name = _first_word(rest)
    pos = len(name) + 1
    num_ints = num_reals = num_strings = 0

    num_ints = _atoi(rest[pos:])
    pos = _until(rest, pos, _TRIPLE_END)
    if pos < len(rest) and rest[pos] == "/":
        pos += 1
        num_reals = _atoi(rest[pos:])
        pos = _until(rest, pos, _TRIPLE_END)
        if pos < len(rest) and rest[pos] == "/":
            pos += 1
            num_strings = _atoi(rest[pos:])
            pos = _until(rest, pos, _TRIPLE_END) + 1

    tag = Tag(name=name)
    for _ in range(max(0, num_ints)):
        tag.int_values.append(_atoi(rest[pos:]))
        pos = _until(rest, pos, _TRIPLE_END) + 1
    for _ in range(max(0, num_reals)):
        while pos < len(rest) and rest[pos] in _BLANK:
            pos += 1
        end = _until(rest, pos, " \t\r")
        value = try_parse_double(rest[pos:end])
        tag.float_values.append(0.0 if value is None else value)
        pos = _until(rest, end, _TRIPLE_END) + 1
    for _ in range(max(0, num_strings)):
        word = _first_word(rest[pos:])
        tag.string_values.append(word)
        pos += len(word) + 1
    return tag


def _export_faces(
    shape: Shape,
    faces: List[List[Index]],
    tags: List[Tag],
    material_id: int,
    name: str,
    triangulate: bool,
) -> bool:
    if not faces:
        return False
    mesh = shape.mesh
    for face in faces:
        if triangulate:
            if not face:
                continue
            first = face[0]
            for previous, current in zip(face[1:], face[2:]):
                mesh.indices.extend((first, previous, current))
                mesh.num_face_vertices.append(3)
                mesh.material_ids.append(material_id)
        else:
            mesh.indices.extend(face)
            mesh.num_face_vertices.append(len(face))
            mesh.material_ids.append(material_id)
    shape.name = name
    mesh.tags = list(tags)
    return True


def _mtllib_filenames(rest: str) -> List[str]:
    parts = rest.split(" ")
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def load_obj(
    stream: Union[IO[str], str],
    material_reader: Optional[MaterialReader] = None,
    triangulate: bool = True,
) -> ObjData:
    """Read OBJ text into attributes, shapes and materials.

    ``material_reader`` is called for ``mtllib`` lines; it raises
    ``OSError`` when a library cannot be loaded, which is recorded as a
    warning. Polygons are split into triangle fans when ``triangulate``.
    """
    text = stream if isinstance(stream, str) else stream.read()

    data = ObjData()
    v = data.attrib.vertices
    vn = data.attrib.normals
    vt = data.attrib.texcoords
    warnings: List[str] = []
    tags: List[Tag] = []
    faces: List[List[Index]] = []
    name = ""
    material_map: Dict[str, int] = {}
    material = -1
    shape = Shape()

    for line in _LINE_SPLIT.split(text):
        if not line:
            continue
        token = line.lstrip(_BLANK)
        if not token or token[0] in "\0#":
            continue
        split = _split_keyword(token)
        if split is None:
            continue
        keyword, rest = split

        if keyword == "v":
            v.extend(_reals(rest, (0.0, 0.0, 0.0)))
        elif keyword == "vn":
            vn.extend(_reals(rest, (0.0, 0.0, 0.0)))
        elif keyword == "vt":
            vt.extend(_reals(rest, (0.0, 0.0)))
        elif keyword == "f":
            corners = [w for w in _WORDS.split(rest) if w]
            faces.append(
                [
                    parse_triple(c, len(v) // 3, len(vn) // 3, len(vt) // 2)
                    for c in corners
                ]
            )
        elif keyword == "usemtl":
            new_material = material_map.get(_first_word(rest), -1)
            if new_material != material:
                _export_faces(shape, faces, tags, material, name, triangulate)
                faces = []
                material = new_material
        elif keyword == "mtllib":
            if material_reader is None:
                continue
            filenames = _mtllib_filenames(rest)
            if not filenames:
                warnings.append(
                    "WARN: Looks like empty filename for mtllib. Use default material. \n"
                )
                continue
            found = False
            for filename in filenames:
                try:
                    warnings.append(
                        material_reader(filename, data.materials, material_map)
                    )
                except OSError as exc:
                    warnings.append(str(exc))
                    continue
                found = True
                break
            if not found:
                warnings.append(
                    "WARN: Failed to load material file(s). Use default material.\n"
                )
        elif keyword in ("g", "o"):
            if _export_faces(shape, faces, tags, material, name, triangulate):
                data.shapes.append(shape)
            shape = Shape()
            faces = []
            if keyword == "g":
                words = [w for w in _WORDS.split(token) if w]
                name = words[1] if len(words) > 1 else ""
            else:
                name = _first_word(rest)
        elif keyword == "t":
            tags.append(_parse_tag(rest))

    exported = _export_faces(shape, faces, tags, material, name, triangulate)
    if exported or shape.mesh.indices:
        data.shapes.append(shape)

    data.warnings = "".join(warnings)
    return data


def load_obj_file(
    filename: Union[str, PathLike],
    mtl_basedir: Optional[Union[str, PathLike]] = None,
    triangulate: bool = True,
) -> ObjData:
    """Read an OBJ file; material libraries are looked up under ``mtl_basedir``.

    Raises ``OSError`` when the file cannot be opened.
    """
    try:
        handle = open(filename, encoding="utf-8", errors="surrogateescape", newline="")
    except OSError as exc:
        raise OSError(f"Cannot open file [{filename}]") from exc
    with handle:
        return load_obj(handle, MaterialFileReader(mtl_basedir or ""), triangulate)