"""Event-driven OBJ reader that reports each element to user callbacks."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import IO, Callable, Dict, List, Optional, Sequence, Tuple, Union

from .mtl import MtlMaterial, try_parse_double
from .obj import Index

MaterialReader = Callable[[str, List[MtlMaterial], Dict[str, int]], str]

_LINE_SPLIT = re.compile(r"\r\n|\r|\n")
_WORDS = re.compile(r"[ \t\r]+")
_ATOI = re.compile(r"\s*([+-]?[0-9]+)")
_BLANK = " \t"


@dataclass
class ObjCallbacks:
    """Functions called while reading; any of them may be left out.

    * ``vertex(x, y, z, w)`` for ``v`` lines; ``w`` defaults to 1.
    * ``normal(x, y, z)`` for ``vn`` lines.
    * ``texcoord(u, v, w)`` for ``vt`` lines; ``v`` and ``w`` default to 0.
    * ``index(indices)`` for ``f`` lines, with raw (unfixed) indices;
      0 marks an index that is not given.
    * ``usemtl(name, material_id)``; the id is -1 for an unknown material.
    * ``mtllib(materials)`` after a material library was loaded.
    * ``group(names)`` for ``g`` lines.
    * ``object(name)`` for ``o`` lines.
    """

    vertex: Optional[Callable[[float, float, float, float], None]] = None
    normal: Optional[Callable[[float, float, float], None]] = None
    texcoord: Optional[Callable[[float, float, float], None]] = None
    index: Optional[Callable[[List[Index]], None]] = None
    usemtl: Optional[Callable[[str, int], None]] = None
    mtllib: Optional[Callable[[List[MtlMaterial]], None]] = None
    group: Optional[Callable[[List[str]], None]] = None
    object: Optional[Callable[[str], None]] = None


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def parse_raw_triple(token: str) -> Index:
    """Parse one face corner without adjusting indices.

    Accepts ``i``, ``i/j``, ``i//k`` and ``i/j/k``; missing parts are 0.
    """
    parts = token.split("/")
    vertex = _atoi(parts[0])
    if len(parts) == 1:
        return Index(vertex_index=vertex, normal_index=0, texcoord_index=0)
    if parts[1] == "" and len(parts) >= 3:
        return Index(
            vertex_index=vertex, normal_index=_atoi(parts[2]), texcoord_index=0
        )
    texcoord = _atoi(parts[1])
    if len(parts) == 2:
        return Index(vertex_index=vertex, normal_index=0, texcoord_index=texcoord)
    return Index(
        vertex_index=vertex, normal_index=_atoi(parts[2]), texcoord_index=texcoord
    )


def _words(text: str) -> List[str]:
    return [w for w in _WORDS.split(text) if w]


def _reals(rest: str, defaults: Sequence[float]) -> List[float]:
    words = _words(rest)
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


def _mtllib_filenames(rest: str) -> List[str]:
    parts = rest.split(" ")
    if parts and parts[-1] == "":
        parts.pop()
    return parts


def load_obj_with_callback(
    stream: Union[IO[str], str],
    callbacks: ObjCallbacks,
    material_reader: Optional[MaterialReader] = None,
) -> str:
    """Read OBJ text, calling ``callbacks`` for each recognised line.

    ``material_reader`` handles ``mtllib`` lines and raises ``OSError``
    when a library cannot be loaded. Returns the collected warnings.
    """
    text = stream if isinstance(stream, str) else stream.read()

    warnings: List[str] = []
    material_map: Dict[str, int] = {}
    materials: List[MtlMaterial] = []
    material_id = -1

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
            x, y, z, w = _reals(rest, (0.0, 0.0, 0.0, 1.0))
            if callbacks.vertex:
                callbacks.vertex(x, y, z, w)
        elif keyword == "vn":
            x, y, z = _reals(rest, (0.0, 0.0, 0.0))
            if callbacks.normal:
                callbacks.normal(x, y, z)
        elif keyword == "vt":
            x, y, z = _reals(rest, (0.0, 0.0, 0.0))
            if callbacks.texcoord:
                callbacks.texcoord(x, y, z)
        elif keyword == "f":
            indices = [parse_raw_triple(corner) for corner in _words(rest)]
            if callbacks.index and indices:
                callbacks.index(indices)
        elif keyword == "usemtl":
            name = _first_word(rest)
            material_id = material_map.get(name, -1)
            if callbacks.usemtl:
                callbacks.usemtl(name, material_id)
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
                    warnings.append(material_reader(filename, materials, material_map))
                except OSError as exc:
                    warnings.append(str(exc))
                    continue
                found = True
                break
            if not found:
                warnings.append(
                    "WARN: Failed to load material file(s). Use default material.\n"
                )
            elif callbacks.mtllib:
                callbacks.mtllib(materials)
        elif keyword == "g":
            names = _words(token)[1:]
            if callbacks.group:
                callbacks.group(names)
        elif keyword == "o":
            if callbacks.object:
                callbacks.object(_first_word(rest))

    return "".join(warnings)