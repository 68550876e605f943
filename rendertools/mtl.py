"""Reader for Wavefront MTL material libraries."""

from __future__ import annotations

import enum
import io
import math
import re
from dataclasses import dataclass, field
from os import PathLike
from typing import IO, Callable, Dict, List, Optional, Tuple, Union

Vec3 = Tuple[float, float, float]

_DIGITS = "0123456789"
_POW_LUT = (1.0, 0.1, 0.01, 0.001, 0.0001, 0.00001, 0.000001, 0.0000001)
_BLANK = " \t"
_TOKEN_END = " \t\r"
_LINE_END = "\r\n\0"
_LINE_SPLIT = re.compile(r"\r\n|\r|\n")
_ATOI = re.compile(r"\s*([+-]?\d+)")


class TextureType(enum.IntEnum):
    """Kind of reflection map named by a ``-type`` option."""

    NONE = 0
    SPHERE = 1
    CUBE_TOP = 2
    CUBE_BOTTOM = 3
    CUBE_FRONT = 4
    CUBE_BACK = 5
    CUBE_LEFT = 6
    CUBE_RIGHT = 7


_TEXTURE_TYPE_PREFIXES = (
    ("cube_top", TextureType.CUBE_TOP),
    ("cube_bottom", TextureType.CUBE_BOTTOM),
    ("cube_left", TextureType.CUBE_LEFT),
    ("cube_right", TextureType.CUBE_RIGHT),
    ("cube_front", TextureType.CUBE_FRONT),
    ("cube_back", TextureType.CUBE_BACK),
    ("sphere", TextureType.SPHERE),
)


@dataclass
class TextureOption:
    """Options written in front of a texture file name."""

    type: TextureType = TextureType.NONE
    sharpness: float = 1.0
    brightness: float = 0.0
    contrast: float = 1.0
    origin_offset: Vec3 = (0.0, 0.0, 0.0)
    scale: Vec3 = (1.0, 1.0, 1.0)
    turbulence: Vec3 = (0.0, 0.0, 0.0)
    clamp: bool = False
    imfchan: str = "m"
    blendu: bool = True
    blendv: bool = True
    bump_multiplier: float = 1.0


@dataclass
class MtlMaterial:
    """One ``newmtl`` block of a material library."""

    name: str = ""

    ambient: Vec3 = (0.0, 0.0, 0.0)
    diffuse: Vec3 = (0.0, 0.0, 0.0)
    specular: Vec3 = (0.0, 0.0, 0.0)
    transmittance: Vec3 = (0.0, 0.0, 0.0)
    emission: Vec3 = (0.0, 0.0, 0.0)
    shininess: float = 1.0
    ior: float = 1.0
    dissolve: float = 1.0
    illum: int = 0

    ambient_texname: str = ""
    diffuse_texname: str = ""
    specular_texname: str = ""
    specular_highlight_texname: str = ""
    bump_texname: str = ""
    displacement_texname: str = ""
    alpha_texname: str = ""

    ambient_texopt: TextureOption = field(default_factory=TextureOption)
    diffuse_texopt: TextureOption = field(default_factory=TextureOption)
    specular_texopt: TextureOption = field(default_factory=TextureOption)
    specular_highlight_texopt: TextureOption = field(default_factory=TextureOption)
    bump_texopt: TextureOption = field(default_factory=TextureOption)
    displacement_texopt: TextureOption = field(default_factory=TextureOption)
    alpha_texopt: TextureOption = field(default_factory=TextureOption)

    roughness: float = 0.0
    metallic: float = 0.0
    sheen: float = 0.0
    clearcoat_thickness: float = 0.0
    clearcoat_roughness: float = 0.0
    anisotropy: float = 0.0
    anisotropy_rotation: float = 0.0

    roughness_texname: str = ""
    metallic_texname: str = ""
    sheen_texname: str = ""
    emissive_texname: str = ""
    normal_texname: str = ""

    roughness_texopt: TextureOption = field(default_factory=TextureOption)
    metallic_texopt: TextureOption = field(default_factory=TextureOption)
    sheen_texopt: TextureOption = field(default_factory=TextureOption)
    emissive_texopt: TextureOption = field(default_factory=TextureOption)
    normal_texopt: TextureOption = field(default_factory=TextureOption)

    unknown_parameter: Dict[str, str] = field(default_factory=dict)


def try_parse_double(text: str) -> Optional[float]:
    """Parse a leading number such as ``-0``, ``+3.1417e+2`` or ``11e2``.

    Parsing is greedy and stops at the first character that does not fit;
    ``None`` is returned when no number can be read.
    """
    n = len(text)
    if n == 0:
        return None

    i = 0
    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        i = 1
    elif text[0] not in _DIGITS:
        return None

    mantissa = 0.0
    read = 0
    while i < n and text[i] in _DIGITS:
        mantissa = mantissa * 10 + int(text[i])
        i += 1
        read += 1
    if read == 0:
        return None

    exponent = 0
    if i < n and text[i] == ".":
        i += 1
        read = 1
        while i < n and text[i] in _DIGITS:
            scale = _POW_LUT[read] if read < len(_POW_LUT) else 10.0 ** -read
            mantissa += int(text[i]) * scale
            read += 1
            i += 1

    if i < n and text[i] in "eE":
        i += 1
        exp_sign = 1
        if i < n and text[i] in "+-":
            exp_sign = -1 if text[i] == "-" else 1
            i += 1
        elif not (i < n and text[i] in _DIGITS):
            return None
        read = 0
        while i < n and text[i] in _DIGITS:
            exponent = exponent * 10 + int(text[i])
            i += 1
            read += 1
        exponent *= exp_sign
        if read == 0:
            return None

    if not exponent:
        return sign * mantissa
    try:
        value = math.ldexp(mantissa * 5.0 ** exponent, exponent)
    except OverflowError:
        value = math.inf if mantissa else math.nan
    return sign * value


def _skip(text: str, pos: int, chars: str = _BLANK) -> int:
    while pos < len(text) and text[pos] in chars:
        pos += 1
    return pos


def _until(text: str, pos: int, chars: str = _TOKEN_END) -> int:
    while pos < len(text) and text[pos] not in chars:
        pos += 1
    return pos


def _parse_real(text: str, pos: int, default: float = 0.0) -> Tuple[float, int]:
    pos = _skip(text, pos)
    end = _until(text, pos)
    value = try_parse_double(text[pos:end])
    return (default if value is None else value), end


def _parse_real3(
    text: str, pos: int, defaults: Vec3 = (0.0, 0.0, 0.0)
) -> Tuple[Vec3, int]:
    values = []
    for default in defaults:
        value, pos = _parse_real(text, pos, default)
        values.append(value)
    return (values[0], values[1], values[2]), pos


def _parse_on_off(text: str, pos: int, default: bool = True) -> Tuple[bool, int]:
    pos = _skip(text, pos)
    end = _until(text, pos)
    if text.startswith("on", pos):
        return True, end
    if text.startswith("off", pos):
        return False, end
    return default, end


def _parse_texture_type(text: str, pos: int) -> Tuple[TextureType, int]:
    pos = _skip(text, pos)
    end = _until(text, pos)
    for prefix, kind in _TEXTURE_TYPE_PREFIXES:
        if text.startswith(prefix, pos):
            return kind, end
    return TextureType.NONE, end


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def _option_at(text: str, pos: int, word: str) -> bool:
    after = pos + len(word)
    return text.startswith(word, pos) and after < len(text) and text[after] in _BLANK


def parse_texture_name_and_option(
    line: str, is_bump: bool = False
) -> Tuple[Optional[str], TextureOption]:
    """Parse texture options and the file name from the rest of a map line.

    Returns ``(name, options)``; ``name`` is ``None`` when the line holds
    no file name.
    """
    opt = TextureOption(imfchan="l" if is_bump else "m")
    name: Optional[str] = None
    pos = 0
    n = len(line)

    while pos < n and line[pos] not in _LINE_END:
        if _option_at(line, pos, "-blendu"):
            opt.blendu, pos = _parse_on_off(line, pos + 8, True)
        elif _option_at(line, pos, "-blendv"):
            opt.blendv, pos = _parse_on_off(line, pos + 8, True)
        elif _option_at(line, pos, "-clamp"):
            opt.clamp, pos = _parse_on_off(line, pos + 7, True)
        elif _option_at(line, pos, "-boost"):
            opt.sharpness, pos = _parse_real(line, pos + 7, 1.0)
        elif _option_at(line, pos, "-bm"):
            opt.bump_multiplier, pos = _parse_real(line, pos + 4, 1.0)
        elif _option_at(line, pos, "-o"):
            opt.origin_offset, pos = _parse_real3(line, pos + 3)
        elif _option_at(line, pos, "-s"):
            opt.scale, pos = _parse_real3(line, pos + 3, (1.0, 1.0, 1.0))
        elif _option_at(line, pos, "-t"):
            opt.turbulence, pos = _parse_real3(line, pos + 3)
        elif _option_at(line, pos, "-type"):
            opt.type, pos = _parse_texture_type(line, pos + 5)
        elif _option_at(line, pos, "-imfchan"):
            pos = _skip(line, pos + 9)
            end = _until(line, pos)
            if end - pos == 1:
                opt.imfchan = line[pos]
            pos = end
        elif _option_at(line, pos, "-mm"):
            opt.brightness, pos = _parse_real(line, pos + 4, 0.0)
            opt.contrast, pos = _parse_real(line, pos, 1.0)
        else:
            pos = _skip(line, pos)
            end = _until(line, pos)
            name = line[pos:end]
            pos = _skip(line, end)

    return name, opt


_VECTOR_KEYS = {
    "Ka": "ambient",
    "Kd": "diffuse",
    "Ks": "specular",
    "Kt": "transmittance",
    "Tf": "transmittance",
    "Ke": "emission",
}

_SCALAR_KEYS = {
    "Ni": "ior",
    "Ns": "shininess",
    "Pr": "roughness",
    "Pm": "metallic",
    "Ps": "sheen",
    "Pc": "clearcoat_thickness",
    "Pcr": "clearcoat_roughness",
    "aniso": "anisotropy",
    "anisor": "anisotropy_rotation",
}

_TEXTURE_KEYS = {
    "map_Ka": ("ambient", False),
    "map_Kd": ("diffuse", False),
    "map_Ks": ("specular", False),
    "map_Ns": ("specular_highlight", False),
    "map_bump": ("bump", True),
    "bump": ("bump", True),
    "map_d": ("alpha", False),
    "disp": ("displacement", False),
    "map_Pr": ("roughness", False),
    "map_Pm": ("metallic", False),
    "map_Ps": ("sheen", False),
    "map_Ke": ("emissive", False),
    "norm": ("normal", False),
}


def _both_dissolve_warning(name: str) -> str:
    return (
        f'WARN: Both `d` and `Tr` parameters defined for "{name}". '
        "Use the value of `d` for dissolve.\n"
    )


def _split_keyword(token: str) -> Optional[Tuple[str, str]]:
    for index, char in enumerate(token):
        if char in _BLANK:
            return token[:index], token[index + 1:]
    return None


def load_mtl(
    stream: Union[IO[str], str],
) -> Tuple[List[MtlMaterial], Dict[str, int], str]:
    """Read a material library.

    Returns ``(materials, material_map, warnings)`` where ``material_map``
    maps each name to the index of its first material. The last material
    is always kept, even if unnamed.
    """
    text = stream if isinstance(stream, str) else stream.read()

    materials: List[MtlMaterial] = []
    material_map: Dict[str, int] = {}
    warnings: List[str] = []

    material = MtlMaterial()
    has_d = False
    has_tr = False

    for raw in _LINE_SPLIT.split(text):
        line = raw.rstrip(_BLANK)
        if not line:
            continue
        token = line.lstrip(_BLANK)
        if not token or token[0] in "\0#":
            continue

        split = _split_keyword(token)
        if split is None:
            continue
        keyword, rest = split

        if keyword == "newmtl":
            if material.name:
                material_map.setdefault(material.name, len(materials))
                materials.append(material)
            material = MtlMaterial()
            has_d = has_tr = False
            words = rest.split()
            material.name = words[0] if words else ""
        elif keyword in _VECTOR_KEYS:
            value, _ = _parse_real3(rest, 0)
            setattr(material, _VECTOR_KEYS[keyword], value)
        elif keyword in _SCALAR_KEYS:
            value, _ = _parse_real(rest, 0)
            setattr(material, _SCALAR_KEYS[keyword], value)
        elif keyword == "illum":
            material.illum = _atoi(rest)
        elif keyword == "d":
            material.dissolve, _ = _parse_real(rest, 0)
            if has_tr:
                warnings.append(_both_dissolve_warning(material.name))
            has_d = True
        elif keyword == "Tr":
            if has_d:
                warnings.append(_both_dissolve_warning(material.name))
            else:
                value, _ = _parse_real(rest, 0)
                material.dissolve = 1.0 - value
            has_tr = True
        elif keyword in _TEXTURE_KEYS:
            prefix, is_bump = _TEXTURE_KEYS[keyword]
            if keyword == "map_d":
                material.alpha_texname = rest
            name, option = parse_texture_name_and_option(rest, is_bump)
            setattr(material, f"{prefix}_texopt", option)
            if name is not None:
                setattr(material, f"{prefix}_texname", name)
        else:
            separator = token.find(" ")
            if separator < 0:
                separator = token.find("\t")
            if separator >= 0:
                material.unknown_parameter.setdefault(
                    token[:separator], token[separator + 1:]
                )

    material_map.setdefault(material.name, len(materials))
    materials.append(material)

    return materials, material_map, "".join(warnings)


def _merge(
    loaded: Tuple[List[MtlMaterial], Dict[str, int], str],
    materials: List[MtlMaterial],
    material_map: Dict[str, int],
) -> str:
    new_materials, new_map, warnings = loaded
    offset = len(materials)
    for name, index in new_map.items():
        material_map.setdefault(name, index + offset)
    materials.extend(new_materials)
    return warnings


MaterialReader = Callable[[str, List[MtlMaterial], Dict[str, int]], str]


class MaterialFileReader:
    """Loads material libraries from files below a base directory.

    Calling it appends to ``materials`` and ``material_map`` and returns
    the warnings; it raises ``OSError`` when the file cannot be opened.
    """

    def __init__(self, mtl_basedir: Union[str, PathLike] = "") -> None:
        self.mtl_basedir = str(mtl_basedir) if mtl_basedir else ""

    def __call__(
        self,
        mat_id: str,
        materials: List[MtlMaterial],
        material_map: Dict[str, int],
    ) -> str:
        filepath = self.mtl_basedir + mat_id if self.mtl_basedir else mat_id
        try:
            with open(
                filepath, encoding="utf-8", errors="surrogateescape", newline=""
            ) as handle:
                loaded = load_mtl(handle)
        except OSError as exc:
            raise OSError(f"WARN: Material file [ {filepath} ] not found.\n") from exc
        return _merge(loaded, materials, material_map)


class MaterialStreamReader:
    """Loads a material library from an already open text stream.

    The requested name is ignored. Raises ``OSError`` if the stream is closed.
    """

    def __init__(self, stream: IO[str]) -> None:
        self.stream = stream

    def __call__(
        self,
        mat_id: str,
        materials: List[MtlMaterial],
        material_map: Dict[str, int],
    ) -> str:
        if self.stream.closed:
            raise OSError("WARN: Material stream in error state. \n")
        try:
            loaded = load_mtl(self.stream)
        except (OSError, io.UnsupportedOperation) as exc:
            raise OSError("WARN: Material stream in error state. \n") from exc
        return _merge(loaded, materials, material_map)