"""Path, file, identifier and small geometry helpers.

Matrices are 4x4 and column-major: ``m[column][row]``. ``m[3]`` is the
translation column.
"""

from __future__ import annotations

import math
import random
import string
from os import PathLike
from typing import Optional, Sequence, Tuple, Union

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Matrix = Sequence[Sequence[float]]

_BASE_CHARS = string.digits + string.ascii_uppercase + string.ascii_lowercase
_FLOAT_EPSILON = 1.1920928955078125e-07


def clear_slash(path: str, separators: str = "/\\") -> str:
    """Return the part of ``path`` after the last of any ``separators``."""
    last = max((path.rfind(sep) for sep in separators), default=-1)
    return path[last + 1:]


def read_file(filename: Union[str, PathLike]) -> bytes:
    """Read a whole file as bytes; raises ``OSError`` if it cannot be opened."""
    with open(filename, "rb") as handle:
        return handle.read()


def generate_uuid(length: int, use_base62: bool = True) -> str:
    """Make a short random identifier of ``length`` characters.

    The alphabet is digits and upper-case letters, plus lower-case letters
    when ``use_base62`` is true.
    """
    alphabet = _BASE_CHARS if use_base62 else _BASE_CHARS[:36]
    return "".join(random.choice(alphabet) for _ in range(length))


def _normalized(vector: Sequence[float]) -> Tuple[float, ...]:
    length = math.sqrt(sum(c * c for c in vector))
    if length == 0.0:
        return tuple(math.nan for _ in vector)
    return tuple(c / length for c in vector)


def decompose_transform(
    transform: Matrix,
) -> Optional[Tuple[Vec3, Vec3, Vec3]]:
    """Split a transform into ``(translation, rotation, scale)``.

    Rotation is given as Euler angles in radians. Returns ``None`` when the
    matrix cannot be normalised (its ``[3][3]`` element is zero).
    """
    local = [list(map(float, column)) for column in transform]

    if abs(local[3][3]) < _FLOAT_EPSILON:
        return None

    if any(abs(local[i][3]) >= _FLOAT_EPSILON for i in range(3)):
        local[0][3] = local[1][3] = local[2][3] = 0.0
        local[3][3] = 1.0

    translation = (local[3][0], local[3][1], local[3][2])

    rows = [local[i][:3] for i in range(3)]
    scale = tuple(math.sqrt(sum(c * c for c in row)) for row in rows)
    rows = [_normalized(row) for row in rows]

    sin_y = -rows[0][2]
    if math.isnan(sin_y):
        rot_y = math.nan
    else:
        rot_y = math.asin(max(-1.0, min(1.0, sin_y)))
    if math.cos(rot_y) != 0:
        rot_x = math.atan2(rows[1][2], rows[2][2])
        rot_z = math.atan2(rows[0][1], rows[0][0])
    else:
        rot_x = math.atan2(-rows[2][0], rows[1][1])
        rot_z = 0.0

    return translation, (rot_x, rot_y, rot_z), scale  # type: ignore[return-value]


def find_highest_element_if_not_unique(values: Sequence[int]) -> int:
    """Index of the maximum if it occurs exactly once, otherwise ``-1``."""
    if not values:
        return -1
    highest = max(values)
    if values.count(highest) != 1:
        return -1
    return values.index(highest)


def _mat_vec(matrix: Matrix, vector: Sequence[float]) -> Tuple[float, ...]:
    return tuple(
        sum(matrix[col][row] * vector[col] for col in range(4)) for row in range(4)
    )


def world_to_screen(pos: Sequence[float], proj: Matrix, view: Matrix) -> Vec2:
    """Project a world position to screen space in ``[0, 1]``, y pointing down."""
    clip = _mat_vec(proj, _mat_vec(view, (pos[0], pos[1], pos[2], 1.0)))
    w = clip[3]
    if not w:
        raise ZeroDivisionError("clip-space w is 0; cannot project the point")
    ndc_x = clip[0] / w
    ndc_y = clip[1] / w
    return (ndc_x + 1.0) / 2.0, 1.0 - (ndc_y + 1.0) / 2.0


def is_inside_quadrilateral(
    click: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
    c: Sequence[float],
    d: Sequence[float],
) -> bool:
    """Whether ``click`` lies inside (or on) the convex quadrilateral ABCD."""
    offsets = [(v[0] - click[0], v[1] - click[1]) for v in (a, b, c, d)]
    crosses = [
        first[0] * second[1] - first[1] * second[0]
        for first, second in zip(offsets, offsets[1:] + offsets[:1])
    ]
    return all(z >= 0 for z in crosses) or all(z <= 0 for z in crosses)