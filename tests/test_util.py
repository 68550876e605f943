import math
import string

import pytest

from rendertools.util import (
    clear_slash,
    decompose_transform,
    find_highest_element_if_not_unique,
    generate_uuid,
    is_inside_quadrilateral,
    read_file,
    world_to_screen,
)

IDENTITY = [
    [1.0, 0.0, 0.0, 0.0],
    [0.0, 1.0, 0.0, 0.0],
    [0.0, 0.0, 1.0, 0.0],
    [0.0, 0.0, 0.0, 1.0],
]


def test_clear_slash_forward_and_back():
    assert clear_slash("res/models/cube.obj") == "cube.obj"
    assert clear_slash("res\\textures\\wall.png") == "wall.png"
    assert clear_slash("a/b\\c.txt") == "c.txt"


def test_clear_slash_without_separator_keeps_path():
    assert clear_slash("cube.obj") == "cube.obj"


def test_clear_slash_custom_separators():
    assert clear_slash("a:b:c", ":") == "c"


def test_read_file_round_trip(tmp_path):
    data = bytes(range(256))
    path = tmp_path / "blob.bin"
    path.write_bytes(data)
    assert read_file(path) == data


def test_read_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        read_file(tmp_path / "missing.spv")


@pytest.mark.parametrize("length", [0, 1, 8, 32])
def test_generate_uuid_base62(length):
    uid = generate_uuid(length, True)
    assert len(uid) == length
    assert set(uid) <= set(string.ascii_letters + string.digits)


def test_generate_uuid_base36_alphabet():
    uid = generate_uuid(500, False)
    assert set(uid) <= set(string.digits + string.ascii_uppercase)


def test_decompose_identity():
    translation, rotation, scale = decompose_transform(IDENTITY)
    assert translation == pytest.approx((0.0, 0.0, 0.0))
    assert rotation == pytest.approx((0.0, 0.0, 0.0))
    assert scale == pytest.approx((1.0, 1.0, 1.0))


def test_decompose_translation_and_scale():
    sx, sy, sz = 2.0, 3.0, 4.0
    tx, ty, tz = 5.0, -6.0, 7.5
    matrix = [
        [sx, 0.0, 0.0, 0.0],
        [0.0, sy, 0.0, 0.0],
        [0.0, 0.0, sz, 0.0],
        [tx, ty, tz, 1.0],
    ]
    translation, rotation, scale = decompose_transform(matrix)
    assert translation == pytest.approx((tx, ty, tz))
    assert scale == pytest.approx((sx, sy, sz))
    assert rotation == pytest.approx((0.0, 0.0, 0.0))


def test_decompose_rotation_about_z():
    angle = 0.7
    c, s = math.cos(angle), math.sin(angle)
    matrix = [
        [c, s, 0.0, 0.0],
        [-s, c, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ]
    _, rotation, scale = decompose_transform(matrix)
    assert rotation[2] == pytest.approx(angle)
    assert rotation[0] == pytest.approx(0.0)
    assert scale == pytest.approx((1.0, 1.0, 1.0))


def test_decompose_degenerate_returns_none():
    matrix = [row[:] for row in IDENTITY]
    matrix[3][3] = 0.0
    assert decompose_transform(matrix) is None


def test_find_highest_unique():
    values = [3, 9, 4, 1]
    index = find_highest_element_if_not_unique(values)
    assert values[index] == max(values)


def test_find_highest_duplicated_max():
    assert find_highest_element_if_not_unique([2, 7, 7]) == -1


def test_find_highest_empty():
    assert find_highest_element_if_not_unique([]) == -1


def test_world_to_screen_identity_corners():
    assert world_to_screen((0.0, 0.0, 0.0), IDENTITY, IDENTITY) == pytest.approx((0.5, 0.5))
    assert world_to_screen((-1.0, 1.0, 0.0), IDENTITY, IDENTITY) == pytest.approx((0.0, 0.0))
    assert world_to_screen((1.0, -1.0, 0.0), IDENTITY, IDENTITY) == pytest.approx((1.0, 1.0))


def test_world_to_screen_zero_w_raises():
    zero = [[0.0] * 4 for _ in range(4)]
    with pytest.raises(ZeroDivisionError):
        world_to_screen((1.0, 2.0, 3.0), zero, IDENTITY)


def test_inside_quadrilateral_both_windings():
    square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    assert is_inside_quadrilateral((0.5, 0.5), *square) is True
    assert is_inside_quadrilateral((0.5, 0.5), *reversed(square)) is True


def test_outside_quadrilateral():
    square = [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]
    assert is_inside_quadrilateral((1.5, 0.5), *square) is False
    assert is_inside_quadrilateral((-0.1, -0.1), *square) is False


def test_point_on_edge_counts_as_inside():
    square = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]
    assert is_inside_quadrilateral((1.0, 0.0), *square) is True