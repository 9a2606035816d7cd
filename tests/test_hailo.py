import pytest

from framestages.geometry import Rectangle, Size
from framestages.hailo import (
    OutTensor,
    convert_inference_coordinates,
    copy_unpadded_rows,
    sort_out_tensors,
)


def tensor(name, width):
    return OutTensor(data=b"", name=name, height=2, width=width, features=4)


def test_out_tensor_str():
    assert str(OutTensor(b"", "out", 2, 3, 4)) == "OutTensor: h 2, w 3, c 4"


def test_sort_by_width():
    result = sort_out_tensors([tensor("a", 80), tensor("b", 20), tensor("c", 40)])
    assert [t.name for t in result] == ["b", "c", "a"]
    widths = [t.width for t in result]
    assert widths == sorted(widths)


def test_copy_unpadded_rows_strips_padding():
    buf = bytes(range(12))
    out = copy_unpadded_rows(buf, 3, 3, 4)
    assert len(out) == 9
    for i in range(3):
        assert out[i * 3:i * 3 + 3] == buf[i * 4:i * 4 + 3]


def test_copy_unpadded_rows_no_padding_is_identity():
    buf = bytes(range(12))
    assert copy_unpadded_rows(buf, 4, 3, 4) == buf


def test_copy_unpadded_rows_short_buffer_raises():
    with pytest.raises(ValueError):
        copy_unpadded_rows(bytes(5), 3, 3, 4)


def test_copy_unpadded_rows_bad_stride_raises():
    with pytest.raises(ValueError):
        copy_unpadded_rows(bytes(12), 4, 3, 2)


CROP = Rectangle(0, 0, 1001, 1001)


def test_convert_wrong_input_gives_empty_rectangle():
    assert convert_inference_coordinates([0.0, 0.0, 1.0], [CROP, CROP], Size(1001, 1001)) == Rectangle()
    assert convert_inference_coordinates([0.0, 0.0, 1.0, 1.0], [CROP], Size(1001, 1001)) == Rectangle()


def test_convert_identity_crop():
    r = convert_inference_coordinates([0.0, 0.0, 1.0, 1.0], [CROP, CROP], Size(1001, 1001))
    assert r == Rectangle(0, 0, 1000, 1000)


def test_convert_scales_to_output():
    coords = [0.25, 0.5, 0.25, 0.25]
    r = convert_inference_coordinates(coords, [CROP, CROP], Size(1001, 1001))
    r2 = convert_inference_coordinates(coords, [CROP, CROP], Size(2002, 2002))
    assert r2 == Rectangle(2 * r.x, 2 * r.y, 2 * r.width, 2 * r.height)


def test_convert_crop_offsets_cancel():
    coords = [0.25, 0.5, 0.25, 0.25]
    shifted = Rectangle(100, 100, 1001, 1001)
    base = convert_inference_coordinates(coords, [CROP, CROP], Size(1001, 1001))
    moved = convert_inference_coordinates(coords, [shifted, shifted], Size(1001, 1001))
    assert moved == base


def test_convert_bounded_to_main_crop():
    main = Rectangle(0, 0, 500, 500)
    r = convert_inference_coordinates([0.0, 0.0, 1.0, 1.0], [main, CROP], Size(500, 500))
    assert r.x + r.width <= 500
    assert r.y + r.height <= 500