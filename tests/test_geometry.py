import pytest

from framestages.geometry import Point, Rectangle, Size


def test_point_negation_round_trip():
    p = Point(7, -3)
    assert -(-p) == p
    assert (-p).x == -p.x


def test_translate_and_back_is_identity():
    r = Rectangle(10, 20, 30, 40)
    offset = Point(5, -8)
    assert r.translated_by(offset).translated_by(-offset) == r


def test_top_left_and_size():
    r = Rectangle(3, 4, 30, 40)
    assert r.top_left() == Point(3, 4)
    assert r.size() == Size(30, 40)
    assert r.area() == 30 * 40


def test_bounded_to_self_is_identity():
    r = Rectangle(1, 2, 50, 60)
    assert r.bounded_to(r) == r


def test_bounded_to_is_symmetric_and_inside_both():
    a = Rectangle(0, 0, 100, 80)
    b = Rectangle(50, 30, 100, 100)
    ab = a.bounded_to(b)
    assert ab == b.bounded_to(a)
    assert ab.x >= max(a.x, b.x)
    assert ab.x + ab.width <= min(a.x + a.width, b.x + b.width)
    assert ab.area() <= min(a.area(), b.area())


def test_bounded_to_disjoint_is_empty():
    a = Rectangle(0, 0, 10, 10)
    b = Rectangle(100, 100, 10, 10)
    assert a.bounded_to(b).area() == 0


def test_scaled_by_equal_sizes_is_identity():
    r = Rectangle(-7, 9, 33, 21)
    s = Size(640, 480)
    assert r.scaled_by(s, s) == r


def test_scaled_by_doubles():
    r = Rectangle(10, 20, 30, 40)
    out = r.scaled_by(Size(200, 200), Size(100, 100))
    assert out == Rectangle(r.x * 2, r.y * 2, r.width * 2, r.height * 2)


def test_scaled_by_truncates_negative_towards_zero():
    r = Rectangle(-3, -3, 4, 4)
    out = r.scaled_by(Size(1, 1), Size(2, 2))
    assert out.x == -1
    assert out.y == -1


def test_enclosed_in_stays_inside():
    boundary = Rectangle(0, 0, 4056, 3040)
    for r in (Rectangle(-100, -100, 500, 500), Rectangle(4000, 3000, 500, 500), Rectangle(0, 0, 9000, 9000)):
        e = r.enclosed_in(boundary)
        assert e.bounded_to(boundary) == e


def test_bounded_to_aspect_ratio_square():
    assert Size(4056, 3040).bounded_to_aspect_ratio(Size(1, 1)) == Size(3040, 3040)


def test_bounded_to_aspect_ratio_keeps_ratio():
    full = Size(4056, 3040)
    ratio = Size(16, 9)
    out = full.bounded_to_aspect_ratio(ratio)
    assert out.width <= full.width and out.height <= full.height
    assert abs(out.width * ratio.height - out.height * ratio.width) < ratio.width


def test_bounded_to_aspect_ratio_rejects_zero():
    with pytest.raises(ValueError):
        Size(10, 10).bounded_to_aspect_ratio(Size(0, 1))


def test_centered_to_round_trip_center():
    size = Size(300, 200)
    center = Point(2028, 1520)
    r = size.centered_to(center)
    assert r.center() == center
    assert r.size() == size