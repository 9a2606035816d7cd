import pytest

from framestages.geometry import Rectangle, Size
from framestages.object_detect import Detection
from framestages.tracking import TemporalFilter, TemporalFilterConfig

OUTPUT = Size(1000, 1000)


def det(x=100, y=100, w=50, h=50, category=1, confidence=0.9):
    return Detection(category, "thing", confidence, Rectangle(x, y, w, h))


def test_config_defaults_from_empty_dict():
    assert TemporalFilterConfig.from_dict({}) == TemporalFilterConfig()


def test_config_reads_values():
    cfg = TemporalFilterConfig.from_dict({"tolerance": 0.1, "visible_frames": 7})
    assert cfg.tolerance == 0.1
    assert cfg.visible_frames == 7
    assert cfg.hidden_frames == TemporalFilterConfig().hidden_frames


def test_config_rejects_negative_frames():
    with pytest.raises(ValueError):
        TemporalFilterConfig.from_dict({"hidden_frames": -1})


def test_new_object_hidden_until_matched_enough():
    f = TemporalFilter(TemporalFilterConfig(hidden_frames=2), OUTPUT)
    d = det()
    assert f.update([d]) == []
    assert f.update([d]) == []
    assert f.update([d]) == [d]
    assert f.visible() == [d]


def test_reveal_when_empty_shows_first_objects():
    f = TemporalFilter(TemporalFilterConfig(hidden_frames=2), OUTPUT, reveal_when_empty=True)
    d = det()
    assert f.update([d]) == [d]


def test_object_fades_after_visible_frames():
    f = TemporalFilter(TemporalFilterConfig(visible_frames=2, hidden_frames=0), OUTPUT)
    d = det()
    assert f.update([d]) == [d]
    assert f.update([]) == [d]
    assert f.update([]) == []
    assert f.visible() == []


def test_unmatched_hidden_object_is_dropped():
    f = TemporalFilter(TemporalFilterConfig(hidden_frames=3), OUTPUT)
    f.update([det()])
    assert f.update([]) == []
    assert f.visible() == []


def test_matched_box_is_smoothed():
    cfg = TemporalFilterConfig(tolerance=0.5, factor=0.5, hidden_frames=0)
    f = TemporalFilter(cfg, OUTPUT)
    f.update([det(x=100)])
    result = f.update([det(x=200, confidence=0.5)])
    assert len(result) == 1
    assert result[0].box.x == 150
    assert result[0].confidence == 0.5


def test_different_categories_are_tracked_separately():
    f = TemporalFilter(TemporalFilterConfig(hidden_frames=0), OUTPUT)
    a, b = det(category=1), det(category=2)
    assert f.update([a, b]) == [a, b]


def test_far_objects_do_not_match():
    f = TemporalFilter(TemporalFilterConfig(tolerance=0.05, hidden_frames=0), OUTPUT)
    a, b = det(x=0), det(x=500)
    f.update([a])
    assert f.update([b]) == [a, b]


def test_replace_and_clear():
    f = TemporalFilter(TemporalFilterConfig(), OUTPUT)
    d = det()
    f.replace([d])
    assert f.visible() == [d]
    f.clear()
    assert f.visible() == []