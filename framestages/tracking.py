"""Temporal filtering of detections so that objects appear and vanish smoothly."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from typing import Any

import numpy as np

from framestages.geometry import Rectangle, Size
from framestages.object_detect import Detection

_UINT32_MASK = 0xFFFFFFFF


@dataclass
class TemporalFilterConfig:
    """Settings for matching detections across frames."""

    tolerance: float = 0.05
    factor: float = 0.2
    visible_frames: int = 5
    hidden_frames: int = 2

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> TemporalFilterConfig:
        """Read the settings from the ``temporal_filter`` section of a stage config."""
        defaults = cls()
        visible_frames = int(params.get("visible_frames", defaults.visible_frames))
        hidden_frames = int(params.get("hidden_frames", defaults.hidden_frames))
        if visible_frames < 0 or hidden_frames < 0:
            raise ValueError("frame counts must not be negative")
        return cls(
            tolerance=float(params.get("tolerance", defaults.tolerance)),
            factor=float(params.get("factor", defaults.factor)),
            visible_frames=visible_frames,
            hidden_frames=hidden_frames,
        )


@dataclass
class _Tracked:
    detection: Detection
    visible: int
    hidden: int
    matched: bool


class TemporalFilter:
    """A long term list of detections, smoothed and debounced over frames.

    A new object stays hidden for ``hidden_frames`` consecutive matches, and a
    vanished object stays for ``visible_frames`` frames.  With
    ``reveal_when_empty`` set, objects that arrive while the list is empty are
    shown at once.
    """

    def __init__(self, config: TemporalFilterConfig, output_size: Size, reveal_when_empty: bool = False) -> None:
        self.config = config
        self.output_size = output_size
        self.reveal_when_empty = reveal_when_empty
        self._objects: list[_Tracked] = []
        self._lock = threading.Lock()

    def _matches(self, new: Detection, old: Detection) -> bool:
        tol = np.float32(self.config.tolerance)
        limit_w = float(tol * np.float32(self.output_size.width))
        limit_h = float(tol * np.float32(self.output_size.height))
        a, b = new.box, old.box
        return (
            new.category == old.category
            and abs(a.x - b.x) < limit_w
            and abs(a.y - b.y) < limit_h
            and abs(a.width - b.width) < limit_w
            and abs(a.height - b.height) < limit_h
        )

    def _blend(self, new: int, old: int) -> int:
        f = np.float32(self.config.factor)
        return int(f * np.float32(new) + (np.float32(1.0) - f) * np.float32(old))

    def _merge(self, tracked: _Tracked, new: Detection) -> None:
        old = tracked.detection
        box = Rectangle(
            self._blend(new.box.x, old.box.x),
            self._blend(new.box.y, old.box.y),
            self._blend(new.box.width, old.box.width),
            self._blend(new.box.height, old.box.height),
        )
        tracked.detection = replace(old, confidence=new.confidence, box=box)
        tracked.matched = True
        # Reset the visibility counter for when the object next disappears.
        tracked.visible = self.config.visible_frames
        # Count down towards the object becoming visible.
        tracked.hidden = max(0, tracked.hidden - 1)

    def _filter(self, detections: Iterable[Detection]) -> None:
        cfg = self.config
        was_empty = not self._objects
        for tracked in self._objects:
            tracked.matched = False

        for detection in detections:
            match = next((t for t in self._objects if self._matches(detection, t.detection)), None)
            if match is not None:
                self._merge(match, detection)
            else:
                hidden = 0 if (self.reveal_when_empty and was_empty) else cfg.hidden_frames
                self._objects.append(_Tracked(detection, cfg.visible_frames, hidden, True))

        for tracked in self._objects:
            if tracked.matched:
                continue
            # A still hidden object must start over; otherwise it fades out.
            if tracked.hidden:
                tracked.visible = 0
            else:
                tracked.visible = (tracked.visible - 1) & _UINT32_MASK

        self._objects = [t for t in self._objects if t.matched or t.visible]

    def _visible(self) -> list[Detection]:
        return [t.detection for t in self._objects if not t.hidden]

    def update(self, detections: Iterable[Detection]) -> list[Detection]:
        """Feed one frame's detections and return those to report."""
        detections = list(detections)
        with self._lock:
            self._filter(detections)
            if self._objects:
                return self._visible()
            return detections

    def visible(self) -> list[Detection]:
        """Detections in the long term list that are not hidden."""
        with self._lock:
            return self._visible()

    def replace(self, detections: Iterable[Detection]) -> None:
        """Replace the list with these detections, all visible, without filtering."""
        with self._lock:
            self._objects = [_Tracked(d, 0, 0, False) for d in detections]

    def clear(self) -> None:
        """Forget every tracked detection."""
        with self._lock:
            self._objects = []