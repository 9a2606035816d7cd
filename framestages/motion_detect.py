"""Simple motion detection on a low resolution luma image."""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from framestages.geometry import Rectangle

log = logging.getLogger(__name__)


@dataclass
class MotionDetectConfig:
    """Detector settings; region dimensions are fractions of the image size."""

    roi_x: float = 0.0
    roi_y: float = 0.0
    roi_width: float = 1.0
    roi_height: float = 1.0
    hskip: int = 1
    vskip: int = 1
    difference_m: float = 0.1
    difference_c: int = 10
    region_threshold: float = 0.005
    frame_period: int = 5
    verbose: bool = False

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> MotionDetectConfig:
        defaults = cls()
        return cls(
            roi_x=float(params.get("roi_x", defaults.roi_x)),
            roi_y=float(params.get("roi_y", defaults.roi_y)),
            roi_width=float(params.get("roi_width", defaults.roi_width)),
            roi_height=float(params.get("roi_height", defaults.roi_height)),
            hskip=int(params.get("hskip", defaults.hskip)),
            vskip=int(params.get("vskip", defaults.vskip)),
            difference_m=float(params.get("difference_m", defaults.difference_m)),
            difference_c=int(params.get("difference_c", defaults.difference_c)),
            region_threshold=float(params.get("region_threshold", defaults.region_threshold)),
            frame_period=int(params.get("frame_period", defaults.frame_period)),
            verbose=bool(int(params.get("verbose", 0))),
        )


def _to_unsigned(value: float) -> int:
    return max(int(value), 0)


class MotionDetector:
    """Compares each frame's region of interest with the previous one."""

    name = "motion_detect"

    def __init__(self, config: MotionDetectConfig, width: int, height: int, stride: int) -> None:
        config = dataclasses.replace(config, hskip=max(config.hskip, 1), vskip=max(config.vskip, 1))
        self.config = config
        width //= config.hskip
        height //= config.vskip
        self._lores_stride = stride * config.vskip

        # Pixel positions as if the image were subsampled by hskip and vskip.
        roi_x = _to_unsigned(config.roi_x * width)
        roi_y = _to_unsigned(config.roi_y * height)
        roi_width = _to_unsigned(config.roi_width * width)
        roi_height = _to_unsigned(config.roi_height * height)
        threshold = _to_unsigned(config.region_threshold * roi_width * roi_height)

        roi_x = min(roi_x, width)
        roi_y = min(roi_y, height)
        roi_width = min(roi_width, width - roi_x)
        roi_height = min(roi_height, height - roi_y)
        self.region_threshold = min(threshold, roi_width * roi_height)
        self.roi = Rectangle(roi_x, roi_y, roi_width, roi_height)

        if config.verbose:
            log.info(
                "Lores: %dx%d roi: (%d,%d) %dx%d threshold: %d",
                width, height, roi_x, roi_y, roi_width, roi_height, self.region_threshold,
            )

        self._previous = np.zeros((roi_height, roi_width), dtype=np.uint8)
        self._first_time = True
        self._motion_detected = False
        self._lock = threading.Lock()

    @property
    def motion_detected(self) -> bool:
        return self._motion_detected

    def _sample(self, image: bytes | bytearray | memoryview) -> np.ndarray:
        data = np.frombuffer(image, dtype=np.uint8)
        roi, hskip = self.roi, self.config.hskip
        rows = (roi.y + np.arange(roi.height))[:, None] * self._lores_stride
        cols = roi.x * hskip + np.arange(roi.width)[None, :] * hskip
        index = rows + cols
        if index.size and index.max() >= data.size:
            raise ValueError("image buffer too small for the configured region")
        return data[index]

    def process(self, image: bytes | bytearray | memoryview, sequence: int) -> bool | None:
        """Return whether motion was detected, or None if this frame is skipped."""
        period = self.config.frame_period
        if period and sequence % period:
            return None

        values = self._sample(image)
        with self._lock:
            if self._first_time:
                self._first_time = False
                self._previous = values
                return self._motion_detected

            old = self._previous.astype(np.float64)
            new = values.astype(np.float64)
            self._previous = values
            changed = np.abs(new - old) > self.config.difference_m * old + self.config.difference_c
            regions = int(np.count_nonzero(changed))
            motion = changed.size > 0 and regions >= self.region_threshold

            if self.config.verbose and motion != self._motion_detected:
                log.info("Motion %s", "detected" if motion else "stopped")
            self._motion_detected = motion
            return motion