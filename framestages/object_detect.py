"""Object detection results from an SSD-style network: box mapping and overlap removal."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from os import PathLike
from typing import Any

import numpy as np

from framestages.geometry import Rectangle, Size

log = logging.getLogger(__name__)

# The network input size.
WIDTH = 300
HEIGHT = 300


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(value, hi))


@dataclass
class Detection:
    """One detected object with its box in main image coordinates."""

    category: int
    name: str
    confidence: float
    box: Rectangle

    def __str__(self) -> str:
        b = self.box
        return f"{self.name}[{self.category}] ({self.confidence:.2f}) @ {b.x},{b.y} {b.width}x{b.height}"


@dataclass
class ObjectDetectConfig:
    confidence_threshold: float = 0.5
    overlap_threshold: float = 0.5
    labels_file: str = ""
    verbose: bool = False

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> ObjectDetectConfig:
        defaults = cls()
        return cls(
            confidence_threshold=float(params.get("confidence_threshold", defaults.confidence_threshold)),
            overlap_threshold=float(params.get("overlap_threshold", defaults.overlap_threshold)),
            labels_file=str(params.get("labels_file", defaults.labels_file)),
            verbose=bool(int(params.get("verbose", 0))),
        )


def read_labels(path: str | PathLike[str]) -> list[str]:
    """Read the labels file; its first line is a placeholder and is dropped."""
    with open(path, encoding="utf-8") as f:
        lines = f.read().split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines[1:]


class ObjectDetector:
    """Turns network outputs into detections in main image coordinates."""

    name = "object_detect_tf"

    def __init__(self, config: ObjectDetectConfig, labels: Sequence[str], lores_size: Size, main_size: Size) -> None:
        if lores_size.width < WIDTH or lores_size.height < HEIGHT:
            raise ValueError(f"lores image must be at least {WIDTH}x{HEIGHT}")
        if main_size.width <= 0 or main_size.height <= 0:
            raise ValueError("a main stream is required")
        self.config = config
        self.labels = list(labels)
        self.lores_size = lores_size
        self.main_size = main_size
        self.results: list[Detection] = []
        if config.verbose:
            log.info("Read %d labels", len(self.labels))

    def _map_box(self, row: np.ndarray) -> Rectangle:
        h32, w32 = np.float32(HEIGHT), np.float32(WIDTH)
        y = _clamp(int(h32 * row[0]), 0, HEIGHT)
        x = _clamp(int(w32 * row[1]), 0, WIDTH)
        h = _clamp(int(h32 * row[2] - np.float32(y)), 0, HEIGHT)
        w = _clamp(int(w32 * row[3] - np.float32(x)), 0, WIDTH)
        # The network sees a centred crop of the lores image.
        lores, main = self.lores_size, self.main_size
        y += (lores.height - HEIGHT) // 2
        x += (lores.width - WIDTH) // 2
        # The lores image is a pure scaling of the main image.
        return Rectangle(
            x * main.width // lores.width,
            y * main.height // lores.height,
            w * main.width // lores.width,
            h * main.height // lores.height,
        )

    def interpret(self, boxes: Sequence[Any], classes: Sequence[float], scores: Sequence[float]) -> list[Detection]:
        """Build detections from box rows ``(ymin, xmin, ymax, xmax)``, classes and scores."""
        rows = np.asarray(boxes, dtype=np.float32).reshape(-1, 4)
        class_values = np.asarray(classes, dtype=np.float32).ravel()
        score_values = np.asarray(scores, dtype=np.float32).ravel()
        if len(class_values) < len(rows) or len(score_values) < len(rows):
            raise ValueError("classes and scores must cover every box")

        cfg = self.config
        results: list[Detection] = []
        for row, class_value, score_value in zip(rows, class_values, score_values):
            score = float(score_value)
            if score < cfg.confidence_threshold:
                continue
            category = int(class_value)
            detection = Detection(category, self.labels[category], score, self._map_box(row))

            overlapped = False
            for index, previous in enumerate(results):
                if previous.category != category:
                    continue
                overlap = previous.box.bounded_to(detection.box).area()
                if (overlap > cfg.overlap_threshold * previous.box.area()
                        or overlap > cfg.overlap_threshold * detection.box.area()):
                    if detection.confidence > previous.confidence:
                        results[index] = detection
                    overlapped = True
                    break
            if not overlapped:
                results.append(detection)

        self.results = results
        if cfg.verbose:
            for detection in results:
                log.info("%s", detection)
        return list(results)