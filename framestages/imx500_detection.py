"""Object detection from an on-sensor inference output tensor."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from framestages.geometry import Rectangle
from framestages.imx500 import InferenceConverter
from framestages.object_detect import Detection
from framestages.tracking import TemporalFilter, TemporalFilterConfig

log = logging.getLogger(__name__)

_EXPECTED_TENSORS = 4


@dataclass(frozen=True)
class BoundingBox:
    x0: float
    y0: float
    x1: float
    y1: float


@dataclass
class DetectionTensor:
    num_detections: int = 0
    bboxes: list[BoundingBox] = field(default_factory=list)
    scores: list[float] = field(default_factory=list)
    classes: list[float] = field(default_factory=list)


def _f32(value: float) -> float:
    return float(np.float32(value))


def parse_detection_tensor(data: Sequence[float], total_detections: int) -> DetectionTensor:
    """Split the flat tensor into boxes, scores, classes and the detection count.

    Boxes are stored as four blocks (y0, x0, y1, x1) of ``total_detections``
    values, followed by the scores, the classes and the number of detections.
    """
    n = total_detections
    if len(data) < 6 * n + 1:
        raise ValueError(f"tensor holds {len(data)} values, need {6 * n + 1}")
    values = [_f32(v) for v in data]
    bboxes = [
        BoundingBox(x0=values[i + n], y0=values[i], x1=values[i + 3 * n], y1=values[i + 2 * n])
        for i in range(n)
    ]
    scores = values[4 * n:5 * n]
    classes = values[5 * n:6 * n]
    num_detections = max(int(values[6 * n]), 0)
    if num_detections > n:
        log.info("Unexpected value for num_detections: %d, setting it to %d", num_detections, n)
        num_detections = n
    return DetectionTensor(num_detections, bboxes, scores, classes)


@dataclass
class Imx500DetectionConfig:
    max_detections: int
    threshold: float = 0.5
    classes: list[str] = field(default_factory=list)
    temporal_filter: TemporalFilterConfig | None = None

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> Imx500DetectionConfig:
        max_detections = int(params["max_detections"])
        if max_detections < 0:
            raise ValueError("max_detections must not be negative")
        temporal = params.get("temporal_filter")
        return cls(
            max_detections=max_detections,
            threshold=float(params.get("threshold", 0.5)),
            classes=[str(c) for c in params.get("classes", [])],
            temporal_filter=None if temporal is None else TemporalFilterConfig.from_dict(temporal),
        )


class Imx500ObjectDetector:
    """Turns output tensors into detections in ISP output coordinates."""

    name = "imx500_object_detection"

    def __init__(self, config: Imx500DetectionConfig, converter: InferenceConverter) -> None:
        self.config = config
        self.converter = converter
        self._tracker = TemporalFilter(
            config.temporal_filter or TemporalFilterConfig(),
            converter.output_size,
            reveal_when_empty=True,
        )
        self._lock = threading.Lock()

    def process_output_tensor(
        self,
        tensor: Sequence[float],
        num_tensors: int,
        tensor_data_num: int,
        scaler_crop: Rectangle,
    ) -> list[Detection]:
        """Decode one output tensor; raise ValueError if it has the wrong shape."""
        if num_tensors != _EXPECTED_TENSORS:
            raise ValueError(f"Invalid number of tensors {num_tensors}, expected {_EXPECTED_TENSORS}")
        total = tensor_data_num // 4
        # 4 coordinates, a score and a class per detection, plus the count.
        if len(tensor) != 6 * total + 1:
            raise ValueError(f"Invalid tensor size {len(tensor)}, expected {6 * total + 1}")
        output = parse_detection_tensor(tensor, total)

        cfg = self.config
        objects: list[Detection] = []
        for i in range(min(output.num_detections, cfg.max_detections)):
            class_index = int(output.classes[i]) & 0xFF
            score = output.scores[i]
            if score < cfg.threshold or class_index >= len(cfg.classes):
                continue
            b = output.bboxes[i]
            coords = [b.x0, b.y0, _f32(b.x1 - b.x0), _f32(b.y1 - b.y0)]
            box = self.converter.convert(coords, scaler_crop)
            objects.append(Detection(class_index, cfg.classes[class_index], score, box))

        log.debug("Number of objects detected: %d", len(objects))
        for i, obj in enumerate(objects):
            log.debug("[%d] : %s", i, obj)
        return objects

    def process(
        self,
        tensor: Sequence[float] | None,
        num_tensors: int,
        tensor_data_num: int,
        scaler_crop: Rectangle,
    ) -> list[Detection]:
        """Return the detections to report for one frame.

        With no tensor (``None``) the previous results are reported again.
        """
        with self._lock:
            if tensor is None:
                return self._tracker.visible()
            try:
                objects = self.process_output_tensor(tensor, num_tensors, tensor_data_num, scaler_crop)
            except ValueError as exc:
                log.error("%s", exc)
                objects = []
            if self.config.temporal_filter is not None:
                return self._tracker.update(objects)
            # Keep the results for frames that arrive without a tensor.
            self._tracker.replace(objects)
            return objects