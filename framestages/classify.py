"""Object classification results: top-n selection with hysteresis and labelling."""

from __future__ import annotations

import heapq
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from os import PathLike
from typing import Any

log = logging.getLogger(__name__)

_LABEL_PADDING = 16


@dataclass
class ObjectClassifyConfig:
    number_of_results: int = 3
    threshold_high: float = 0.2
    threshold_low: float = 0.1
    display_labels: bool = True
    labels_file: str = "/home/pi/models/labels.txt"
    verbose: bool = False

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> ObjectClassifyConfig:
        defaults = cls()
        return cls(
            number_of_results=int(params.get("number_of_results", defaults.number_of_results)),
            threshold_high=float(params.get("threshold_high", defaults.threshold_high)),
            threshold_low=float(params.get("threshold_low", defaults.threshold_low)),
            display_labels=bool(int(params.get("display_labels", 1))),
            labels_file=str(params.get("labels_file", defaults.labels_file)),
            verbose=bool(int(params.get("verbose", 0))),
        )


def read_labels(path: str | PathLike[str]) -> list[str]:
    """Read one label per line."""
    with open(path, encoding="utf-8") as f:
        lines = f.read().split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _short_label(text: str) -> str:
    start = text.find(":") + 1
    end = text.find(",")
    if end == -1 or end < start:
        return text[start:]
    return text[start:end]


def format_annotation(results: Iterable[tuple[str, float]]) -> str:
    """Text such as ``"Detected: tench 0.87, goldfish 0.1"``."""
    parts = (f"{_short_label(label)} {confidence:.2g}" for label, confidence in results)
    return "Detected: " + ", ".join(parts)


class ObjectClassifier:
    """Keeps the most likely classes from successive classifier outputs."""

    name = "object_classify_tf"

    def __init__(self, config: ObjectClassifyConfig, labels: Sequence[str], output_size: int) -> None:
        if output_size != len(labels):
            raise ValueError("ObjectClassifier: label count mismatch")
        self.config = config
        self.output_size = output_size
        padded = list(labels)
        padded.extend("" for _ in range(-len(padded) % _LABEL_PADDING))
        self.labels = padded
        self._top: list[tuple[float, int]] = []
        self.results: list[tuple[str, float]] = []

    def top_results(self, prediction: Sequence[int]) -> list[tuple[float, int]]:
        """Return ``(confidence, index)`` pairs in descending order.

        A class between the low and high thresholds is kept only if it was
        among the previous results.
        """
        cfg = self.config
        previous = {index for _, index in self._top}
        candidates = []
        for i, value in enumerate(prediction[: self.output_size]):
            confidence = value / 255.0
            if confidence < cfg.threshold_low:
                continue
            if confidence >= cfg.threshold_high or i in previous:
                candidates.append((confidence, i))
        limit = cfg.number_of_results if cfg.number_of_results >= 0 else len(candidates)
        self._top = heapq.nlargest(limit, candidates)
        return list(self._top)

    def interpret(self, prediction: Sequence[int]) -> list[tuple[str, float]]:
        """Return ``(label, confidence)`` for the top results of one output."""
        self.results = [(self.labels[i], conf) for conf, i in self.top_results(prediction)]
        if self.config.verbose:
            for label, conf in self.results:
                log.info("%s : %f", label, conf)
        return list(self.results)

    def annotation(self) -> str | None:
        """The annotation text for the latest results, or None if labels are not shown."""
        if not self.config.display_labels:
            return None
        return format_annotation(self.results)