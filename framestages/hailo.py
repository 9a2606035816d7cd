"""Accelerator inference helpers: output tensors, row unpadding and coordinate mapping."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from framestages.geometry import Rectangle, Size


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass
class OutTensor:
    """One output tensor of an inference job."""

    data: bytes
    name: str
    height: int
    width: int
    features: int
    quant_info: Any = None
    format: Any = None

    def __str__(self) -> str:
        return f"OutTensor: h {self.height}, w {self.width}, c {self.features}"


def sort_out_tensors(tensors: Iterable[OutTensor]) -> list[OutTensor]:
    """Order tensors by increasing width, as post-processing expects."""
    return sorted(tensors, key=lambda t: t.width)


def copy_unpadded_rows(buffer: bytes | bytearray | memoryview, row_bytes: int, height: int, stride: int) -> bytes:
    """Return the image rows without the padding that a wider stride adds."""
    if row_bytes < 0 or height < 0 or stride < row_bytes:
        raise ValueError("stride must be at least the row length")
    data = memoryview(buffer).cast("B")
    needed = (height - 1) * stride + row_bytes if height else 0
    if len(data) < needed:
        raise ValueError("buffer too small for the image dimensions")
    if stride == row_bytes:
        return bytes(data[:row_bytes * height])
    return b"".join(bytes(data[i * stride:i * stride + row_bytes]) for i in range(height))


def convert_inference_coordinates(
    coords: Sequence[float],
    scaler_crops: Sequence[Rectangle],
    output_size: Size,
) -> Rectangle:
    """Map normalised ``(x, y, width, height)`` to ISP output coordinates.

    ``scaler_crops`` holds the main crop then the low resolution crop; with
    anything other than four coordinates and two crops an empty rectangle is
    returned.
    """
    if len(coords) != 4 or len(scaler_crops) != 2:
        return Rectangle()
    main_crop, lores_crop = scaler_crops

    def scale(value: float, extent: int) -> int:
        return _round_half_away(float(np.float32(value) * np.float32(extent - 1)))

    obj = Rectangle(
        scale(coords[0], lores_crop.width),
        scale(coords[1], lores_crop.height),
        scale(coords[2], lores_crop.width),
        scale(coords[3], lores_crop.height),
    )
    translated_l = obj.translated_by(lores_crop.top_left())
    bounded = translated_l.bounded_to(main_crop)
    translated_h = bounded.translated_by(-main_crop.top_left())
    return translated_h.scaled_by(output_size, main_crop.size())