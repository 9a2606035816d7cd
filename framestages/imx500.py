"""Helpers for an on-sensor inference camera: tensor encoding, coordinates, ROI, progress."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np

from framestages.geometry import Rectangle, Size

log = logging.getLogger(__name__)

FULL_SENSOR_RESOLUTION = Rectangle(0, 0, 4056, 3040)

_DNN_NORM_SIGNED_SHIFT = 8
_DNN_NORM_MASK = 0x01FF


def _to_int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _to_int8(value: int) -> int:
    return ((value + 0x80) & 0xFF) - 0x80


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def conv_reg_signed(reg: int) -> int:
    """Interpret a normalisation register as a 9-bit signed value."""
    reg = _to_int16(reg)
    if not (reg >> _DNN_NORM_SIGNED_SHIFT) & 1:
        return reg
    return -((~reg + 1) & _DNN_NORM_MASK)


@dataclass
class InputTensorEncoder:
    """Reverses the sensor's input normalisation to recover saved input tensors."""

    filename: str
    num_tensors: int = 1
    norm_val: tuple[int, ...] = (0, 0, 0, 0)
    norm_shift: tuple[int, ...] = (0, 0, 0, 0)
    div_val: tuple[int, ...] = (1, 1, 1, 1)
    div_shift: int = 0

    def __post_init__(self) -> None:
        self.norm_val = tuple(int(v) for v in self.norm_val)
        self.norm_shift = tuple(int(v) & 0xFF for v in self.norm_shift)
        self.div_val = tuple(_to_int16(int(v)) for v in self.div_val)
        for name in ("norm_val", "norm_shift", "div_val"):
            if len(getattr(self, name)) < 3:
                raise ValueError(f"{name} needs a value for each of three channels")
        if any(v == 0 for v in self.div_val[:3]):
            raise ValueError("div_val must not be zero")
        if self.div_shift < 0:
            raise ValueError("div_shift must not be negative")

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> InputTensorEncoder:
        return cls(
            filename=str(params["filename"]),
            num_tensors=int(params.get("num_tensors", 1)),
            norm_val=tuple(params.get("norm_val", (0, 0, 0, 0))),
            norm_shift=tuple(params.get("norm_shift", (0, 0, 0, 0))),
            div_val=tuple(params.get("div_val", (1, 1, 1, 1))),
            div_shift=int(params.get("div_shift", 0)),
        )

    def encode(self, tensor: Iterable[int]) -> bytes:
        """Convert raw signed input tensor bytes (RGB interleaved) to output bytes."""
        norms = [conv_reg_signed(v) for v in self.norm_val[:3]]
        out = bytearray()
        for i, value in enumerate(tensor):
            channel = i % 3
            sample = _to_int8(int(value))
            sample = _to_int16((sample << self.norm_shift[channel]) - norms[channel])
            sample = _trunc_div(sample << self.div_shift, self.div_val[channel]) & 0xFF
            out.append(sample)
        return bytes(out)


class InferenceConverter:
    """Maps inference image coordinates to ISP output coordinates."""

    def __init__(
        self,
        output_size: Size,
        sensor_output_size: Size,
        full_sensor_resolution: Rectangle = FULL_SENSOR_RESOLUTION,
    ) -> None:
        self.output_size = output_size
        self.sensor_output_size = sensor_output_size
        self.full_sensor_resolution = full_sensor_resolution

    def convert(self, coords: Sequence[float], scaler_crop: Rectangle) -> Rectangle:
        """Convert normalised ``(x, y, width, height)`` to an output rectangle."""
        if len(coords) != 4:
            raise ValueError("coordinates must be x, y, width and height")
        full = self.full_sensor_resolution
        sensor_crop = scaler_crop.scaled_by(self.sensor_output_size, full.size())

        def scale(value: float, extent: int) -> int:
            return _round_half_away(float(np.float32(value) * np.float32(extent - 1)))

        obj = Rectangle(
            scale(coords[0], full.width),
            scale(coords[1], full.height),
            scale(coords[2], full.width),
            scale(coords[3], full.height),
        )
        obj_sensor = obj.scaled_by(self.sensor_output_size, full.size())
        obj_bound = obj_sensor.bounded_to(sensor_crop)
        obj_translated = obj_bound.translated_by(-sensor_crop.top_left())
        obj_scaled = obj_translated.scaled_by(self.output_size, sensor_crop.size())
        log.debug(
            "%s -> (sensor) %s -> (bound) %s -> (translate) %s -> (scaled) %s",
            obj, obj_sensor, obj_bound, obj_translated, obj_scaled,
        )
        return obj_scaled

    def roi_abs(self, roi: Rectangle) -> Rectangle:
        """The inference region actually used for ``roi``: bounded to the sensor."""
        return roi.bounded_to(self.full_sensor_resolution)

    def roi_auto(self, width: int, height: int) -> Rectangle:
        """The largest centred region with the aspect ratio ``width:height``."""
        full = self.full_sensor_resolution
        size = full.size().bounded_to_aspect_ratio(Size(width, height))
        region = size.centered_to(full.center()).enclosed_in(full)
        return self.roi_abs(region)


@dataclass(frozen=True)
class FirmwareProgress:
    current: int
    total: int
    done: bool


_NUMBER = re.compile(r"\s*(\d+)")


def _leading_numbers(text: str) -> list[int]:
    numbers = []
    pos = 0
    while (match := _NUMBER.match(text, pos)) is not None:
        numbers.append(int(match.group(1)))
        pos = match.end()
    return numbers


def parse_progress(fw_text: str, block_text: str) -> FirmwareProgress | None:
    """Parse firmware upload state; None unless an upload is in progress.

    ``fw_text`` holds state, current size and total size; ``block_text``
    holds the progress within the current block.
    """
    progress = _leading_numbers(fw_text)
    blocks = _leading_numbers(block_text)
    block_progress = blocks[0] if blocks else 0
    if len(progress) != 3 or progress[0] != 2:
        return None
    state, current, total = progress
    return FirmwareProgress(
        current=current + block_progress,
        total=total,
        done=bool(total) and current == total,
    )


def format_progress(progress: FirmwareProgress) -> str:
    """The progress line shown while firmware uploads."""
    if progress.total == 0:
        raise ValueError("total size is zero")
    percent = progress.current * 100 // progress.total
    return (
        f"Network Firmware Upload: {percent}% "
        f"({progress.current // 1024}/{progress.total // 1024} KB)"
    )