"""Single-person pose estimation from heatmap and offset network outputs."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from framestages.geometry import Point

FEATURE_SIZE = 17
HEATMAP_DIMS = 9


def check_output_dims(dims: Sequence[int]) -> None:
    """Raise ValueError unless the heatmap tensor is 1 x 9 x 9 x 17."""
    actual = tuple(int(d) for d in dims)
    if actual[:4] != (1, HEATMAP_DIMS, HEATMAP_DIMS, FEATURE_SIZE):
        raise ValueError(f"Unexpected output dimensions {actual}")


def interpret_pose_outputs(
    heatmaps: Sequence[float],
    offsets: Sequence[float],
    main_width: int,
    main_height: int,
) -> tuple[list[Point], list[float]]:
    """Return the location and confidence of every keypoint.

    Locations are in main image pixels; the heatmap peak of each keypoint is
    refined by its offsets.
    """
    cells = HEATMAP_DIMS * HEATMAP_DIMS
    hm = np.asarray(heatmaps, dtype=np.float32).ravel()
    off = np.asarray(offsets, dtype=np.float32).ravel()
    if hm.size < cells * FEATURE_SIZE:
        raise ValueError("heatmap tensor is too small")
    if off.size < cells * 2 * FEATURE_SIZE:
        raise ValueError("offset tensor is too small")

    grid = hm[: cells * FEATURE_SIZE].reshape(cells, FEATURE_SIZE)
    # argmax keeps the first maximum, as a strict ">" scan would.
    best = grid.argmax(axis=0)
    confidences = [float(grid[cell, i]) for i, cell in enumerate(best)]

    locations = []
    for i, cell in enumerate(best):
        y, x = divmod(int(cell), HEATMAP_DIMS)
        j = 2 * FEATURE_SIZE * int(cell) + i
        loc_y = np.float32(y * main_height // (HEATMAP_DIMS - 1)) + off[j]
        loc_x = np.float32(x * main_width // (HEATMAP_DIMS - 1)) + off[j + FEATURE_SIZE]
        locations.append(Point(int(loc_x), int(loc_y)))
    return locations, confidences