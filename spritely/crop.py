from __future__ import annotations

import numpy as np

from .frame import Frame
from .models import BoundingBox


def find_bounding_box(mask: np.ndarray) -> BoundingBox | None:
    """Smallest inclusive box around the True pixels of ``mask``."""
    rows = np.flatnonzero(mask.any(axis=1))
    if len(rows) == 0:
        return None
    cols = np.flatnonzero(mask.any(axis=0))
    return BoundingBox(int(cols[0]), int(rows[0]), int(cols[-1]), int(rows[-1]))


def frame_bounding_box(frame: Frame) -> BoundingBox | None:
    # Frames without alpha are all foreground.
    return find_bounding_box(frame.foreground_mask(0))


def union_box(boxes: list[BoundingBox | None], width: int, height: int) -> BoundingBox:
    """Union of all boxes. An empty box counts as the full canvas."""
    full = BoundingBox.full(width, height)
    result: BoundingBox | None = None
    for box in boxes:
        box = full if box is None else box
        result = box if result is None else result.union(box)
    return full if result is None else result


def crop_box(
    box: BoundingBox | None, padding: int, width: int, height: int
) -> BoundingBox:
    if box is None:
        return BoundingBox.full(width, height)
    return box.padded(padding, width, height)


def crop_frame(frame: Frame, box: BoundingBox) -> bool:
    """Crop ``frame`` in memory. Returns False when the box is the whole canvas."""
    if box.is_full(frame.width, frame.height):
        return False
    rows, cols = box.as_slices()
    frame.pixels = np.ascontiguousarray(frame.pixels[rows, cols])
    return True
