from __future__ import annotations

import math

import numpy as np
from scipy import ndimage

from .errors import NoAlphaChannel
from .frame import Frame


# Ring alpha is capped at this fraction of full scale.
RING_ALPHA_FRACTION = 0.02
NEIGHBOR_ALPHA_FACTOR = 0.5

FULL_STRUCTURE = np.ones((3, 3), dtype=bool)
NEIGHBOR_OFFSETS = [
    (dy, dx) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dy, dx) != (0, 0)
]


def ring_alpha_cap(max_value: int) -> int:
    return math.ceil(RING_ALPHA_FRACTION * max_value)


def foreground_threshold(max_value: int) -> int:
    """Pixels at or below the ring cap never count as foreground.

    Otherwise a second pass would grow another ring out of the first one.
    """
    return ring_alpha_cap(max_value)


def _shifted(padded: np.ndarray, dy: int, dx: int, height: int, width: int) -> np.ndarray:
    return padded[1 + dy : 1 + dy + height, 1 + dx : 1 + dx + width]


def bleed_pixels(pixels: np.ndarray, max_value: int) -> np.ndarray:
    """Return a copy of ``pixels`` with a low-alpha ring around the foreground."""
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise NoAlphaChannel(None)
    height, width = pixels.shape[:2]
    color = pixels[:, :, :3].astype(np.int64)
    alpha = pixels[:, :, 3].astype(np.int64)

    foreground = alpha > foreground_threshold(max_value)
    expanded = ndimage.binary_dilation(foreground, structure=FULL_STRUCTURE)
    outline = expanded & ~foreground
    if not outline.any():
        return pixels.copy()

    padded_fg = np.pad(foreground, 1, constant_values=False)
    padded_color = np.pad(color, ((1, 1), (1, 1), (0, 0)))
    padded_alpha = np.pad(alpha, 1)

    sums = np.zeros((height, width, 3), dtype=np.int64)
    counts = np.zeros((height, width), dtype=np.int64)
    min_alpha = np.full((height, width), max_value + 1, dtype=np.int64)
    for dy, dx in NEIGHBOR_OFFSETS:
        neighbor_fg = _shifted(padded_fg, dy, dx, height, width)
        sums += np.where(
            neighbor_fg[:, :, None], _shifted(padded_color, dy, dx, height, width), 0
        )
        counts += neighbor_fg
        min_alpha = np.where(
            neighbor_fg,
            np.minimum(min_alpha, _shifted(padded_alpha, dy, dx, height, width)),
            min_alpha,
        )

    targets = outline & (counts > 0)
    result = pixels.copy()
    n = counts[targets][:, None]
    # Half-up rounding of the neighbor mean.
    mean = (2 * sums[targets] + n) // (2 * n)
    ring_alpha = np.ceil(
        np.minimum(
            min_alpha[targets] * NEIGHBOR_ALPHA_FACTOR,
            RING_ALPHA_FRACTION * max_value,
        )
    )
    result[targets, :3] = mean.astype(pixels.dtype)
    result[targets, 3] = ring_alpha.astype(pixels.dtype)
    return result


def bleed_frame(frame: Frame) -> bool:
    """Bleed ``frame`` in memory. Returns True if any pixel changed."""
    if not frame.has_alpha:
        raise NoAlphaChannel(frame.path)
    bled = bleed_pixels(frame.pixels, frame.max_value)
    if np.array_equal(bled, frame.pixels):
        return False
    frame.pixels = bled
    return True
