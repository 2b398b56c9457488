from __future__ import annotations

import numpy as np
from scipy import ndimage

from .interfaces import BorderRemoverInterface


class WhiteBorderRemover(BorderRemoverInterface):
    """Strip the opaque white fringe some exporters leave around soft edges."""

    def __init__(self, vendor_software: tuple[str, ...] = ("Adobe Animate",)) -> None:
        self.vendor_software = tuple(v.lower() for v in vendor_software if v)

    def applies_to(self, software: str | None) -> bool:
        if not software:
            return False
        lowered = software.lower()
        return any(vendor in lowered for vendor in self.vendor_software)

    def remove(self, pixels: np.ndarray, max_value: int) -> np.ndarray:
        if pixels.shape[2] != 4:
            return pixels
        alpha = pixels[:, :, 3]
        opaque_white = np.all(pixels == max_value, axis=2)
        transparent = alpha == 0
        touches_transparent = ndimage.binary_dilation(
            transparent, structure=np.ones((3, 3), dtype=bool)
        )
        border = opaque_white & touches_transparent
        if not border.any():
            return pixels
        result = pixels.copy()
        result[border] = 0
        return result
