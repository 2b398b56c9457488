from __future__ import annotations

from pathlib import Path
import hashlib

import numpy as np

from PIL import Image

from .interfaces import Decodable, Maskable, PixelAddressable


SIXTEEN_BIT_MODES = {"I;16", "I;16B", "I;16L", "I"}
GRAY_MODES = {"1", "L", "LA"} | SIXTEEN_BIT_MODES


def read_size(path: Path) -> tuple[int, int]:
    """Read image dimensions from the PNG header without decoding pixels."""
    with Image.open(path) as img:
        return img.size


def has_transparency(img: Image.Image) -> bool:
    if img.mode in {"RGBA", "LA", "PA"}:
        return True
    return img.mode == "P" and "transparency" in img.info


def _to_array(img: Image.Image) -> tuple[np.ndarray, int]:
    """Decode ``img`` into ``(pixels, bit_depth)``."""
    if img.mode in SIXTEEN_BIT_MODES:
        gray = np.clip(np.asarray(img, dtype=np.int64), 0, 0xFFFF).astype(np.uint16)
        return np.repeat(gray[:, :, None], 3, axis=2), 16
    if has_transparency(img):
        rgba = img if img.mode == "RGBA" else img.convert("RGBA")
        return np.array(rgba, dtype=np.uint8), 8
    rgb = img if img.mode == "RGB" else img.convert("RGB")
    return np.array(rgb, dtype=np.uint8), 8


def _to_image(pixels: np.ndarray, bit_depth: int, mode: str | None) -> Image.Image:
    """Encode ``pixels`` back into the narrowest mode that holds them.

    Grayscale sources stay grayscale while their channels agree. PNG has no
    16-bit colour mode in Pillow, so recolored 16-bit frames drop to 8 bits.
    """
    has_alpha = pixels.shape[2] == 4
    color = pixels[:, :, :3]
    gray = mode in GRAY_MODES and bool((color == color[:, :, :1]).all())
    if bit_depth == 16:
        if gray and not has_alpha:
            return Image.fromarray(np.ascontiguousarray(pixels[:, :, 0], dtype=np.uint16))
        pixels = (pixels >> 8).astype(np.uint8)
    if gray:
        channels = [0, 3] if has_alpha else 0
        return Image.fromarray(np.ascontiguousarray(pixels[:, :, channels]))
    return Image.fromarray(np.ascontiguousarray(pixels))


class Frame(Decodable, PixelAddressable, Maskable):
    """Decoded pixel buffer of a single subimage.

    Pixels are stored as an ``(height, width, channels)`` array with color
    channels first and alpha, when present, last. ``mode`` remembers the
    Pillow mode the frame was decoded from so saving keeps grayscale and
    16-bit sources in their own format.
    """

    def __init__(
        self,
        pixels: np.ndarray,
        path: Path | None = None,
        bit_depth: int = 8,
        software: str | None = None,
        mode: str | None = None,
    ) -> None:
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError("Frame pixels must have 3 or 4 channels")
        self.pixels = pixels
        self.path = path
        self.bit_depth = bit_depth
        self.software = software
        self.mode = mode

    @classmethod
    def load(cls, path: Path) -> "Frame":
        with Image.open(path) as img:
            img.load()
            software = img.info.get("Software")
            mode = img.mode
            pixels, bit_depth = _to_array(img)
        return cls(pixels, path=path, bit_depth=bit_depth, software=software, mode=mode)

    def save(self, path: Path | None = None) -> Path:
        target = path or self.path
        if target is None:
            raise ValueError("Frame has no path to save to")
        _to_image(self.pixels, self.bit_depth, self.mode).save(target, format="PNG")
        return target

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def has_alpha(self) -> bool:
        return self.channels == 4

    @property
    def max_value(self) -> int:
        return (1 << self.bit_depth) - 1

    @property
    def alpha(self) -> np.ndarray | None:
        if not self.has_alpha:
            return None
        return self.pixels[:, :, 3]

    def foreground_mask(self, threshold: int = 0) -> np.ndarray:
        alpha = self.alpha
        if alpha is None:
            return np.ones((self.height, self.width), dtype=bool)
        return alpha > threshold

    def checksum(self) -> str:
        return hashlib.sha256(np.ascontiguousarray(self.pixels).tobytes()).hexdigest()

    def pixel_equals(self, other: "Frame") -> bool:
        return (
            self.channels == other.channels
            and self.bit_depth == other.bit_depth
            and self.has_alpha == other.has_alpha
            and self.pixels.shape == other.pixels.shape
            and self.pixels.tobytes() == other.pixels.tobytes()
        )
