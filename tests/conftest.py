"""Pytest configuration and fixtures."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from PIL import Image


def write_png(
    path: Path,
    size: tuple[int, int] = (10, 10),
    boxes: list[tuple[int, int, int, int]] | None = None,
    color: tuple[int, int, int, int] = (200, 40, 40, 255),
    mode: str = "RGBA",
) -> Path:
    """Write a transparent canvas with inclusive ``(left, top, right, bottom)`` boxes filled."""
    width, height = size
    channels = 4 if mode == "RGBA" else 3
    pixels = np.zeros((height, width, channels), dtype=np.uint8)
    for left, top, right, bottom in boxes or []:
        pixels[top : bottom + 1, left : right + 1] = color[:channels]
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(pixels).save(path, format="PNG")
    return path


def read_pixels(path: Path) -> np.ndarray:
    with Image.open(path) as img:
        return np.array(img)


@pytest.fixture
def png_writer():
    return write_png


@pytest.fixture
def pixels_of():
    return read_pixels


@pytest.fixture
def two_frame_sprite(tmp_path: Path) -> Path:
    """10x10 frames with foreground at (2,2)-(4,4) and (5,5)-(7,7)."""
    sprite = tmp_path / "pearl"
    write_png(sprite / "a.png", boxes=[(2, 2, 4, 4)])
    write_png(sprite / "b.png", boxes=[(5, 5, 7, 7)])
    return sprite


@pytest.fixture
def single_pixel_sprite(tmp_path: Path) -> Path:
    sprite = tmp_path / "dot"
    write_png(sprite / "dot.png", size=(5, 5), boxes=[(2, 2, 2, 2)], color=(100, 150, 200, 255))
    return sprite
