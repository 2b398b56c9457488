from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Protocol, TypeVar

import numpy as np


T = TypeVar("T")


class Decodable(Protocol):
    path: Path | None

    def save(self, path: Path | None = None) -> Path:
        ...


class PixelAddressable(Protocol):
    pixels: np.ndarray
    bit_depth: int

    @property
    def width(self) -> int:
        ...

    @property
    def height(self) -> int:
        ...

    @property
    def channels(self) -> int:
        ...

    @property
    def has_alpha(self) -> bool:
        ...

    @property
    def max_value(self) -> int:
        ...


class Maskable(Protocol):
    def foreground_mask(self, threshold: int = 0) -> np.ndarray:
        ...


class BorderRemoverInterface(Protocol):
    def applies_to(self, software: str | None) -> bool:
        ...

    def remove(self, pixels: np.ndarray, max_value: int) -> np.ndarray:
        ...


class StorageInterface(Protocol):
    async def call(self, func: Callable[..., T], *args: Any) -> T:
        ...

    async def copy_tree(self, source: Path, destination: Path) -> None:
        ...

    async def remove_tree(self, path: Path) -> None:
        ...

    async def remove_file(self, path: Path) -> None:
        ...

    async def make_dir(self, path: Path) -> None:
        ...

    async def move_file(self, source: Path, destination: Path) -> None:
        ...

    async def copy_file(self, source: Path, destination: Path) -> None:
        ...

    async def empty_dir(self, path: Path) -> None:
        ...
