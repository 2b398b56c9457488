from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class FixMethod(str, Enum):
    CROP = "crop"
    BLEED = "bleed"
    APPLY_GRADIENT_MAPS = "apply_gradient_maps"

    @property
    def order(self) -> int:
        return _METHOD_ORDER.index(self)


_METHOD_ORDER = [FixMethod.CROP, FixMethod.BLEED, FixMethod.APPLY_GRADIENT_MAPS]


@dataclass(frozen=True)
class BoundingBox:
    """Inclusive pixel rectangle."""

    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def full(cls, width: int, height: int) -> "BoundingBox":
        return cls(0, 0, width - 1, height - 1)

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1

    def union(self, other: "BoundingBox") -> "BoundingBox":
        return BoundingBox(
            min(self.left, other.left),
            min(self.top, other.top),
            max(self.right, other.right),
            max(self.bottom, other.bottom),
        )

    def padded(self, padding: int, width: int, height: int) -> "BoundingBox":
        return BoundingBox(
            max(0, self.left - padding),
            max(0, self.top - padding),
            min(width - 1, self.right + padding),
            min(height - 1, self.bottom + padding),
        )

    def is_full(self, width: int, height: int) -> bool:
        return self == BoundingBox.full(width, height)

    def as_slices(self) -> tuple[slice, slice]:
        return slice(self.top, self.bottom + 1), slice(self.left, self.right + 1)


@dataclass
class FixerOptions:
    folder: Path
    recursive: bool = False
    watch: bool = False
    move: Path | None = None
    allow_size_mismatch: bool = False
    root_images_are_sprites: bool = False
    purge_top_level_folders: bool = False
    if_match: str | None = None
    delete_source: bool = False
    gradient_maps_file: Path | None = None
    padding: int | None = None
    debug: bool = False
    methods: list[FixMethod] = field(default_factory=list)
