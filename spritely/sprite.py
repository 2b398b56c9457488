from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .border_remover import WhiteBorderRemover
from .bleed import bleed_frame
from .config import DEFAULT_CROP_PADDING
from .crop import crop_box, crop_frame, frame_bounding_box, union_box
from .errors import InvalidDirectory, InvalidGradientMapFile, NoSubimagesFound, SizeMismatch
from .frame import Frame, read_size
from .gradient_map import (
    PASSTHROUGH_NAME,
    GradientMap,
    find_gradient_maps_file,
    load_gradient_maps,
)
from .interfaces import BorderRemoverInterface, StorageInterface
from .models import BoundingBox
from .storage import RetryingStorage


logger = logging.getLogger(__name__)


def assert_directory(path: Path) -> None:
    if not path.exists():
        raise InvalidDirectory(path, "does not exist")
    if not path.is_dir():
        raise InvalidDirectory(path, "is not a folder")


def list_subimages(directory: Path) -> list[Path]:
    return sorted(
        child
        for child in directory.iterdir()
        if child.is_file() and child.suffix.lower() == ".png"
    )


class Sprite:
    """A folder of same-size PNG subimages treated as one multi-frame image.

    Operations rewrite the subimage files in place and return the sprite so
    they can be chained::

        sprite = Sprite(Path("hero"))
        await (await sprite.crop()).bleed()
    """

    def __init__(
        self,
        directory: Path,
        allow_size_mismatch: bool = False,
        gradient_maps_file: Path | None = None,
        storage: StorageInterface | None = None,
        border_remover: BorderRemoverInterface | None = None,
    ) -> None:
        self._root = Path(directory)
        self.allow_size_mismatch = allow_size_mismatch
        self.gradient_maps_file = gradient_maps_file
        self._storage = storage or RetryingStorage()
        self._border_remover = border_remover or WhiteBorderRemover()
        self._deleted = False

        assert_directory(self._root)
        self._paths = list_subimages(self._root)
        if not self._paths:
            raise NoSubimagesFound(self._root)
        self._width: int | None = None
        self._height: int | None = None
        if not allow_size_mismatch:
            self._width, self._height = self._common_size(self._paths)

    @staticmethod
    def _common_size(paths: list[Path]) -> tuple[int, int]:
        expected_width, expected_height = read_size(paths[0])
        for path in paths[1:]:
            width, height = read_size(path)
            if (width, height) != (expected_width, expected_height):
                raise SizeMismatch(path, expected_width, expected_height, width, height)
        return expected_width, expected_height

    @property
    def name(self) -> str:
        return self._root.name

    @property
    def path(self) -> Path:
        return self._root

    @property
    def paths(self) -> list[Path]:
        return list(self._paths)

    @property
    def width(self) -> int | None:
        return self._width

    @property
    def height(self) -> int | None:
        return self._height

    def _ensure_exists(self) -> None:
        if self._deleted:
            raise InvalidDirectory(self._root, "was deleted")
        assert_directory(self._root)

    async def _load_frames(self) -> list[Frame]:
        return list(
            await asyncio.gather(
                *(self._storage.call(Frame.load, path) for path in self._paths)
            )
        )

    async def _save(self, frame: Frame) -> None:
        await self._storage.call(frame.save)

    async def checksums(self) -> list[str]:
        self._ensure_exists()
        frames = await self._load_frames()
        return [frame.checksum() for frame in frames]

    @staticmethod
    def images_are_equal(first: "Path | Frame", second: "Path | Frame") -> bool:
        """Pixel equality, independent of file path and PNG encoding."""
        a = first if isinstance(first, Frame) else Frame.load(Path(first))
        b = second if isinstance(second, Frame) else Frame.load(Path(second))
        return a.pixel_equals(b)

    async def crop(self, padding: int = DEFAULT_CROP_PADDING) -> "Sprite":
        """Remove excess transparent padding while keeping frames aligned.

        All subimages are cropped to the union of their foreground boxes,
        so relative positions survive. With ``allow_size_mismatch`` each
        subimage is cropped to its own box instead.
        """
        if padding < 0:
            raise ValueError("padding must be 0 or positive")
        self._ensure_exists()
        frames = await self._load_frames()
        boxes = await asyncio.gather(
            *(asyncio.to_thread(frame_bounding_box, frame) for frame in frames)
        )

        if self.allow_size_mismatch:
            targets = [
                crop_box(box, padding, frame.width, frame.height)
                for frame, box in zip(frames, boxes)
            ]
        else:
            width, height = frames[0].width, frames[0].height
            shared = union_box(list(boxes), width, height).padded(padding, width, height)
            targets = [shared] * len(frames)

        changed = await asyncio.gather(
            *(self._crop_one(frame, box) for frame, box in zip(frames, targets))
        )
        if not self.allow_size_mismatch:
            self._width, self._height = frames[0].width, frames[0].height
        logger.debug("Cropped %s of %s subimages in %s", sum(changed), len(frames), self.name)
        return self

    async def _crop_one(self, frame: Frame, box: BoundingBox) -> bool:
        changed = await asyncio.to_thread(crop_frame, frame, box)
        if changed:
            await self._save(frame)
        return changed

    async def bleed(self) -> "Sprite":
        """Add a nearly invisible outline just outside the foreground."""
        self._ensure_exists()
        frames = await self._load_frames()
        await asyncio.gather(*(self._bleed_one(frame) for frame in frames))
        return self

    async def _bleed_one(self, frame: Frame) -> bool:
        changed = await asyncio.to_thread(self._clean_and_bleed, frame)
        if changed:
            await self._save(frame)
        return changed

    def _clean_and_bleed(self, frame: Frame) -> bool:
        changed = False
        if frame.has_alpha and self._border_remover.applies_to(frame.software):
            cleaned = self._border_remover.remove(frame.pixels, frame.max_value)
            if cleaned is not frame.pixels:
                frame.pixels = cleaned
                changed = True
        return bleed_frame(frame) or changed

    # Alias used by older pipelines.
    alphaline = bleed

    def gradient_maps(self) -> list[GradientMap]:
        path = self.gradient_maps_file or find_gradient_maps_file(self._root)
        if path is None:
            raise InvalidGradientMapFile(f"No gradient map file found for sprite '{self.name}'")
        if not path.is_file():
            raise InvalidGradientMapFile(f"Gradient map file {path} does not exist")
        return [
            gradient_map
            for gradient_map in load_gradient_maps(path)
            if gradient_map.applies_to_sprite(self.name)
        ]

    async def apply_gradient_maps(self, delete_source_images: bool = False) -> "Sprite":
        """Write a recolored copy of the sprite per skin into ``<sprite>/<skin>/``.

        A ``none`` folder receives unmodified copies of every subimage.
        """
        self._ensure_exists()
        maps: list[GradientMap | None] = [None, *self.gradient_maps()]
        for gradient_map in maps:
            folder = self._root / (gradient_map.name if gradient_map else PASSTHROUGH_NAME)
            await self._storage.remove_tree(folder)
            await self._storage.make_dir(folder)
            await asyncio.gather(
                *(
                    self._write_skin(path, folder / path.name, gradient_map)
                    for path in self._paths
                    if gradient_map is None or gradient_map.applies_to_subimage(path.stem)
                )
            )
            logger.debug("Wrote skin '%s' for %s", folder.name, self.name)
        if delete_source_images:
            for path in self._paths:
                await self._storage.remove_file(path)
            self._paths = []
        return self

    async def _write_skin(
        self, source: Path, destination: Path, gradient_map: GradientMap | None
    ) -> None:
        if gradient_map is None:
            await self._storage.copy_file(source, destination)
            return
        frame = await self._storage.call(Frame.load, source)
        frame = await asyncio.to_thread(gradient_map.recolor, frame)
        await self._storage.call(frame.save, destination)

    async def copy(self, destination: Path) -> "Sprite":
        """Copy to ``destination``, replacing anything already there."""
        self._ensure_exists()
        await self._storage.remove_tree(destination)
        await self._storage.copy_tree(self._root, destination)
        return Sprite(
            destination,
            allow_size_mismatch=self.allow_size_mismatch,
            gradient_maps_file=self.gradient_maps_file,
            storage=self._storage,
            border_remover=self._border_remover,
        )

    async def move(self, destination: Path, keep_directory: bool = False) -> "Sprite":
        """Merge this sprite's contents into ``destination``.

        The source folder is removed afterwards unless ``keep_directory``.
        """
        self._ensure_exists()
        await self._storage.make_dir(destination)
        for child in sorted(self._root.iterdir()):
            target = destination / child.name
            if child.is_dir():
                await self._storage.copy_tree(child, target)
                await self._storage.remove_tree(child)
            else:
                if target.is_dir():
                    await self._storage.remove_tree(target)
                elif target.exists():
                    await self._storage.remove_file(target)
                await self._storage.move_file(child, target)
        if not keep_directory:
            await self._storage.remove_tree(self._root)
        self._paths = [destination / path.name for path in self._paths]
        self._root = destination
        return self

    async def delete(self) -> None:
        self._ensure_exists()
        await self._storage.remove_tree(self._root)
        self._deleted = True
