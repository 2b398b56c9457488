from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import re

from .border_remover import WhiteBorderRemover
from .config import SpritelyConfig
from .errors import NoSubimagesFound, SpritelyError
from .interfaces import BorderRemoverInterface
from .models import FixerOptions, FixMethod
from .name_overrides import parse_name_overrides
from .sprite import Sprite, assert_directory, list_subimages
from .storage import RetryingStorage
from .watch import watch_folder


logger = logging.getLogger(__name__)


@dataclass
class FixReport:
    changed: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    failed: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


def top_level_dir(path: Path, root: Path) -> str | None:
    parts = path.relative_to(root).parts
    return parts[0] if parts else None


def discover_sprite_dirs(root: Path, recursive: bool = False) -> list[Path]:
    """Candidate sprite folders, deepest first so children finish before parents."""
    folders = [root]
    if recursive:
        folders.extend(path for path in root.rglob("*") if path.is_dir())
    return sorted(folders, key=lambda path: (-len(path.relative_to(root).parts), str(path)))


def is_png_tree(folder: Path) -> bool:
    return all(child.is_dir() or child.suffix.lower() == ".png" for child in folder.rglob("*"))


class SpriteFixer:
    def __init__(
        self,
        options: FixerOptions,
        config: SpritelyConfig | None = None,
        storage: RetryingStorage | None = None,
        border_remover: BorderRemoverInterface | None = None,
    ) -> None:
        self._options = options
        self._config = config or SpritelyConfig()
        self._storage = storage or RetryingStorage(
            self._config.retry_attempts, self._config.retry_delay
        )
        self._border_remover = border_remover or WhiteBorderRemover(
            self._config.vendor_software
        )
        self._root = Path(options.folder)
        self._move_root = Path(options.move) if options.move else None
        self._if_match = re.compile(options.if_match) if options.if_match else None
        self._padding = (
            options.padding if options.padding is not None else self._config.crop_padding
        )

    @property
    def root(self) -> Path:
        return self._root

    async def run(self) -> FixReport:
        assert_directory(self._root)
        if self._options.root_images_are_sprites:
            await self._root_images_to_sprites()

        sprite_dirs = self.sprite_dirs()
        if self._options.purge_top_level_folders and self._move_root:
            await self._purge_top_level_folders(sprite_dirs)

        report = FixReport()
        for sprite_dir in sprite_dirs:
            await self._fix_sprite_dir(sprite_dir, report)

        if self._move_root:
            await self._prune_empty_dirs()
        logger.info(
            "Processed %s sprites: %s changed, %s unchanged, %s failed",
            len(report.changed) + len(report.unchanged) + len(report.failed),
            len(report.changed),
            len(report.unchanged),
            len(report.failed),
        )
        return report

    def sprite_dirs(self) -> list[Path]:
        return [
            sprite_dir
            for sprite_dir in discover_sprite_dirs(self._root, self._options.recursive)
            if self._is_candidate(sprite_dir)
        ]

    def _is_candidate(self, sprite_dir: Path) -> bool:
        if not (self._options.purge_top_level_folders or self._if_match):
            return True
        top = top_level_dir(sprite_dir, self._root)
        if top is None:
            return False
        if self._if_match is None:
            return True
        return bool(self._if_match.search(top))

    async def _root_images_to_sprites(self) -> None:
        for image in list_subimages(self._root):
            folder = self._root / image.stem
            await self._storage.make_dir(folder)
            await self._storage.move_file(image, folder / image.name)
            logger.debug("Moved root image %s into its own sprite folder", image.name)

    async def _purge_top_level_folders(self, sprite_dirs: list[Path]) -> None:
        tops = sorted({top_level_dir(d, self._root) for d in sprite_dirs} - {None})
        for top in tops:
            target = self._move_root / top
            if not target.is_dir():
                continue
            if not is_png_tree(target):
                logger.warning("Not purging %s: it contains non-image files", target)
                continue
            await self._storage.empty_dir(target)
            await self._storage.call(target.rmdir)
            logger.debug("Purged %s", target)

    async def _rename_for_overrides(self, sprite_dir: Path, bare_name: str) -> Path:
        renamed = sprite_dir.with_name(bare_name)
        await self._storage.remove_tree(renamed)
        await self._storage.copy_tree(sprite_dir, renamed)
        await self._storage.remove_tree(sprite_dir)
        logger.debug("Renamed %s to %s", sprite_dir.name, bare_name)
        return renamed

    def _resolve_methods(self, sprite_dir: Path) -> tuple[str, list[FixMethod]]:
        if sprite_dir == self._root:
            methods = sorted(set(self._options.methods), key=lambda method: method.order)
            return sprite_dir.name, methods
        overrides = parse_name_overrides(sprite_dir.name)
        return overrides.name, overrides.resolve(self._options.methods)

    async def _fix_sprite_dir(self, sprite_dir: Path, report: FixReport) -> None:
        try:
            bare_name, methods = self._resolve_methods(sprite_dir)
            if bare_name != sprite_dir.name:
                sprite_dir = await self._rename_for_overrides(sprite_dir, bare_name)
            sprite = Sprite(
                sprite_dir,
                allow_size_mismatch=self._options.allow_size_mismatch,
                gradient_maps_file=self._options.gradient_maps_file,
                storage=self._storage,
                border_remover=self._border_remover,
            )
            before = await sprite.checksums()
            for method in methods:
                await self._apply(sprite, method)
            after = await sprite.checksums()
            if self._move_root:
                await self._relocate(sprite, sprite_dir)
        except NoSubimagesFound:
            logger.debug("Skipping %s: no subimages", sprite_dir)
            report.skipped.append(sprite_dir)
            return
        except SpritelyError as exc:
            logger.warning("Sprite fix failed for %s: %s", sprite_dir, exc)
            report.failed.append(sprite_dir)
            return
        except Exception as exc:
            logger.error(
                "Unexpected error fixing %s: %s",
                sprite_dir,
                exc,
                exc_info=self._options.debug,
            )
            report.failed.append(sprite_dir)
            return

        if set(after) <= set(before):
            logger.debug("Sprite %s unchanged", sprite_dir)
            report.unchanged.append(sprite_dir)
        else:
            logger.info("Fixed sprite %s", sprite_dir)
            report.changed.append(sprite_dir)

    async def _apply(self, sprite: Sprite, method: FixMethod) -> None:
        if method is FixMethod.CROP:
            await sprite.crop(self._padding)
        elif method is FixMethod.BLEED:
            await sprite.bleed()
        elif method is FixMethod.APPLY_GRADIENT_MAPS:
            await sprite.apply_gradient_maps(self._options.delete_source)

    async def _relocate(self, sprite: Sprite, sprite_dir: Path) -> None:
        destination = self._move_root / sprite_dir.relative_to(self._root)
        if destination.is_dir():
            keep = {path.name for path in sprite.paths}
            for existing in list_subimages(destination):
                if existing.name not in keep:
                    await self._storage.remove_file(existing)
        await sprite.move(destination, keep_directory=sprite_dir == self._root)
        logger.debug("Moved %s to %s", sprite_dir, destination)

    async def _prune_empty_dirs(self) -> None:
        folders = [path for path in self._root.rglob("*") if path.is_dir()]
        folders.sort(key=lambda path: len(path.parts), reverse=True)
        for folder in folders:
            if folder.exists() and not any(folder.iterdir()):
                await self._storage.call(folder.rmdir)


async def fix_sprites(options: FixerOptions, config: SpritelyConfig | None = None) -> FixReport:
    """Run the batch once and, with ``options.watch``, keep re-running on changes."""
    config = config or SpritelyConfig()
    fixer = SpriteFixer(options, config)
    report = await fixer.run()
    if options.watch:
        await watch_folder(
            fixer.root,
            fixer.run,
            recursive=options.recursive,
            debounce=config.watch_debounce,
        )
    return report
