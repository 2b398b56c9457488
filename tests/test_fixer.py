"""Tests for the batch orchestrator."""

from __future__ import annotations

from pathlib import Path

import pytest

from spritely.config import SpritelyConfig
from spritely.fixer import (
    FixReport,
    SpriteFixer,
    discover_sprite_dirs,
    fix_sprites,
    top_level_dir,
)
from spritely.models import FixerOptions, FixMethod
from spritely.sprite import Sprite

from conftest import read_pixels, write_png


CONFIG = SpritelyConfig(retry_delay=0.01)


def options(folder: Path, *methods: FixMethod, **kwargs) -> FixerOptions:
    return FixerOptions(folder=folder, methods=list(methods), **kwargs)


def tight_sprite(folder: Path) -> None:
    """A sprite whose foreground already fills the canvas."""
    write_png(folder / "a.png", size=(4, 4), boxes=[(0, 0, 3, 3)])


class TestDiscovery:
    def test_deepest_first(self, tmp_path: Path):
        (tmp_path / "a" / "b" / "c").mkdir(parents=True)
        (tmp_path / "z").mkdir()
        found = discover_sprite_dirs(tmp_path, recursive=True)
        assert found == [
            tmp_path / "a" / "b" / "c",
            tmp_path / "a" / "b",
            tmp_path / "a",
            tmp_path / "z",
            tmp_path,
        ]

    def test_not_recursive(self, tmp_path: Path):
        (tmp_path / "a").mkdir()
        assert discover_sprite_dirs(tmp_path) == [tmp_path]

    def test_top_level_dir(self, tmp_path: Path):
        assert top_level_dir(tmp_path / "a" / "b", tmp_path) == "a"
        assert top_level_dir(tmp_path, tmp_path) is None

    def test_if_match_filters_top_level(self, tmp_path: Path):
        (tmp_path / "hero" / "walk").mkdir(parents=True)
        (tmp_path / "villain").mkdir()
        fixer = SpriteFixer(options(tmp_path, recursive=True, if_match="^her"), CONFIG)
        assert fixer.sprite_dirs() == [tmp_path / "hero" / "walk", tmp_path / "hero"]


@pytest.mark.asyncio
class TestRun:
    async def test_recursive_crop_changes_only_loose_sprites(self, tmp_path: Path):
        root = tmp_path / "dir"
        nested = root / "subdir" / "subsubdir"
        write_png(nested / "a.png", boxes=[(2, 2, 4, 4)])
        write_png(nested / "b.png", boxes=[(5, 5, 7, 7)])
        tight_sprite(root / "subdir" / "sibling")
        nested_before = await Sprite(nested).checksums()
        sibling_before = await Sprite(root / "subdir" / "sibling").checksums()

        report = await SpriteFixer(options(root, FixMethod.CROP, recursive=True), CONFIG).run()

        assert set(await Sprite(nested).checksums()).isdisjoint(nested_before)
        assert await Sprite(root / "subdir" / "sibling").checksums() == sibling_before
        assert report.changed == [nested]
        assert report.unchanged == [root / "subdir" / "sibling"]
        assert root / "subdir" in report.skipped

    async def test_validation_errors_do_not_stop_batch(self, tmp_path: Path):
        write_png(tmp_path / "broken" / "a.png", size=(4, 4))
        write_png(tmp_path / "broken" / "b.png", size=(5, 4))
        write_png(tmp_path / "good" / "a.png", boxes=[(2, 2, 3, 3)])
        report = await SpriteFixer(options(tmp_path, FixMethod.CROP, recursive=True), CONFIG).run()
        assert report.failed == [tmp_path / "broken"]
        assert report.changed == [tmp_path / "good"]

    async def test_name_overrides_rename_and_select_methods(self, tmp_path: Path):
        write_png(tmp_path / "hero--nc--b" / "a.png", boxes=[(4, 4, 4, 4)])
        report = await SpriteFixer(options(tmp_path, FixMethod.CROP, recursive=True), CONFIG).run()
        renamed = tmp_path / "hero"
        assert not (tmp_path / "hero--nc--b").exists()
        pixels = read_pixels(renamed / "a.png")
        # Not cropped, but bled.
        assert pixels.shape[:2] == (10, 10)
        assert pixels[3, 3, 3] == 6
        assert report.changed == [renamed]

    async def test_rename_clobbers_existing(self, tmp_path: Path):
        write_png(tmp_path / "hero" / "old.png")
        write_png(tmp_path / "hero--nc" / "a.png", boxes=[(4, 4, 4, 4)])
        fixer = SpriteFixer(options(tmp_path, FixMethod.CROP), CONFIG)
        await fixer._fix_sprite_dir(tmp_path / "hero--nc", FixReport())
        assert sorted(p.name for p in (tmp_path / "hero").iterdir()) == ["a.png"]

    async def test_unknown_override_token_is_validation_failure(self, tmp_path: Path):
        write_png(tmp_path / "hero--shiny" / "a.png")
        report = await SpriteFixer(options(tmp_path, FixMethod.CROP, recursive=True), CONFIG).run()
        assert report.failed == [tmp_path / "hero--shiny"]

    async def test_root_images_are_sprites(self, tmp_path: Path):
        write_png(tmp_path / "coin.png", boxes=[(3, 3, 5, 5)])
        report = await SpriteFixer(
            options(tmp_path, FixMethod.CROP, recursive=True, root_images_are_sprites=True),
            CONFIG,
        ).run()
        assert not (tmp_path / "coin.png").exists()
        assert read_pixels(tmp_path / "coin" / "coin.png").shape[:2] == (5, 5)
        assert report.changed == [tmp_path / "coin"]

    async def test_move_mirrors_layout_and_drops_stale_frames(self, tmp_path: Path):
        source = tmp_path / "src"
        destination = tmp_path / "dst"
        write_png(source / "hero" / "walk" / "a.png", boxes=[(2, 2, 3, 3)])
        write_png(destination / "hero" / "walk" / "stale.png")
        write_png(destination / "hero" / "walk" / "a.png", size=(2, 2))
        await SpriteFixer(
            options(source, FixMethod.CROP, recursive=True, move=destination), CONFIG
        ).run()
        moved = destination / "hero" / "walk"
        assert sorted(p.name for p in moved.iterdir()) == ["a.png"]
        assert read_pixels(moved / "a.png").shape[:2] == (4, 4)
        assert not (source / "hero").exists()
        assert source.is_dir()

    async def test_purge_top_level_folders(self, tmp_path: Path):
        source = tmp_path / "src"
        destination = tmp_path / "dst"
        write_png(source / "hero" / "walk" / "a.png", boxes=[(2, 2, 3, 3)])
        write_png(source / "props" / "crate" / "a.png", boxes=[(2, 2, 3, 3)])
        write_png(destination / "hero" / "old" / "x.png")
        write_png(destination / "props" / "old" / "x.png")
        (destination / "props" / "readme.md").write_text("keep me", encoding="utf-8")

        await SpriteFixer(
            options(
                source,
                FixMethod.CROP,
                recursive=True,
                move=destination,
                purge_top_level_folders=True,
            ),
            CONFIG,
        ).run()

        assert not (destination / "hero" / "old").exists()
        assert (destination / "hero" / "walk" / "a.png").exists()
        assert (destination / "props" / "old" / "x.png").exists()
        assert (destination / "props" / "readme.md").exists()
        assert (destination / "props" / "crate" / "a.png").exists()

    async def test_fix_sprites_runs_once_without_watch(self, tmp_path: Path):
        write_png(tmp_path / "a.png", boxes=[(2, 2, 3, 3)])
        report = await fix_sprites(options(tmp_path, FixMethod.CROP, FixMethod.BLEED), CONFIG)
        assert report.changed == [tmp_path]
        assert read_pixels(tmp_path / "a.png").shape[:2] == (4, 4)

    async def test_second_run_reports_unchanged(self, tmp_path: Path):
        write_png(tmp_path / "a.png", boxes=[(2, 2, 3, 3)])
        opts = options(tmp_path, FixMethod.CROP, FixMethod.BLEED)
        await fix_sprites(opts, CONFIG)
        report = await fix_sprites(opts, CONFIG)
        assert report.unchanged == [tmp_path]

