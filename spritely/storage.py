from __future__ import annotations

import asyncio
from pathlib import Path
import shutil
from typing import Any, Callable, TypeVar

from .interfaces import StorageInterface
from .retry import retry


T = TypeVar("T")


class RetryingStorage(StorageInterface):
    """Filesystem calls run off the event loop and retried on transient errors."""

    def __init__(self, attempts: int = 5, delay: float = 0.25) -> None:
        self.attempts = attempts
        self.delay = delay

    async def call(self, func: Callable[..., T], *args: Any) -> T:
        return await retry(
            lambda: asyncio.to_thread(func, *args),
            max_attempts=self.attempts,
            delay=self.delay,
        )

    async def copy_tree(self, source: Path, destination: Path) -> None:
        await self.call(_merge_tree, source, destination)

    async def remove_tree(self, path: Path) -> None:
        if path.exists():
            await self.call(shutil.rmtree, path)

    async def remove_file(self, path: Path) -> None:
        await self.call(path.unlink, True)

    async def make_dir(self, path: Path) -> None:
        await self.call(_make_dir, path)

    async def move_file(self, source: Path, destination: Path) -> None:
        await self.call(shutil.move, source, destination)

    async def copy_file(self, source: Path, destination: Path) -> None:
        await self.call(shutil.copy2, source, destination)

    async def empty_dir(self, path: Path) -> None:
        for child in list(path.iterdir()):
            if child.is_dir() and not child.is_symlink():
                await self.remove_tree(child)
            else:
                await self.remove_file(child)


def _make_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _merge_tree(source: Path, destination: Path) -> None:
    shutil.copytree(source, destination, dirs_exist_ok=True)
