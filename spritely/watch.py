from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchedRootDeleted


logger = logging.getLogger(__name__)


class Debouncer:
    """Single-slot timer in front of a non-reentrant async job.

    Each ``trigger`` re-arms the timer. When it fires while a run is already
    in progress the firing is dropped; the next trigger arms a fresh timer.
    """

    def __init__(
        self,
        delay: float,
        job: Callable[[], Awaitable[Any]],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.delay = delay
        self._job = job
        self._loop = loop or asyncio.get_running_loop()
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return self._running

    def trigger(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._loop.call_later(self.delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        if self._running:
            logger.debug("Run already in progress; trigger dropped")
            return
        self._running = True
        self._task = self._loop.create_task(self._run())

    async def _run(self) -> None:
        try:
            await self._job()
        except Exception as exc:
            logger.error("Watch run failed: %s", exc, exc_info=True)
        finally:
            self._running = False

    async def wait_idle(self) -> None:
        if self._task is not None:
            await asyncio.shield(self._task)


class SpriteChangeHandler(FileSystemEventHandler):
    """Forwards PNG additions and changes from the observer thread to the loop."""

    def __init__(
        self,
        root: Path,
        loop: asyncio.AbstractEventLoop,
        on_change: Callable[[], None],
        on_root_deleted: Callable[[], None],
    ) -> None:
        super().__init__()
        self._root = root.resolve()
        self._loop = loop
        self._on_change = on_change
        self._on_root_deleted = on_root_deleted

    @staticmethod
    def _is_png(path: Any) -> bool:
        if isinstance(path, bytes):
            path = path.decode()
        return str(path).lower().endswith(".png")

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_png(event.src_path):
            self._loop.call_soon_threadsafe(self._on_change)

    def on_modified(self, event: FileSystemEvent) -> None:
        self.on_created(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory and self._is_png(event.dest_path):
            self._loop.call_soon_threadsafe(self._on_change)

    def on_deleted(self, event: FileSystemEvent) -> None:
        src = event.src_path.decode() if isinstance(event.src_path, bytes) else event.src_path
        if Path(src).resolve() == self._root:
            self._loop.call_soon_threadsafe(self._on_root_deleted)


async def watch_folder(
    root: Path,
    run: Callable[[], Awaitable[Any]],
    recursive: bool = False,
    debounce: float = 1.0,
) -> None:
    """Re-run ``run`` after PNG activity under ``root`` settles.

    Returns only by raising ``WatchedRootDeleted`` when ``root`` goes away.
    """
    loop = asyncio.get_running_loop()
    stopped: asyncio.Future = loop.create_future()
    debouncer = Debouncer(debounce, run, loop)

    def root_deleted() -> None:
        if not stopped.done():
            stopped.set_exception(WatchedRootDeleted(f"Watched folder {root} was deleted"))

    handler = SpriteChangeHandler(root, loop, debouncer.trigger, root_deleted)
    observer = Observer()
    observer.schedule(handler, str(root), recursive=recursive)
    observer.start()
    pattern = "**/*.png" if recursive else "*.png"
    logger.info("Watching for sprite changes matching %s", root / pattern)
    try:
        await stopped
    finally:
        debouncer.cancel()
        observer.stop()
        await asyncio.to_thread(observer.join)
