"""Filesystem change watching with debounced, coalesced re-indexing.

ChangeWatcher is an explicit state machine per watched root:

    IDLE --event--> PENDING --timer--> PROCESSING --done--> IDLE
                      ^  |                  |
                      +--+ (re-arm)         +--events arrived--> PENDING

Create/change events add the path to a pending set and re-arm the debounce
timer. When the timer fires the pending set is drained and handed to
`on_batch` as one batch. Events arriving while a batch runs wait for the
next batch; only one batch runs at a time. Delete events skip the debounce
and call `on_delete` right away.

Events come from a watchdog observer thread through WatchdogBridge, which
hands them to the event loop with call_soon_threadsafe.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

logger = logging.getLogger(__name__)

CREATED = "created"
CHANGED = "changed"
DELETED = "deleted"


class WatchState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    PROCESSING = "processing"


class ChangeWatcher:
    def __init__(
        self,
        on_batch: Callable[[list[str]], Awaitable[None]],
        on_delete: Callable[[str], None] | None = None,
        on_refresh: Callable[[], None] | None = None,
        delay: float = 0.8,
        accept: Callable[[str], bool] | None = None,
    ):
        self.on_batch = on_batch
        self.on_delete = on_delete
        self.on_refresh = on_refresh
        self.delay = delay
        self.accept = accept
        self.state = WatchState.IDLE
        self.pending: set[str] = set()
        self.batches_processed = 0
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._closed = False

    def notify(self, path: str | Path, event: str = CHANGED):
        """Feed one filesystem event. Must be called on the event-loop thread."""
        if self._closed:
            return
        p = str(path)
        if self.accept is not None and not self.accept(p):
            return

        if event == DELETED:
            self.pending.discard(p)
            if self.on_delete is not None:
                try:
                    self.on_delete(p)
                except Exception:
                    logger.exception("Delete handler failed for %s", p)
            if self.on_refresh is not None:
                self.on_refresh()
            return

        self.pending.add(p)
        if self.state == WatchState.PROCESSING:
            # Picked up once the running batch finishes
            return
        self.state = WatchState.PENDING
        self._arm()

    def _arm(self):
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)

    def _fire(self):
        self._timer = None
        if self.state != WatchState.PENDING:
            return
        if not self.pending:
            # Everything pending was deleted meanwhile
            self.state = WatchState.IDLE
            return
        self._task = asyncio.get_running_loop().create_task(self._process())

    async def _process(self):
        self.state = WatchState.PROCESSING
        batch = sorted(self.pending)
        self.pending.clear()
        logger.debug("Processing %d changed paths", len(batch))
        try:
            await self.on_batch(batch)
        except Exception:
            logger.exception("Re-indexing batch of %d paths failed", len(batch))
        finally:
            self.batches_processed += 1
            if self.pending and not self._closed:
                self.state = WatchState.PENDING
                self._arm()
            else:
                self.state = WatchState.IDLE

    async def flush(self):
        """Run any pending batch now instead of waiting for the timer."""
        if self._task is not None and not self._task.done():
            await self._task
        if self.pending and self.state != WatchState.PROCESSING:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._task = asyncio.get_running_loop().create_task(self._process())
            await self._task

    async def wait_idle(self, timeout: float | None = None):
        """Wait until no batch is pending or running."""
        async def _wait():
            while self.state != WatchState.IDLE:
                if self._task is not None and not self._task.done():
                    await self._task
                else:
                    await asyncio.sleep(self.delay / 4 or 0.01)
        await asyncio.wait_for(_wait(), timeout)

    def close(self):
        self._closed = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.pending.clear()


class WatchdogBridge(FileSystemEventHandler):
    """Forwards watchdog events from the observer thread into a ChangeWatcher."""

    def __init__(self, watcher: ChangeWatcher, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self.watcher = watcher
        self.loop = loop

    def _post(self, path, event: str):
        if isinstance(path, bytes):
            path = path.decode("utf-8", errors="replace")
        if self.loop.is_closed():
            return
        self.loop.call_soon_threadsafe(self.watcher.notify, path, event)

    def on_created(self, event: FileSystemEvent):
        if not event.is_directory:
            self._post(event.src_path, CREATED)

    def on_modified(self, event: FileSystemEvent):
        if not event.is_directory:
            self._post(event.src_path, CHANGED)

    def on_deleted(self, event: FileSystemEvent):
        self._post(event.src_path, DELETED)

    def on_moved(self, event: FileSystemEvent):
        self._post(event.src_path, DELETED)
        self._post(event.dest_path, CREATED)


def start_observer(root: str | Path, watcher: ChangeWatcher, loop: asyncio.AbstractEventLoop) -> Observer:
    observer = Observer()
    observer.schedule(WatchdogBridge(watcher, loop), str(root), recursive=True)
    observer.start()
    logger.info("Watching %s", root)
    return observer
