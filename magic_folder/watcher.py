"""Folder watching: a debounced change detector feeding the indexing pipeline.

The watcher polls the folder, waits until a changed file has been quiet for
the debounce period and pushes its path onto a bounded queue. The worker
drains that queue one path at a time into ``IndexingPipeline.process``.
"""

import asyncio
import time
from pathlib import Path

from magic_folder.config import WatcherSettings
from magic_folder.exceptions import MagicFolderError
from magic_folder.logging_config import get_logger
from magic_folder.pipeline.indexing import IndexingPipeline

logger = get_logger(__name__)

# path -> (mtime_ns, size)
Snapshot = dict[Path, tuple[int, int]]


def scan_folder(folder: Path) -> Snapshot:
    """Stat every regular file under a folder, recursively."""
    snapshot: Snapshot = {}
    if not folder.is_dir():
        return snapshot
    for path in folder.rglob("*"):
        try:
            stat = path.stat()
        except OSError:
            # vanished between listing and stat
            continue
        if path.is_file():
            snapshot[path] = (stat.st_mtime_ns, stat.st_size)
    return snapshot


class FolderWatcher:
    """Polling, debounced watcher for one folder."""

    def __init__(
        self,
        settings: WatcherSettings,
        queue: "asyncio.Queue[Path]",
        include_existing: bool = False,
    ) -> None:
        """Initialize the watcher.

        Args:
            settings: Folder, debounce period and poll interval.
            queue: Destination for paths ready to process.
            include_existing: Queue files already present at startup.
        """
        self._settings = settings
        self._queue = queue
        self._include_existing = include_existing
        self._snapshot: Snapshot | None = None
        self._changed: dict[Path, float] = {}

    def detect(self, snapshot: Snapshot, now: float) -> list[Path]:
        """Compare a snapshot with the previous one.

        Args:
            snapshot: Current folder state.
            now: Monotonic time of the snapshot.

        Returns:
            Paths whose last change is older than the debounce period.
        """
        previous = self._snapshot
        self._snapshot = snapshot

        if previous is None:
            if not self._include_existing:
                return []
            previous = {}

        for path, state in snapshot.items():
            if previous.get(path) != state:
                self._changed[path] = now

        for path in list(self._changed):
            if path not in snapshot:
                del self._changed[path]

        ready = sorted(
            path
            for path, changed_at in self._changed.items()
            if now - changed_at >= self._settings.debounce_seconds
        )
        for path in ready:
            del self._changed[path]
        return ready

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Poll until ``stop`` is set (or forever)."""
        folder = self._settings.folder
        logger.info("Watching folder", extra={"folder": str(folder)})

        while stop is None or not stop.is_set():
            snapshot = await asyncio.to_thread(scan_folder, folder)
            for path in self.detect(snapshot, time.monotonic()):
                logger.debug("Queueing changed file", extra={"path": str(path)})
                await self._queue.put(path)
            await asyncio.sleep(self._settings.poll_interval)


class IndexingWorker:
    """Feeds queued paths to the indexing pipeline, one at a time."""

    def __init__(
        self,
        pipeline: IndexingPipeline,
        queue: "asyncio.Queue[Path]",
    ) -> None:
        self._pipeline = pipeline
        self._queue = queue
        self.processed = 0
        self.skipped = 0
        self.failed = 0

    async def run_once(self) -> None:
        """Process the next queued path.

        Pipeline failures are logged and counted, never raised.
        """
        path = await self._queue.get()
        try:
            outcome = await self._pipeline.process(path)
        except MagicFolderError as e:
            self.failed += 1
            logger.error(
                f"Failed to process {path}: {e.message}",
                extra={"path": str(path), "error_code": e.code.value},
            )
        else:
            if outcome.is_skipped:
                self.skipped += 1
            else:
                self.processed += 1
        finally:
            self._queue.task_done()

    async def run(self) -> None:
        """Process paths until cancelled."""
        while True:
            await self.run_once()
