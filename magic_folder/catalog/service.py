"""SQLite-backed metadata catalog.

SQLite does not support concurrent writers, so every statement runs on a
single worker thread that owns the only connection. Callers queue for that
thread through a bounded admission semaphore; ``pending`` exposes the queue
depth and ``wait=False`` turns a full queue into ``CatalogBusyError``.
"""

import asyncio
import sqlite3
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime
from functools import partial
from types import TracebackType
from typing import Any, TypeVar

from magic_folder.catalog.models import FileRecord
from magic_folder.config import CatalogSettings
from magic_folder.exceptions import CatalogBusyError, CatalogError, ErrorCode
from magic_folder.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SCHEMA = """
CREATE TABLE IF NOT EXISTS files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT NOT NULL UNIQUE,
    processed_at TEXT NOT NULL,
    vector_id TEXT UNIQUE
)
"""

UPSERT_FILE = """
INSERT INTO files (path, processed_at, vector_id) VALUES (?, ?, ?)
ON CONFLICT(path) DO UPDATE SET
    processed_at = excluded.processed_at,
    vector_id = excluded.vector_id
"""

SELECT_FILE = "SELECT id, path, processed_at, vector_id FROM files"


class MetadataCatalog:
    """Path-keyed file bookkeeping with single-writer discipline."""

    def __init__(self, settings: CatalogSettings) -> None:
        """Initialize the catalog.

        Args:
            settings: Database file and queue bound.
        """
        self._settings = settings
        self._executor: ThreadPoolExecutor | None = None
        self._conn: sqlite3.Connection | None = None
        self._slots = asyncio.Semaphore(settings.max_pending)
        self._pending = 0

    @property
    def pending(self) -> int:
        """Requests currently queued or running on the catalog thread."""
        return self._pending

    @property
    def max_pending(self) -> int:
        return self._settings.max_pending

    async def __aenter__(self) -> "MetadataCatalog":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def open(self) -> None:
        """Open the database and create the ``files`` table if absent.

        Raises:
            CatalogError: If the database cannot be opened.
        """
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="metadata-catalog"
        )
        try:
            await self._submit(self._connect)
        except BaseException:
            self._executor.shutdown(wait=False)
            self._executor = None
            raise
        logger.info("Opened metadata catalog", extra={"path": str(self._settings.path)})

    async def close(self) -> None:
        """Close the connection and stop the catalog thread."""
        if self._executor is None:
            return
        try:
            await self._submit(self._disconnect)
        finally:
            self._executor.shutdown(wait=True)
            self._executor = None

    async def record_processing(
        self,
        path: str,
        vector_key: str,
        wait: bool = True,
    ) -> int:
        """Insert or replace the row for a path.

        Reprocessing a path updates its row in place and keeps the id
        assigned on first insert.

        Args:
            path: Processed file path.
            vector_key: Key of the file's vector index rows.
            wait: Queue behind other requests; when False a full queue
                raises instead.

        Returns:
            The row's id.

        Raises:
            CatalogBusyError: If ``wait`` is False and the queue is full.
            CatalogError: If the write fails.
        """
        processed_at = datetime.now(UTC).isoformat()
        return await self._submit(
            self._record_processing, path, processed_at, vector_key, wait=wait
        )

    async def get_by_path(self, path: str) -> FileRecord | None:
        """Get the row for a path, if any."""
        return await self._submit(self._get_by_path, path)

    async def list_files(self) -> list[FileRecord]:
        """List all rows ordered by id."""
        return await self._submit(self._list_files)

    async def count(self) -> int:
        """Count rows."""
        return await self._submit(self._count)

    async def _submit(self, fn: Callable[..., T], *args: Any, wait: bool = True) -> T:
        if self._executor is None:
            raise CatalogError(
                "Metadata catalog is not open",
                code=ErrorCode.CATALOG_ERROR,
                details={"path": str(self._settings.path)},
            )
        if not wait and self._slots.locked():
            raise CatalogBusyError(self._settings.max_pending)

        self._pending += 1
        try:
            async with self._slots:
                loop = asyncio.get_running_loop()
                return await loop.run_in_executor(self._executor, partial(fn, *args))
        except (sqlite3.Error, OSError) as e:
            logger.error(
                f"Catalog operation failed: {e}",
                extra={"operation": fn.__name__, "path": str(self._settings.path)},
            )
            raise CatalogError(
                f"Catalog operation failed: {e}",
                code=ErrorCode.CATALOG_ERROR,
                details={"operation": fn.__name__.lstrip("_"), "error": str(e)},
            ) from e
        finally:
            self._pending -= 1

    # The methods below run on the catalog thread only.

    def _connect(self) -> None:
        self._settings.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self._settings.path)
        self._conn.execute(SCHEMA)
        self._conn.commit()

    def _disconnect(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise sqlite3.ProgrammingError("catalog connection is closed")
        return self._conn

    def _record_processing(self, path: str, processed_at: str, vector_key: str) -> int:
        conn = self._connection()
        try:
            conn.execute(UPSERT_FILE, (path, processed_at, vector_key))
            row = conn.execute("SELECT id FROM files WHERE path = ?", (path,)).fetchone()
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            raise
        return int(row[0])

    def _get_by_path(self, path: str) -> FileRecord | None:
        row = self._connection().execute(f"{SELECT_FILE} WHERE path = ?", (path,)).fetchone()
        return _to_record(row) if row else None

    def _list_files(self) -> list[FileRecord]:
        rows = self._connection().execute(f"{SELECT_FILE} ORDER BY id").fetchall()
        return [_to_record(row) for row in rows]

    def _count(self) -> int:
        return int(self._connection().execute("SELECT COUNT(*) FROM files").fetchone()[0])


def _to_record(row: tuple[Any, ...]) -> FileRecord:
    return FileRecord(
        id=row[0],
        path=row[1],
        processed_at=datetime.fromisoformat(row[2]),
        vector_key=row[3],
    )
