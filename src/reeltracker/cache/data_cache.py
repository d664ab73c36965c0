"""Disk-backed blob cache with TTL expiration, size-bound eviction and a memory fallback."""

import asyncio
import hashlib
import logging
import os
import shutil
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class _MemoryEntry:
    data: bytes
    stored_at: float


@dataclass
class _DiskEntry:
    path: Path
    size: int
    mtime: float


def hash_key(key: str) -> str:
    """Return the storage-safe filename for a cache key."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


class DataCache:
    """
    Two-tier key/blob cache.

    The primary tier is a directory holding one file per key, named by the
    SHA-256 digest of the key. A file's modification time is its only age
    signal: reads older than the TTL are misses (and delete the file), and
    successful reads touch the file so size-based eviction sees it as recent.

    All disk work runs on a dedicated single-worker executor, so operations
    are applied in submission order and a ``get`` issued after a ``put`` sees
    the written bytes. If the directory cannot be created, every entry goes
    to an in-memory map guarded by its own lock instead.

    I/O errors are logged and degrade to a cache miss; they never propagate.
    """

    def __init__(
        self,
        directory: Path | None,
        ttl_seconds: float = 60 * 60 * 24 * 90,
        max_disk_bytes: int = 100 * 1024 * 1024,
        clock: Callable[[], float] = time.time,
        name: str = "data",
    ) -> None:
        """
        Initialize the cache.

        Args:
            directory: Cache directory (``None`` forces the in-memory tier)
            ttl_seconds: Maximum age of an entry since it was last written or read
            max_disk_bytes: Upper bound on the total size of the cache directory
            clock: Source of the current time in epoch seconds
            name: Short label used in log messages and the I/O thread name
        """
        self.ttl_seconds = ttl_seconds
        self.max_disk_bytes = max_disk_bytes
        self.name = name
        self._clock = clock
        self._io = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"cache-{name}")
        self._memory: dict[str, _MemoryEntry] = {}
        self._memory_lock = threading.Lock()

        self.directory: Path | None = None
        if directory is not None:
            if self._io.submit(self._create_directory, directory).result():
                self.directory = directory
            else:
                logger.warning(
                    f"Cache '{name}' falling back to in-memory storage; "
                    f"could not create {directory}"
                )

    @property
    def is_disk_enabled(self) -> bool:
        return self.directory is not None

    def path_for(self, key: str) -> Path | None:
        """Return the file that stores ``key``, or None when disk is disabled."""
        if self.directory is None:
            return None
        return self.directory / hash_key(key)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str) -> bytes | None:
        """Return the cached bytes for ``key``, or None on a miss or expiry."""
        path = self.path_for(key)
        if path is not None:
            data = self._io.submit(self._read_disk, path).result()
            if data is not None:
                return data
        return self._memory_get(key)

    def put(self, key: str, data: bytes) -> Future:
        """
        Store ``data`` under ``key``.

        Disk writes are queued on the I/O executor; the returned future
        completes once the write and any follow-up eviction have run.
        """
        path = self.path_for(key)
        if path is None:
            with self._memory_lock:
                self._memory[key] = _MemoryEntry(data=data, stored_at=self._clock())
            done: Future = Future()
            done.set_result(None)
            return done
        return self._io.submit(self._write_disk, path, data)

    async def aget(self, key: str) -> bytes | None:
        """Awaitable ``get`` that does not block the event loop on disk I/O."""
        path = self.path_for(key)
        if path is not None:
            data = await asyncio.wrap_future(self._io.submit(self._read_disk, path))
            if data is not None:
                return data
        return self._memory_get(key)

    async def aput(self, key: str, data: bytes) -> None:
        """Awaitable ``put`` that resolves once the entry has been written."""
        await asyncio.wrap_future(self.put(key, data))

    def purge_expired(self) -> int:
        """
        Remove every entry older than the TTL from both tiers.

        Returns:
            Number of entries removed
        """
        removed = 0
        if self.directory is not None:
            removed += self._io.submit(self._purge_expired_disk).result()

        now = self._clock()
        with self._memory_lock:
            expired = [
                key
                for key, entry in self._memory.items()
                if now - entry.stored_at >= self.ttl_seconds
            ]
            for key in expired:
                del self._memory[key]
        removed += len(expired)

        if removed:
            logger.info(f"Cache '{self.name}': purged {removed} expired entries")
        return removed

    def clear_all(self) -> None:
        """Remove every entry from both tiers."""
        if self.directory is not None:
            self._io.submit(self._clear_disk).result()
        with self._memory_lock:
            self._memory.clear()
        logger.info(f"Cache '{self.name}': cleared")

    def disk_usage(self) -> int:
        """Total size in bytes of the entries currently on disk."""
        if self.directory is None:
            return 0
        return self._io.submit(lambda: sum(e.size for e in self._list_entries())).result()

    def close(self) -> None:
        """Wait for queued disk work and stop the I/O executor."""
        self._io.shutdown(wait=True)

    # ------------------------------------------------------------------
    # Memory tier
    # ------------------------------------------------------------------

    def _memory_get(self, key: str) -> bytes | None:
        now = self._clock()
        with self._memory_lock:
            entry = self._memory.get(key)
            if entry is None:
                return None
            if now - entry.stored_at >= self.ttl_seconds:
                del self._memory[key]
                return None
            entry.stored_at = now
            return entry.data

    # ------------------------------------------------------------------
    # Disk tier (only ever called on the I/O executor)
    # ------------------------------------------------------------------

    def _create_directory(self, directory: Path) -> bool:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cache '{self.name}': failed to create {directory}: {e}")
            return False
        return True

    def _read_disk(self, path: Path) -> bytes | None:
        try:
            stat = path.stat()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Cache '{self.name}': cannot stat {path.name}: {e}")
            return None

        now = self._clock()
        if now - stat.st_mtime >= self.ttl_seconds:
            self._remove(path)
            return None

        try:
            data = path.read_bytes()
            # Touch so eviction treats this entry as recently used
            os.utime(path, (now, now))
        except OSError as e:
            logger.warning(f"Cache '{self.name}': error reading {path.name}: {e}")
            return None
        return data

    def _write_disk(self, path: Path, data: bytes) -> None:
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
            now = self._clock()
            os.utime(path, (now, now))
        except OSError as e:
            logger.error(f"Cache '{self.name}': failed to write {path.name}: {e}")
            self._remove(tmp_path)
            return

        self._purge_expired_disk()
        self._evict_to_size()

    def _list_entries(self) -> list[_DiskEntry]:
        if self.directory is None:
            return []
        entries: list[_DiskEntry] = []
        try:
            children = list(self.directory.iterdir())
        except OSError as e:
            logger.warning(f"Cache '{self.name}': cannot list {self.directory}: {e}")
            return []
        for child in children:
            if child.name.startswith("."):
                continue
            try:
                stat = child.stat()
            except OSError:
                continue
            if child.is_file():
                entries.append(_DiskEntry(path=child, size=stat.st_size, mtime=stat.st_mtime))
        return entries

    def _purge_expired_disk(self) -> int:
        now = self._clock()
        removed = 0
        for entry in self._list_entries():
            if now - entry.mtime >= self.ttl_seconds and self._remove(entry.path):
                removed += 1
        return removed

    def _evict_to_size(self) -> int:
        entries = self._list_entries()
        total = sum(e.size for e in entries)
        if total <= self.max_disk_bytes:
            return 0

        evicted = 0
        for entry in sorted(entries, key=lambda e: (e.mtime, e.path.name)):
            if total <= self.max_disk_bytes:
                break
            if self._remove(entry.path):
                total -= entry.size
                evicted += 1
        logger.debug(f"Cache '{self.name}': evicted {evicted} entries, {total} bytes remain")
        return evicted

    def _clear_disk(self) -> None:
        if self.directory is None:
            return
        try:
            shutil.rmtree(self.directory, ignore_errors=False)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Cache '{self.name}': failed to clear {self.directory}: {e}")
        self._create_directory(self.directory)

    def _remove(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning(f"Cache '{self.name}': failed to remove {path.name}: {e}")
            return False
        return True
