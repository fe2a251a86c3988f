"""Filesystem-backed response cache.

Each cached response is one file under the cache root, named by
:func:`~opencivic.encoding.cache_filename`.  A file counts as a cache
entry only when it exists **and** is non-empty: a zero-length file left by
an interrupted run is treated as a miss and overwritten by the next fetch.

Entries never expire.  They stay on disk until someone deletes them.

See Also:
    :class:`~opencivic.client.api.OpenCivicClient` -- decides when the
    cache is consulted and when it is populated.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional

from opencivic.exceptions import CacheIOError

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 256 * 1024
"""Chunk size used when streaming a response into a cache file."""


@dataclass(frozen=True)
class CacheEntryInfo:
    """One file found under the cache root."""

    name: str
    size: int

    @property
    def valid(self) -> bool:
        return self.size > 0


class CacheStore:
    """Key-value store mapping cache file names to raw response bytes.

    Args:
        root: Directory holding the cache files.  It is created on the
            first write if it does not exist yet.

    Example::

        store = CacheStore(Path("~/.cache/opencivic").expanduser())
        if not store.exists(name):
            store.write_from(name, response_stream)
        with store.open(name) as fh:
            data = fh.read()
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, filename: str) -> Path:
        """Resolve *filename* under the cache root."""
        return self._root / filename

    def exists(self, filename: str) -> bool:
        """Return ``True`` if *filename* is cached with non-zero length."""
        path = self.path_for(filename)
        try:
            size = path.stat().st_size
        except FileNotFoundError:
            logger.debug("Cache miss (absent): %s", filename)
            return False
        except OSError as exc:
            raise CacheIOError(f"Cannot stat cache file {path}: {exc}") from exc
        logger.debug("Length of file in cache: %d: %s", size, filename)
        return size > 0

    def open(self, filename: str) -> BinaryIO:
        """Open a cached response for streaming read.

        The caller owns the returned file object and must close it.

        Raises:
            CacheIOError: If the file cannot be opened.
        """
        path = self.path_for(filename)
        try:
            return open(path, "rb")
        except OSError as exc:
            raise CacheIOError(f"Cannot read cache file {path}: {exc}") from exc

    def write_from(self, filename: str, source: BinaryIO) -> Path:
        """Stream *source* into the cache file *filename*.

        Data is copied in :data:`COPY_BUFFER_SIZE` chunks into a temporary
        file next to the target, which is renamed over the target once the
        copy has finished.  If anything fails part-way the temporary file
        is removed, so an interrupted copy never shows up as a valid entry.
        *source* is closed on every exit path.

        Errors raised while *reading* from *source* propagate unchanged;
        filesystem errors are raised as :class:`CacheIOError`.

        Returns:
            The path of the written cache file.
        """
        path = self.path_for(filename)
        tmp_path: Optional[str] = None
        try:
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_path = tempfile.mkstemp(
                    dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
                )
                dest = os.fdopen(fd, "wb")
            except OSError as exc:
                raise CacheIOError(f"Cannot create cache file {path}: {exc}") from exc

            with dest:
                while True:
                    chunk = source.read(COPY_BUFFER_SIZE)
                    if not chunk:
                        break
                    try:
                        dest.write(chunk)
                    except OSError as exc:
                        raise CacheIOError(f"Cannot write cache file {path}: {exc}") from exc

            try:
                os.replace(tmp_path, path)
            except OSError as exc:
                raise CacheIOError(f"Cannot move cache file into place {path}: {exc}") from exc
            tmp_path = None
            logger.debug("Cached response in %s", path)
            return path
        finally:
            source.close()
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

    def entries(self) -> list[CacheEntryInfo]:
        """List the cache files under the root, sorted by name.

        Temporary files from in-flight writes are not reported.
        """
        if not self._root.is_dir():
            return []
        found = []
        for path in sorted(self._root.iterdir()):
            if not path.is_file() or path.name.startswith("."):
                continue
            found.append(CacheEntryInfo(name=path.name, size=path.stat().st_size))
        return found
