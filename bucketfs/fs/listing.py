# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Directory emulation over prefix listings.

A logical directory ``d`` is listed by asking the store for the keys
under ``d/`` with ``/`` as delimiter. Direct objects become file entries,
common prefixes and nested keys become directory entries, and a file
``x`` that coexists with ``x/`` is folded into the single directory entry
``x``. The marker object of ``d`` itself is never reported.
"""

import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Tuple

from . import keys
from .attributes import BasicAttributes
from .path import StorePath
from ..client.exceptions import InvalidArgument, NotADirectory, NotFound
from ..client.types import ListObjectsOptions, ListObjectsPage, ObjectSummary
from ..utils import logger, trace_op

@dataclass(frozen=True)
class DirectoryEntry:
    """
    One child of a listed directory.

    Attributes:
        path (StorePath): Path of the child.
        name (str): Name of the child relative to the directory.
        is_directory (bool): Whether the child is a directory.
    """
    path: StorePath
    name: str
    is_directory: bool

class DirectoryStream:
    """
    Lazy, forward-only sequence of the entries of a directory.

    The first page is requested when the stream is created, so a missing
    path or a regular file fails immediately. The remaining pages are
    requested as iteration reaches them. The stream can be iterated once.

    Attributes:
        directory (StorePath): The listed directory.
        prefix (str): Key prefix the listing is issued for.
    """

    def __init__(self, directory: StorePath,
                 entry_filter: Optional[Callable[[DirectoryEntry], bool]] = None,
                 page_size: Optional[int] = None):
        self.directory = directory
        self.entry_filter = entry_filter
        self.page_size = page_size
        self._iterated = False
        self._closed = False
        self._entries_iter = None

        filesystem = directory.filesystem
        self._client = filesystem.client
        self._cache = filesystem.cache
        self.bucket = directory.bucket
        self.prefix = keys.directory_key_for(directory.key)
        trace_op("list", directory.path, prefix=self.prefix)

        if self.bucket is None:
            self._pages = None
            self._first = None
            return

        self._pages = self._client.list_objects_pages(
            self.bucket,
            ListObjectsOptions(prefix=self.prefix, delimiter=keys.SEPARATOR, max_keys=page_size),
        )
        self._first = next(self._pages, None)
        if self.prefix and self._is_empty(self._first):
            self._raise_not_a_directory()

    @staticmethod
    def _is_empty(page: Optional[ListObjectsPage]) -> bool:
        return page is None or (not page.objects and not page.common_prefixes)

    def _raise_not_a_directory(self):
        plain_key = self.prefix.rstrip(keys.SEPARATOR)
        try:
            self._client.head_object(self.bucket, plain_key)
        except NotFound:
            raise NotFound(f"No such directory: {self.directory.path}", path=self.directory.path) from None
        raise NotADirectory(f"Not a directory: {self.directory.path}", path=self.directory.path)

    def __iter__(self) -> Iterator[DirectoryEntry]:
        if self._iterated:
            raise InvalidArgument("Directory stream can only be iterated once", path=self.directory.path)
        self._iterated = True
        if self._closed:
            return iter(())
        self._entries_iter = self._entries()
        return self._entries_iter

    def _entries(self) -> Iterator[DirectoryEntry]:
        if self.bucket is None:
            yield from self._bucket_entries()
            return

        start_time = time.time()
        count = 0
        seen = set()
        # Children not yet emitted; a later "name/" may still turn a file into a directory
        pending: Dict[str, Tuple[bool, Optional[ObjectSummary]]] = {}
        page = self._first
        while page is not None and not self._closed:
            for name, is_directory, summary in self._page_items(page):
                if name in seen:
                    continue
                if is_directory or name not in pending:
                    pending[name] = (is_directory, summary)

            # Names are released in order; a name waits until the listing has passed "name/"
            last = self._last_relative(page)
            for name in sorted(pending):
                if last is not None and name + keys.SEPARATOR > last:
                    break
                seen.add(name)
                entry = self._emit(name, *pending.pop(name))
                if entry is not None:
                    count += 1
                    yield entry

            page = next(self._pages, None) if page.is_truncated else None

        for name in sorted(pending):
            if self._closed:
                break
            seen.add(name)
            entry = self._emit(name, *pending.pop(name))
            if entry is not None:
                count += 1
                yield entry
        logger.debug(f"Listed {count} entries of {self.directory.path} in {time.time() - start_time:.4f} seconds")

    def _page_items(self, page: ListObjectsPage):
        items = []
        for summary in page.objects:
            if summary.key == self.prefix:
                continue
            name, nested = keys.child_name(self.prefix, summary.key)
            if not name:
                continue
            items.append((name, nested, None if nested else summary))
        for common_prefix in page.common_prefixes:
            name, _ = keys.child_name(self.prefix, common_prefix)
            if name:
                items.append((name, True, None))
        items.sort(key=lambda item: item[0])
        return items

    def _last_relative(self, page: ListObjectsPage) -> Optional[str]:
        candidates = [s.key for s in page.objects] + list(page.common_prefixes)
        if not candidates:
            return None
        return max(candidates)[len(self.prefix):]

    def _emit(self, name: str, is_directory: bool, summary: Optional[ObjectSummary]) -> Optional[DirectoryEntry]:
        child = self.directory.resolve(name)
        entry = DirectoryEntry(path=child, name=name, is_directory=is_directory)
        if self.entry_filter is not None and not self.entry_filter(entry):
            return None
        if is_directory:
            snapshot = BasicAttributes(
                file_key=self.prefix + name + keys.SEPARATOR,
                size=0,
                last_modified=None,
                is_directory=True,
            )
        else:
            snapshot = BasicAttributes(
                file_key=summary.key,
                size=summary.size,
                last_modified=summary.last_modified,
                is_directory=False,
            )
        self._cache.put(child.cache_key, snapshot)
        return entry

    def _bucket_entries(self) -> Iterator[DirectoryEntry]:
        for name in self._client.list_buckets():
            if self._closed:
                return
            child = self.directory.resolve(name)
            entry = DirectoryEntry(path=child, name=name, is_directory=True)
            if self.entry_filter is not None and not self.entry_filter(entry):
                continue
            yield entry

    def close(self) -> None:
        """Stop iteration; no further pages are requested."""
        self._closed = True
        if self._entries_iter is not None:
            self._entries_iter.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
