# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Seekable byte channel over a single object.

Existing content is downloaded into a SpooledTemporaryFile when the
channel opens; reads, writes and seeks work on that local copy, and the
whole object is uploaded again when a writable channel is closed.
"""

import shutil
import tempfile
import time
from enum import Enum
from typing import Iterable, Optional, Set

from .attributes import BasicAttributes
from .path import StorePath
from ..client.exceptions import AlreadyExists, InvalidArgument, NotFound
from ..utils import logger, time_function, trace_op

# Spool to disk after 64MB in RAM
DEFAULT_SPOOL_MAX_SIZE = 64 * 1024 * 1024

class OpenOption(Enum):
    READ = "read"
    WRITE = "write"
    APPEND = "append"
    CREATE = "create"
    CREATE_NEW = "create_new"
    TRUNCATE_EXISTING = "truncate_existing"

def parse_open_options(options: Iterable) -> Set[OpenOption]:
    """Resolve option members or names, READ when none is given."""
    resolved = set()
    for option in options or ():
        if isinstance(option, OpenOption):
            resolved.add(option)
            continue
        try:
            resolved.add(OpenOption(str(option).lower()))
        except ValueError:
            raise InvalidArgument(f"Unsupported open option {option!r}") from None
    return resolved or {OpenOption.READ}

class SeekableChannel:
    """
    Random-access channel on one object.

    Attributes:
        path (StorePath): Path of the object.
        options (Set[OpenOption]): Options the channel was opened with.
        bucket (str): Bucket of the object.
        key (str): Key of the object.
    """

    def __init__(self, path: StorePath, options: Iterable = (),
                 attributes: Optional[BasicAttributes] = None,
                 spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE):
        """
        Open a channel.

        Args:
            path (StorePath): Absolute path of the object.
            options (Iterable[OpenOption]): Open options, READ by default.
            attributes (BasicAttributes, optional): Current attributes of the
                path, None when it does not exist.
            spool_max_size (int): Bytes kept in memory before spooling to disk.

        Raises:
            InvalidArgument: For READ with APPEND, or when the path is a directory.
            AlreadyExists: For CREATE_NEW on an existing object.
            NotFound: For a missing object without CREATE or CREATE_NEW.
        """
        start_time = time.time()
        self.path = path
        self.options = parse_open_options(options)
        self.bucket = path.bucket
        self.key = path.key
        self._client = path.filesystem.client
        self._cache = path.filesystem.cache
        trace_op("open_channel", path.path, options=sorted(o.value for o in self.options))

        if OpenOption.READ in self.options and OpenOption.APPEND in self.options:
            raise InvalidArgument("READ + APPEND not allowed", path=path.path)
        if self.bucket is None or not self.key or self.key.endswith("/"):
            raise InvalidArgument(f"Cannot open a channel on directory {path.path}", path=path.path)
        if attributes is not None and attributes.is_directory:
            raise InvalidArgument(f"Cannot open a channel on directory {path.path}", path=path.path)

        exists = attributes is not None
        if exists and OpenOption.CREATE_NEW in self.options:
            raise AlreadyExists(f"{path.path} already exists", path=path.path)
        if not exists and not (self.options & {OpenOption.CREATE, OpenOption.CREATE_NEW}):
            raise NotFound(f"{path.path} does not exist", path=path.path)

        self._writable = bool(self.options & {OpenOption.WRITE, OpenOption.APPEND})
        self._readable = OpenOption.READ in self.options or not self._writable
        self._dirty = self._writable and not exists
        self._closed = False

        self._spool = tempfile.SpooledTemporaryFile(max_size=spool_max_size, mode='w+b')
        truncate = self._writable and OpenOption.TRUNCATE_EXISTING in self.options
        if exists and not truncate:
            self._download()
        elif exists and truncate:
            self._dirty = True
        if OpenOption.APPEND in self.options:
            self._spool.seek(0, 2)
        time_function("open_channel", start_time)

    def _download(self) -> None:
        client_start = time.time()
        body = self._client.open_object(self.bucket, self.key)
        try:
            shutil.copyfileobj(body, self._spool)
        finally:
            close = getattr(body, "close", None)
            if callable(close):
                close()
        self._spool.seek(0)
        logger.debug(f"Downloaded {self.path.path} into channel buffer in {time.time() - client_start:.4f} seconds")

    def _check_open(self) -> None:
        if self._closed:
            raise InvalidArgument(f"Channel on {self.path.path} is closed", path=self.path.path)

    def readable(self) -> bool:
        return self._readable

    def writable(self) -> bool:
        return self._writable

    @property
    def closed(self) -> bool:
        return self._closed

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if not self._readable:
            raise InvalidArgument(f"Channel on {self.path.path} is not open for reading", path=self.path.path)
        return self._spool.read(size)

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[:len(data)] = data
        return len(data)

    def write(self, data: bytes) -> int:
        """
        Write at the current position, or at the end for APPEND channels.

        Returns:
            int: Number of bytes written.
        """
        self._check_open()
        if not self._writable:
            raise InvalidArgument(f"Channel on {self.path.path} is not open for writing", path=self.path.path)
        if OpenOption.APPEND in self.options:
            self._spool.seek(0, 2)
        written = self._spool.write(data)
        self._dirty = True
        return written

    def seek(self, offset: int, whence: int = 0) -> int:
        self._check_open()
        return self._spool.seek(offset, whence)

    def tell(self) -> int:
        self._check_open()
        return self._spool.tell()

    def size(self) -> int:
        self._check_open()
        position = self._spool.tell()
        self._spool.seek(0, 2)
        end = self._spool.tell()
        self._spool.seek(position)
        return end

    def truncate(self, size: int) -> int:
        """Shrink the content to ``size`` bytes; a larger size leaves it unchanged."""
        self._check_open()
        if not self._writable:
            raise InvalidArgument(f"Channel on {self.path.path} is not open for writing", path=self.path.path)
        if size < 0:
            raise InvalidArgument(f"Negative size {size}", path=self.path.path)
        if size < self.size():
            position = self._spool.tell()
            self._spool.truncate(size)
            self._spool.seek(min(position, size))
            self._dirty = True
        return size

    def flush(self) -> None:
        """Upload pending changes without closing the channel."""
        self._check_open()
        if self._writable and self._dirty:
            self._upload()

    def _upload(self) -> None:
        client_start = time.time()
        position = self._spool.tell()
        self._spool.seek(0)
        data = self._spool.read()
        self._spool.seek(position)
        self._client.put_object(self.bucket, self.key, data)
        self._cache.invalidate(self.path.cache_key)
        self._dirty = False
        logger.debug(f"Uploaded {len(data)} bytes to {self.path.path} in {time.time() - client_start:.4f} seconds")

    def close(self) -> None:
        """Upload the content if it changed, then release the local buffer."""
        if self._closed:
            return
        try:
            if self._writable and self._dirty:
                self._upload()
        finally:
            self._closed = True
            self._spool.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
