# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Paths bound to a filesystem.

A StorePath pairs a FileSystem with a normalized path string. Its bucket
and key are derived from the string alone; nothing here touches the
store.
"""

from typing import Optional

from . import keys
from ..client.exceptions import InvalidArgument

class StorePath:
    """
    A path on a bucketfs filesystem.

    Attributes:
        filesystem (FileSystem): The filesystem the path belongs to.
        path (str): Normalized path string, e.g. ``/bucket/dir/file.txt``.
    """

    def __init__(self, filesystem, path: str):
        if path is None:
            raise InvalidArgument("path must not be None")
        self.filesystem = filesystem
        self.path = keys.normalize(path)

    def is_absolute(self) -> bool:
        return keys.is_absolute(self.path)

    def _require_absolute(self) -> None:
        if not self.is_absolute():
            raise InvalidArgument(f"path must be absolute: {self.path!r}", path=self.path)

    @property
    def bucket(self) -> Optional[str]:
        """Bucket name, None for the filesystem root."""
        self._require_absolute()
        return keys.split_path(self.path)[0]

    @property
    def key(self) -> str:
        """Store key; a trailing separator in the path is kept."""
        self._require_absolute()
        return keys.split_path(self.path)[1]

    @property
    def is_root(self) -> bool:
        return self.path == keys.SEPARATOR

    @property
    def is_bucket_root(self) -> bool:
        return self.is_absolute() and not self.is_root and self.key == ""

    @property
    def name(self) -> str:
        """Last segment of the path, empty for the root."""
        return self.path.rstrip(keys.SEPARATOR).rpartition(keys.SEPARATOR)[2]

    @property
    def cache_key(self) -> str:
        """The path without a trailing separator, used to address cache slots."""
        stripped = self.path.rstrip(keys.SEPARATOR)
        return stripped or self.path

    @property
    def parent(self) -> Optional["StorePath"]:
        if self.is_root or not self.path:
            return None
        head = self.cache_key.rpartition(keys.SEPARATOR)[0]
        if not head:
            return StorePath(self.filesystem, keys.SEPARATOR) if self.is_absolute() else None
        return StorePath(self.filesystem, head)

    def resolve(self, other: str) -> "StorePath":
        """
        Resolve a path string against this path.

        An absolute ``other`` is returned as is; a relative one is appended
        as child segments.
        """
        if keys.is_absolute(other):
            return StorePath(self.filesystem, other)
        if not other:
            return self
        base = self.cache_key if self.path != keys.SEPARATOR else ""
        return StorePath(self.filesystem, f"{base}{keys.SEPARATOR}{other}" if base or self.is_absolute() else other)

    def __truediv__(self, other: str) -> "StorePath":
        return self.resolve(other)

    def to_uri(self) -> str:
        return f"{self.filesystem.provider.scheme}://{self.filesystem.endpoint}{self.path}"

    def __eq__(self, other):
        if not isinstance(other, StorePath):
            return NotImplemented
        return self.filesystem is other.filesystem and self.cache_key == other.cache_key

    def __hash__(self):
        return hash((id(self.filesystem), self.cache_key))

    def __str__(self):
        return self.path

    def __repr__(self):
        return f"StorePath({self.path!r})"
