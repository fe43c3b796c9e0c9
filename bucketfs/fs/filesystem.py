# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem handles.

A FileSystem is the live connection for one identity key: it owns the
store client and the attribute cache, and it is registered with the
provider's FileSystemRegistry until it is closed.
"""

import time
from typing import Callable, Optional

from .cache import DEFAULT_TTL, AttributeCache
from .path import StorePath
from .. import config as options
from ..config import Configuration
from ..utils import logger

class FileSystem:
    """
    One open bucketfs filesystem.

    Attributes:
        provider: The provider that opened the filesystem.
        key (str): Identity key, ``principal@host`` or ``host``.
        client (StoreClient): Client used for every store call.
        endpoint (str): ``host[:port]`` of the store.
        configuration (Configuration): Resolved options.
        cache (AttributeCache): Attribute snapshots of this filesystem.
    """

    separator = "/"

    def __init__(self, provider, key: str, client, endpoint: str,
                 configuration: Configuration, cache: Optional[AttributeCache] = None,
                 clock: Callable[[], float] = time.time):
        self.provider = provider
        self.key = key
        self.client = client
        self.endpoint = endpoint
        self.configuration = configuration
        if cache is None:
            ttl = configuration.get_float(options.CACHE_ATTRIBUTES_TTL, DEFAULT_TTL)
            cache = AttributeCache(ttl=ttl, clock=clock)
        self.cache = cache
        self._caller_id = configuration.get(options.CANONICAL_ID)

    def get_path(self, first: str, *more: str) -> StorePath:
        """
        Build a path on this filesystem by joining segments.

        Args:
            first (str): First segment, usually absolute.
            *more (str): Further segments.

        Returns:
            StorePath: The joined path.
        """
        path = StorePath(self, first)
        for segment in more:
            if segment:
                path = path.resolve(segment.lstrip(self.separator))
        return path

    @property
    def root(self) -> StorePath:
        return StorePath(self, self.separator)

    @property
    def caller_id(self) -> str:
        """Canonical id access checks are evaluated for."""
        if self._caller_id is None:
            self._caller_id = self.client.get_caller_id()
            logger.debug(f"Resolved caller id for {self.key}")
        return self._caller_id

    def is_open(self) -> bool:
        return self.provider.is_open(self)

    def close(self) -> None:
        """Unregister the filesystem and release its client."""
        logger.info(f"Closing filesystem {self.key}")
        self.provider.close_filesystem(self)
        self.cache.clear()
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"FileSystem({self.key!r})"
