# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem registry.

Maps identity keys to open FileSystem handles and enforces at most one
live handle per identity. The registry is an ordinary object owned by a
provider; there is no module-level instance.
"""

from threading import Lock
from typing import Callable, Dict, List, Optional
from urllib.parse import unquote, urlsplit

from .. import config as options
from ..client.exceptions import AlreadyExists, NotFound
from ..config import Configuration
from ..factory import DEFAULT_HOST
from ..utils import logger

def derive_identity(uri: str, configuration: Optional[Configuration] = None) -> str:
    """
    Derive the identity key of a filesystem URI.

    The principal is taken from the URI user-info, or else from the
    configured access key. The host defaults to the public S3 endpoint.

    Args:
        uri (str): ``s3://[principal[:secret]@][host[:port]]/...``.
        configuration (Configuration, optional): Resolved options.

    Returns:
        str: ``principal@host[:port]``, or ``host[:port]`` with no principal.
    """
    parts = urlsplit(uri)
    principal = unquote(parts.username) if parts.username else None
    if principal is None and configuration is not None:
        principal = configuration.get(options.ACCESS_KEY)
    host = parts.hostname or DEFAULT_HOST
    if parts.port is not None:
        host = f"{host}:{parts.port}"
    return f"{principal}@{host}" if principal else host

class FileSystemRegistry:
    """
    Table of open filesystems by identity key.

    ``open`` performs its check-then-insert under a lock, so two
    concurrent openers of the same identity cannot both succeed.
    """

    def __init__(self):
        self._filesystems: Dict[str, object] = {}
        self._lock = Lock()

    def open(self, identity: str, factory: Callable[[], object]):
        """
        Construct and register a filesystem.

        Args:
            identity (str): Identity key.
            factory (Callable): Builds the handle; called under the lock.

        Returns:
            The registered handle.

        Raises:
            AlreadyExists: If a handle is already registered for ``identity``.
        """
        with self._lock:
            if identity in self._filesystems:
                raise AlreadyExists(f"File system already exists for {identity}", path=identity)
            handle = factory()
            self._filesystems[identity] = handle
        logger.info(f"Registered filesystem {identity}")
        return handle

    def lookup(self, identity: str):
        """
        Return the handle registered for an identity.

        Raises:
            NotFound: If no handle is registered.
        """
        with self._lock:
            handle = self._filesystems.get(identity)
        if handle is None:
            raise NotFound(f"No file system registered for {identity}", path=identity)
        return handle

    def get_or_open(self, identity: str, factory: Callable[[], object]):
        """Return the registered handle, opening one on a miss."""
        try:
            return self.lookup(identity)
        except NotFound:
            pass
        try:
            return self.open(identity, factory)
        except AlreadyExists:
            # Lost a race with another opener
            return self.lookup(identity)

    def close(self, handle) -> bool:
        """
        Remove a handle.

        Returns:
            bool: False if the handle was not registered (already closed).
        """
        with self._lock:
            for identity, registered in list(self._filesystems.items()):
                if registered is handle:
                    del self._filesystems[identity]
                    logger.info(f"Unregistered filesystem {identity}")
                    return True
        return False

    def is_open(self, handle) -> bool:
        with self._lock:
            return any(registered is handle for registered in self._filesystems.values())

    def close_all(self) -> List[object]:
        """Remove every handle and return them, so the caller can release their clients."""
        with self._lock:
            handles = list(self._filesystems.values())
            self._filesystems.clear()
        return handles

    def __contains__(self, identity: str) -> bool:
        with self._lock:
            return identity in self._filesystems

    def __len__(self):
        with self._lock:
            return len(self._filesystems)
