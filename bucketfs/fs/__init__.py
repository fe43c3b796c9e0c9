# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem emulation over a flat object store.

Key mapping, attribute snapshots, ACL evaluation, directory listing, the
filesystem registry and the provider that ties them together.
"""

from .acl import AccessControlList, AccessMode
from .attributes import AttributeKind, BasicAttributes, PosixAttributes, PosixPermission
from .cache import AttributeCache
from .channel import OpenOption, SeekableChannel
from .filesystem import FileSystem
from .listing import DirectoryEntry, DirectoryStream
from .path import StorePath
from .provider import CopyOption, FileSystemOperations, ObjectStoreProvider
from .registry import FileSystemRegistry, derive_identity

__all__ = [
    "AccessControlList",
    "AccessMode",
    "AttributeKind",
    "BasicAttributes",
    "PosixAttributes",
    "PosixPermission",
    "AttributeCache",
    "OpenOption",
    "SeekableChannel",
    "FileSystem",
    "DirectoryEntry",
    "DirectoryStream",
    "StorePath",
    "CopyOption",
    "FileSystemOperations",
    "ObjectStoreProvider",
    "FileSystemRegistry",
    "derive_identity",
]
