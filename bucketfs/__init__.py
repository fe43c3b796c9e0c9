# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
bucketfs presents an object store (bucket + key) as a hierarchical
filesystem: paths, directories, attributes, random-access I/O and
copy/move/delete.

Usage:
    from bucketfs import ObjectStoreProvider

    provider = ObjectStoreProvider()
    path = provider.get_path("s3:///my-bucket/dir/file.txt")
    print(provider.read_attributes(path, "size,lastModifiedTime"))
"""

from .client import (
    AccessDenied,
    AlreadyExists,
    BucketFSError,
    ConfigurationError,
    DirectoryNotEmpty,
    InvalidArgument,
    MemoryStoreClient,
    NotADirectory,
    NotFound,
    S3StoreClient,
    StoreClient,
    TransportError,
    UnsupportedOperation,
)
from .config import Configuration
from .factory import ClientFactoryRegistry
from .fs import (
    AccessMode,
    AttributeKind,
    CopyOption,
    FileSystem,
    FileSystemOperations,
    FileSystemRegistry,
    ObjectStoreProvider,
    OpenOption,
    StorePath,
)

__version__ = "0.1.0"
