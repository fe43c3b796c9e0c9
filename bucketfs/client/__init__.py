# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from .base import StoreClient
from .exceptions import (
    AccessDenied,
    AlreadyExists,
    BucketFSError,
    ConfigurationError,
    DirectoryNotEmpty,
    InvalidArgument,
    NotADirectory,
    NotFound,
    TransportError,
    UnsupportedOperation,
)
from .memory import MemoryStoreClient
from .s3 import S3StoreClient
from .types import ListObjectsOptions

__all__ = [
    "StoreClient",
    "S3StoreClient",
    "MemoryStoreClient",
    "ListObjectsOptions",
    "BucketFSError",
    "NotFound",
    "AlreadyExists",
    "DirectoryNotEmpty",
    "NotADirectory",
    "AccessDenied",
    "UnsupportedOperation",
    "InvalidArgument",
    "ConfigurationError",
    "TransportError",
]
