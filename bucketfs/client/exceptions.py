# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from typing import Optional


class BucketFSError(Exception):
    """Base exception for bucketfs errors."""
    def __init__(self, message: str, code: str = "ERR_UNKNOWN", path: Optional[str] = None):
        self.code = code
        self.message = message
        self.path = path
        super().__init__(f"{code}: {message}")

class NotFound(BucketFSError):
    """Path, object or bucket does not exist."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="ERR_NOT_FOUND", path=path)

class AlreadyExists(BucketFSError):
    """Creation target or registry identity already exists."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="ERR_ALREADY_EXISTS", path=path)

class DirectoryNotEmpty(BucketFSError):
    """Non-recursive delete of a directory that still has children."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="ERR_DIR_NOT_EMPTY", path=path)

class NotADirectory(BucketFSError):
    """Directory operation on a path that is only a regular file."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="ERR_NOT_A_DIRECTORY", path=path)

class AccessDenied(BucketFSError):
    """ACL evaluation (or the store) refused the requested access."""
    def __init__(self, message: str, path: Optional[str] = None, mode=None):
        self.mode = mode
        super().__init__(message, code="ERR_ACCESS_DENIED", path=path)

class UnsupportedOperation(BucketFSError):
    """Requested capability is not implemented."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="ERR_UNSUPPORTED", path=path)

class InvalidArgument(BucketFSError):
    """Malformed path, relative path or disallowed option combination."""
    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, code="ERR_INVALID_ARGUMENT", path=path)

class ConfigurationError(BucketFSError):
    """Configuration or client construction error."""
    def __init__(self, message: str):
        super().__init__(message, code="ERR_CONFIG")

class TransportError(BucketFSError):
    """Opaque store or network failure, wrapping the original cause."""
    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message, code="ERR_TRANSPORT", path=path)
