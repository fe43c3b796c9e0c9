# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Error Translation Module.

This module converts failures raised by the boto3 transport into the
bucketfs error taxonomy. It is the only place where botocore exceptions
are inspected; everything above the store client sees BucketFSError
subclasses.

No retries happen here. Retry policy belongs to botocore and is
configured through the ``max_error_retry`` option.

Functions:
    convert_client_error: Map a botocore exception to a BucketFSError.
    translate_errors: Decorator applying convert_client_error to a client method.
"""
from functools import wraps
from typing import Callable, Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .exceptions import (
    AccessDenied,
    AlreadyExists,
    BucketFSError,
    NotFound,
    TransportError,
)
from ..utils import logger

NOT_FOUND_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound", "NoSuchObject"}
ACCESS_DENIED_CODES = {"403", "AccessDenied", "Forbidden", "AllAccessDisabled"}
ALREADY_EXISTS_CODES = {"BucketAlreadyExists", "BucketAlreadyOwnedByYou"}

def _error_code(e: ClientError) -> str:
    error = e.response.get("Error", {}) if hasattr(e, "response") else {}
    code = str(error.get("Code", ""))
    if not code:
        status = e.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        code = str(status) if status else "Unknown"
    return code

def convert_client_error(e: Exception, operation: Optional[str] = None, path: Optional[str] = None) -> BucketFSError:
    """
    Convert transport errors to the bucketfs taxonomy.

    A not-found status becomes NotFound, a forbidden status AccessDenied,
    a bucket creation collision AlreadyExists. Any other failure is
    wrapped as TransportError carrying the original exception.

    Args:
        e (Exception): The exception raised by boto3/botocore.
        operation (str, optional): The store operation being performed.
        path (str, optional): The bucket/key the operation targeted.

    Returns:
        BucketFSError: The converted error.
    """
    if isinstance(e, BucketFSError):
        return e

    if isinstance(e, ClientError):
        code = _error_code(e)
        message = e.response.get("Error", {}).get("Message") or str(e)
        if code in NOT_FOUND_CODES:
            return NotFound(f"{operation or 'request'}: {path or ''} does not exist", path=path)
        if code in ACCESS_DENIED_CODES:
            return AccessDenied(f"{operation or 'request'}: access denied to {path or ''}", path=path)
        if code in ALREADY_EXISTS_CODES:
            return AlreadyExists(f"{operation or 'request'}: {path or ''} already exists", path=path)
        return TransportError(f"{operation or 'request'} failed for {path or ''}: {code}: {message}", path=path, cause=e)

    return TransportError(f"{operation or 'request'} failed for {path or ''}: {e}", path=path, cause=e)

def translate_errors(operation: str) -> Callable:
    """
    Decorator translating transport failures of a client method.

    The wrapped method must take ``bucket`` as its first positional
    argument after ``self`` and may take ``key`` as its second; they are
    used to build the path reported in the converted error.

    Args:
        operation (str): Name of the store operation, used in messages.

    Returns:
        Callable: A decorator that wraps the function.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except (ClientError, BotoCoreError) as e:
                bucket = kwargs.get("bucket", args[1] if len(args) > 1 else None)
                key = kwargs.get("key", args[2] if len(args) > 2 else None)
                path = f"{bucket}/{key}" if isinstance(key, str) else bucket
                converted = convert_client_error(e, operation, path)
                if isinstance(converted, TransportError):
                    logger.error(f"{operation} on {path} failed: {e}")
                else:
                    logger.debug(f"{operation} on {path}: {converted}")
                raise converted from e
        return wrapper
    return decorator
