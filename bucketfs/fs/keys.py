# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Path and key mapping.

Pure functions converting between hierarchical path strings and store
keys. Paths look like ``/bucket/dir/file``; the first segment names the
bucket and the rest is the key. None of these functions touch the
network.
"""

from typing import Iterable, Optional, Tuple

from ..client.exceptions import InvalidArgument

SEPARATOR = "/"

def normalize(path: str) -> str:
    """
    Collapse repeated separators, keeping a leading and a trailing one.

    Args:
        path (str): Path string.

    Returns:
        str: The normalized path. ``""`` stays ``""``.
    """
    if not path:
        return ""
    leading = path.startswith(SEPARATOR)
    trailing = path.endswith(SEPARATOR)
    parts = [p for p in path.split(SEPARATOR) if p]
    if not parts:
        return SEPARATOR if leading else ""
    result = SEPARATOR.join(parts)
    if leading:
        result = SEPARATOR + result
    if trailing:
        result += SEPARATOR
    return result

def to_key(path: str) -> str:
    """
    Convert a bucket-relative path to a store key.

    Leading separators are stripped and repeated ones collapsed; a
    trailing separator is kept because it marks a directory key. An empty
    path or ``/`` maps to the empty key, the bucket root.

    Args:
        path (str): Bucket-relative path, e.g. ``/dir/file.txt``.

    Returns:
        str: The store key, e.g. ``dir/file.txt``.
    """
    return normalize(path).lstrip(SEPARATOR)

def from_key(key: str) -> str:
    """Convert a store key back to a bucket-relative path."""
    return SEPARATOR + key

def is_absolute(path: str) -> bool:
    return path.startswith(SEPARATOR)

def split_path(path: str) -> Tuple[Optional[str], str]:
    """
    Split an absolute path into bucket and key.

    Args:
        path (str): Absolute path, e.g. ``/bucket/dir/file.txt``.

    Returns:
        tuple: ``(bucket, key)``; ``/`` gives ``(None, "")`` and
            ``/bucket`` gives ``("bucket", "")``.

    Raises:
        InvalidArgument: If the path is not absolute.
    """
    if path is None or not is_absolute(path):
        raise InvalidArgument(f"path must be absolute: {path!r}", path=path)
    normalized = normalize(path)
    if normalized == SEPARATOR:
        return None, ""
    bucket, _, rest = normalized[1:].partition(SEPARATOR)
    return bucket, to_key(rest)

def join_path(bucket: Optional[str], key: str) -> str:
    """Inverse of split_path."""
    if bucket is None:
        return SEPARATOR
    return normalize(SEPARATOR + bucket + SEPARATOR + key) if key else SEPARATOR + bucket

def is_directory_key(key: str) -> bool:
    """True for the empty key and for keys ending with a separator."""
    return key == "" or key.endswith(SEPARATOR)

def directory_key_for(key: str) -> str:
    """
    Return the explicit directory marker key for a key.

    The empty key stays empty: the bucket root is listed with an empty
    prefix and never has a marker object.
    """
    if key == "" or key.endswith(SEPARATOR):
        return key
    return key + SEPARATOR

def is_implicit_directory(key: str, existing_keys: Iterable[str]) -> bool:
    """
    Decide whether a key behaves as a directory through its descendants.

    Args:
        key (str): Candidate directory key (with or without separator).
        existing_keys (Iterable[str]): Keys present in the store under
            (at least) the candidate prefix.

    Returns:
        bool: True iff some existing key has ``key/`` as a proper prefix.
    """
    prefix = directory_key_for(key)
    return any(k.startswith(prefix) and len(k) > len(prefix) for k in existing_keys)

def child_name(prefix: str, key: str) -> Tuple[str, bool]:
    """
    Return the first segment of ``key`` below ``prefix``.

    Args:
        prefix (str): Directory key the listing was issued for.
        key (str): Object key or common prefix returned by the listing.

    Returns:
        tuple: ``(name, nested)`` where ``nested`` is True when the key has
            further segments, i.e. ``name`` is a directory. ``name`` is
            empty for the directory's own marker.
    """
    relative = key[len(prefix):] if key.startswith(prefix) else key
    name, sep, _ = relative.partition(SEPARATOR)
    return name, bool(sep)
