# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE mount of bucketfs filesystems.

Requires fusepy and libfuse.
"""

from .fuse_mount import BucketFuse, main, mount

__all__ = ["BucketFuse", "mount", "main"]
