# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
In-memory store client.

A thread-safe, process-local object store with S3 listing semantics
(prefix, delimiter, page size, continuation tokens) and per-object
ACLs. Used by the test suite and registered as the ``memory`` client
factory.
"""

import hashlib
import io
from dataclasses import dataclass, field
from datetime import datetime, timezone
from threading import RLock
from typing import BinaryIO, Dict, Iterator, List, Optional

from .base import StoreClient
from .exceptions import AlreadyExists, InvalidArgument, NotFound
from .types import (
    AccessControlPolicy,
    Grant,
    HeadBucketOutput,
    HeadObjectOutput,
    ListObjectsOptions,
    ListObjectsPage,
    ObjectSummary,
    Owner,
    Permission,
)

DEFAULT_PAGE_SIZE = 1000
DEFAULT_OWNER_ID = "memory-owner"

@dataclass
class _StoredObject:
    data: bytes
    last_modified: datetime
    etag: str
    grants: List[Grant] = field(default_factory=list)
    owner: Optional[Owner] = None

@dataclass
class _StoredBucket:
    region: str
    owner: Owner
    grants: List[Grant] = field(default_factory=list)
    objects: Dict[str, _StoredObject] = field(default_factory=dict)

def _now():
    return datetime.now(timezone.utc)

class MemoryStoreClient(StoreClient):
    """
    In-memory implementation of StoreClient.

    Attributes:
        caller_id (str): Canonical id reported by get_caller_id and used as
            owner of buckets and objects created through this client.
        region (str): Region reported for buckets created without one.
    """

    def __init__(self, caller_id: str = DEFAULT_OWNER_ID, region: str = "us-east-1"):
        self.caller_id = caller_id
        self.region = region
        self._buckets: Dict[str, _StoredBucket] = {}
        self._lock = RLock()

    def _bucket(self, bucket: str) -> _StoredBucket:
        try:
            return self._buckets[bucket]
        except KeyError:
            raise NotFound(f"Bucket {bucket} does not exist", path=bucket) from None

    def _object(self, bucket: str, key: str) -> _StoredObject:
        stored = self._bucket(bucket).objects.get(key)
        if stored is None:
            raise NotFound(f"Object {bucket}/{key} does not exist", path=f"{bucket}/{key}")
        return stored

    def _default_grants(self):
        return [Grant(self.caller_id, Permission.FULL_CONTROL)]

    def head_bucket(self, bucket: str) -> HeadBucketOutput:
        with self._lock:
            return HeadBucketOutput(region=self._bucket(bucket).region)

    def list_buckets(self) -> List[str]:
        with self._lock:
            return sorted(self._buckets)

    def create_bucket(self, bucket: str, region: Optional[str] = None) -> None:
        if not bucket:
            raise InvalidArgument("Bucket name must not be empty")
        with self._lock:
            if bucket in self._buckets:
                raise AlreadyExists(f"Bucket {bucket} already exists", path=bucket)
            self._buckets[bucket] = _StoredBucket(
                region=region or self.region,
                owner=Owner(self.caller_id),
                grants=self._default_grants(),
            )

    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        with self._lock:
            stored = self._object(bucket, key)
            return HeadObjectOutput(
                content_length=len(stored.data),
                last_modified=stored.last_modified,
                etag=stored.etag,
            )

    def get_object(self, bucket: str, key: str) -> bytes:
        with self._lock:
            return self._object(bucket, key).data

    def open_object(self, bucket: str, key: str) -> BinaryIO:
        return io.BytesIO(self.get_object(bucket, key))

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        if not key:
            raise InvalidArgument("Object key must not be empty", path=bucket)
        data = bytes(data)
        with self._lock:
            target = self._bucket(bucket)
            target.objects[key] = _StoredObject(
                data=data,
                last_modified=_now(),
                etag=hashlib.md5(data).hexdigest(),
                grants=self._default_grants(),
                owner=Owner(self.caller_id),
            )

    def delete_object(self, bucket: str, key: str) -> None:
        with self._lock:
            self._bucket(bucket).objects.pop(key, None)

    def copy_object(self, source_bucket: str, source_key: str, bucket: str, key: str) -> None:
        with self._lock:
            source = self._object(source_bucket, source_key)
            self.put_object(bucket, key, source.data)

    def list_objects_pages(self, bucket: str, options: Optional[ListObjectsOptions] = None) -> Iterator[ListObjectsPage]:
        options = options or ListObjectsOptions()
        token = options.continuation_token
        while True:
            page = self._list_page(bucket, options, token)
            yield page
            if not page.is_truncated:
                return
            token = page.next_continuation_token

    def _list_page(self, bucket: str, options: ListObjectsOptions, token: Optional[str]) -> ListObjectsPage:
        prefix = options.prefix or ""
        delimiter = options.delimiter
        page_size = options.max_keys or DEFAULT_PAGE_SIZE
        # Tokens are "k:<last key>" or "p:<last common prefix>"
        after_key = options.start_after
        skip_prefix = None
        if token:
            kind, _, value = token.partition(":")
            after_key = value
            if kind == "p":
                skip_prefix = value

        with self._lock:
            keys = sorted(k for k in self._bucket(bucket).objects if k.startswith(prefix))
            page = ListObjectsPage()
            seen_prefixes = set()
            last_token = None
            count = 0
            for key in keys:
                if after_key is not None and key <= after_key:
                    continue
                if skip_prefix is not None and key.startswith(skip_prefix):
                    continue
                rest = key[len(prefix):]
                if delimiter and delimiter in rest:
                    common = prefix + rest[:rest.index(delimiter) + len(delimiter)]
                    if common in seen_prefixes:
                        continue
                    if count >= page_size:
                        page.is_truncated = True
                        break
                    seen_prefixes.add(common)
                    page.common_prefixes.append(common)
                    last_token = f"p:{common}"
                else:
                    if count >= page_size:
                        page.is_truncated = True
                        break
                    stored = self._bucket(bucket).objects[key]
                    page.objects.append(ObjectSummary(
                        key=key,
                        size=len(stored.data),
                        last_modified=stored.last_modified,
                        etag=stored.etag,
                    ))
                    last_token = f"k:{key}"
                count += 1
            if page.is_truncated:
                page.next_continuation_token = last_token
            return page

    def get_object_acl(self, bucket: str, key: str) -> AccessControlPolicy:
        with self._lock:
            stored = self._object(bucket, key)
            owner = stored.owner or self._bucket(bucket).owner
            return AccessControlPolicy(owner=owner, grants=list(stored.grants))

    def get_bucket_acl(self, bucket: str) -> AccessControlPolicy:
        with self._lock:
            stored = self._bucket(bucket)
            return AccessControlPolicy(owner=stored.owner, grants=list(stored.grants))

    def get_caller_id(self) -> str:
        return self.caller_id

    def put_object_acl(self, bucket: str, key: str, grants: List[Grant], owner: Optional[Owner] = None) -> None:
        """Replace the grants (and optionally the owner) of an object."""
        with self._lock:
            stored = self._object(bucket, key)
            stored.grants = list(grants)
            if owner is not None:
                stored.owner = owner

    def put_bucket_acl(self, bucket: str, grants: List[Grant], owner: Optional[Owner] = None) -> None:
        """Replace the grants (and optionally the owner) of a bucket."""
        with self._lock:
            stored = self._bucket(bucket)
            stored.grants = list(grants)
            if owner is not None:
                stored.owner = owner
