# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Store client interface.

The filesystem emulation layer talks to the object store only through
this interface: object HEAD/GET/PUT/DELETE/COPY, prefix listing, bucket
HEAD/creation and ACL retrieval. Implementations translate their own
transport failures into the bucketfs error taxonomy before raising.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Iterator, List, Optional

from .types import (
    AccessControlPolicy,
    HeadBucketOutput,
    HeadObjectOutput,
    ListObjectsOptions,
    ListObjectsPage,
)


class StoreClient(ABC):
    """
    Abstract object store client.

    Deleting an object that does not exist is not an error, matching
    S3 semantics. Every other call on a missing bucket or key raises
    NotFound.
    """

    @abstractmethod
    def head_bucket(self, bucket: str) -> HeadBucketOutput:
        """Return bucket metadata, raising NotFound if the bucket is absent."""

    @abstractmethod
    def list_buckets(self) -> List[str]:
        """Return the names of the buckets visible to the caller."""

    @abstractmethod
    def create_bucket(self, bucket: str, region: Optional[str] = None) -> None:
        """Create a bucket, raising AlreadyExists if it is already there."""

    @abstractmethod
    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        """Return object metadata, raising NotFound if the key is absent."""

    @abstractmethod
    def get_object(self, bucket: str, key: str) -> bytes:
        """Return the full content of an object."""

    @abstractmethod
    def open_object(self, bucket: str, key: str) -> BinaryIO:
        """Return a readable binary stream over the content of an object."""

    @abstractmethod
    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        """Create or replace an object."""

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object; a missing key is not an error."""

    @abstractmethod
    def copy_object(self, source_bucket: str, source_key: str, bucket: str, key: str) -> None:
        """Server-side copy of a single object."""

    @abstractmethod
    def list_objects_pages(self, bucket: str, options: Optional[ListObjectsOptions] = None) -> Iterator[ListObjectsPage]:
        """
        Lazily yield listing pages.

        Each page is fetched only when the previous one has been consumed,
        so a caller that stops early does not drain the listing.
        """

    @abstractmethod
    def get_object_acl(self, bucket: str, key: str) -> AccessControlPolicy:
        """Return owner and grants of an object."""

    @abstractmethod
    def get_bucket_acl(self, bucket: str) -> AccessControlPolicy:
        """Return owner and grants of a bucket."""

    @abstractmethod
    def get_caller_id(self) -> str:
        """Return the canonical id of the identity the client acts as."""

    def list_objects(self, bucket: str, options: Optional[ListObjectsOptions] = None) -> Iterator[str]:
        """
        List object keys.

        Honors ``options.max_keys`` as a limit on the total number of keys
        yielded, not only on the page size.

        Args:
            bucket (str): Bucket name.
            options (ListObjectsOptions, optional): Prefix, delimiter and limits.

        Yields:
            str: Object keys in lexicographic order.
        """
        limit = options.max_keys if options else None
        count = 0
        for page in self.list_objects_pages(bucket, options):
            for summary in page.objects:
                if limit is not None and count >= limit:
                    return
                yield summary.key
                count += 1

    def close(self) -> None:
        """Release transport resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
