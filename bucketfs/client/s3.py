# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
S3 store client.

This module implements StoreClient on top of a boto3 S3 client. Every
call goes through ``translate_errors`` so that botocore failures leave
this module as bucketfs errors.
"""

import time
from typing import BinaryIO, Iterator, List, Optional

from .base import StoreClient
from .errors import translate_errors
from .types import (
    ALL_USERS,
    AUTHENTICATED_USERS,
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
from ..utils import logger

DEFAULT_REGION = "us-east-1"

def _to_grant(raw: dict) -> Optional[Grant]:
    grantee = raw.get("Grantee", {})
    identity = grantee.get("ID") or grantee.get("URI") or grantee.get("EmailAddress")
    if identity is None:
        return None
    if identity.endswith("/AllUsers"):
        identity = ALL_USERS
    elif identity.endswith("/AuthenticatedUsers"):
        identity = AUTHENTICATED_USERS
    try:
        permission = Permission(raw.get("Permission"))
    except ValueError:
        logger.warning(f"Ignoring grant with unknown permission {raw.get('Permission')}")
        return None
    return Grant(identity, permission)

def _to_policy(response: dict) -> AccessControlPolicy:
    owner = response.get("Owner", {})
    grants = [g for g in (_to_grant(raw) for raw in response.get("Grants", [])) if g is not None]
    return AccessControlPolicy(
        owner=Owner(owner.get("ID", ""), owner.get("DisplayName")),
        grants=grants,
    )

class S3StoreClient(StoreClient):
    """
    StoreClient backed by boto3.

    Attributes:
        client: The boto3 S3 client.
        region (str): Region used when creating buckets.
    """

    def __init__(self, client, region: Optional[str] = None):
        self.client = client
        self.region = region or DEFAULT_REGION
        self._caller_id = None

    @translate_errors("HEAD_BUCKET")
    def head_bucket(self, bucket: str) -> HeadBucketOutput:
        response = self.client.head_bucket(Bucket=bucket)
        headers = response.get("ResponseMetadata", {}).get("HTTPHeaders", {})
        return HeadBucketOutput(region=response.get("BucketRegion") or headers.get("x-amz-bucket-region") or self.region)

    @translate_errors("LIST_BUCKETS")
    def list_buckets(self) -> List[str]:
        return [b["Name"] for b in self.client.list_buckets().get("Buckets", [])]

    @translate_errors("CREATE_BUCKET")
    def create_bucket(self, bucket: str, region: Optional[str] = None) -> None:
        region = region or self.region
        logger.info(f"Creating bucket {bucket} in {region}")
        if region == DEFAULT_REGION:
            self.client.create_bucket(Bucket=bucket)
        else:
            self.client.create_bucket(
                Bucket=bucket,
                CreateBucketConfiguration={"LocationConstraint": region},
            )

    @translate_errors("HEAD")
    def head_object(self, bucket: str, key: str) -> HeadObjectOutput:
        response = self.client.head_object(Bucket=bucket, Key=key)
        return HeadObjectOutput(
            content_length=response.get("ContentLength", 0),
            last_modified=response.get("LastModified"),
            etag=response.get("ETag", "").strip('"'),
            content_type=response.get("ContentType"),
            user_metadata=response.get("Metadata", {}),
        )

    @translate_errors("GET")
    def get_object(self, bucket: str, key: str) -> bytes:
        client_start = time.time()
        response = self.client.get_object(Bucket=bucket, Key=key)
        data = response["Body"].read()
        logger.debug(f"get_object for {bucket}/{key} fetched {len(data)} bytes in {time.time() - client_start:.4f} seconds")
        return data

    @translate_errors("GET")
    def open_object(self, bucket: str, key: str) -> BinaryIO:
        return self.client.get_object(Bucket=bucket, Key=key)["Body"]

    @translate_errors("PUT")
    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        self.client.put_object(Bucket=bucket, Key=key, Body=data)

    @translate_errors("DELETE")
    def delete_object(self, bucket: str, key: str) -> None:
        self.client.delete_object(Bucket=bucket, Key=key)

    @translate_errors("COPY")
    def copy_object(self, source_bucket: str, source_key: str, bucket: str, key: str) -> None:
        # Objects above the single-request copy limit are out of scope here
        self.client.copy_object(
            CopySource={"Bucket": source_bucket, "Key": source_key},
            Bucket=bucket,
            Key=key,
        )

    def list_objects_pages(self, bucket: str, options: Optional[ListObjectsOptions] = None) -> Iterator[ListObjectsPage]:
        options = options or ListObjectsOptions()
        token = options.continuation_token
        while True:
            page = self._list_page(bucket, options, token)
            yield page
            if not page.is_truncated:
                return
            token = page.next_continuation_token

    @translate_errors("LIST")
    def _list_page(self, bucket: str, options: ListObjectsOptions, token: Optional[str]) -> ListObjectsPage:
        params = {"Bucket": bucket, "Prefix": options.prefix or ""}
        if options.delimiter:
            params["Delimiter"] = options.delimiter
        if options.max_keys:
            params["MaxKeys"] = options.max_keys
        if token:
            params["ContinuationToken"] = token
        elif options.start_after:
            params["StartAfter"] = options.start_after

        response = self.client.list_objects_v2(**params)
        return ListObjectsPage(
            objects=[
                ObjectSummary(
                    key=item["Key"],
                    size=item.get("Size", 0),
                    last_modified=item.get("LastModified"),
                    etag=item.get("ETag", "").strip('"'),
                )
                for item in response.get("Contents", [])
            ],
            common_prefixes=[cp["Prefix"] for cp in response.get("CommonPrefixes", [])],
            is_truncated=response.get("IsTruncated", False),
            next_continuation_token=response.get("NextContinuationToken"),
        )

    @translate_errors("GET_ACL")
    def get_object_acl(self, bucket: str, key: str) -> AccessControlPolicy:
        return _to_policy(self.client.get_object_acl(Bucket=bucket, Key=key))

    @translate_errors("GET_BUCKET_ACL")
    def get_bucket_acl(self, bucket: str) -> AccessControlPolicy:
        return _to_policy(self.client.get_bucket_acl(Bucket=bucket))

    @translate_errors("LIST_BUCKETS")
    def get_caller_id(self) -> str:
        if self._caller_id is None:
            self._caller_id = self.client.list_buckets().get("Owner", {}).get("ID", "")
        return self._caller_id

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if callable(close):
            close()
            logger.info("S3 client connection closed")
