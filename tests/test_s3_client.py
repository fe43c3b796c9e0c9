import io
from datetime import datetime, timezone

import boto3
import pytest
from botocore.response import StreamingBody
from botocore.stub import ANY, Stubber

from bucketfs.client.exceptions import AccessDenied, AlreadyExists, NotFound, TransportError
from bucketfs.client.s3 import S3StoreClient
from bucketfs.client.types import ALL_USERS, Grant, ListObjectsOptions, Permission

MODIFIED = datetime(2025, 1, 1, tzinfo=timezone.utc)

@pytest.fixture
def s3():
    return boto3.client(
        "s3",
        region_name="us-east-1",
        aws_access_key_id="AKID",
        aws_secret_access_key="secret",
    )

@pytest.fixture
def stubber(s3):
    with Stubber(s3) as stub:
        yield stub
        stub.assert_no_pending_responses()

@pytest.fixture
def client(s3):
    return S3StoreClient(s3)

def test_head_object(client, stubber):
    stubber.add_response(
        "head_object",
        {"ContentLength": 12, "LastModified": MODIFIED, "ETag": '"abc"', "ContentType": "text/plain"},
        {"Bucket": "bucket", "Key": "dir/file.txt"},
    )
    head = client.head_object("bucket", "dir/file.txt")
    assert head.content_length == 12
    assert head.last_modified == MODIFIED
    assert head.etag == "abc"

def test_missing_object_raises_not_found(client, stubber):
    stubber.add_client_error("head_object", service_error_code="404", http_status_code=404)
    with pytest.raises(NotFound) as exc_info:
        client.head_object("bucket", "missing")
    assert exc_info.value.path == "bucket/missing"

def test_missing_bucket_raises_not_found(client, stubber):
    stubber.add_client_error("list_objects_v2", service_error_code="NoSuchBucket", http_status_code=404)
    with pytest.raises(NotFound):
        next(client.list_objects_pages("nobucket"))

def test_forbidden_raises_access_denied(client, stubber):
    stubber.add_client_error("get_object", service_error_code="AccessDenied", http_status_code=403)
    with pytest.raises(AccessDenied):
        client.get_object("bucket", "secret")

def test_bucket_collision_raises_already_exists(client, stubber):
    stubber.add_client_error("create_bucket", service_error_code="BucketAlreadyOwnedByYou", http_status_code=409)
    with pytest.raises(AlreadyExists):
        client.create_bucket("bucket")

def test_other_failures_are_wrapped_with_cause(client, stubber):
    stubber.add_client_error("put_object", service_error_code="InternalError", http_status_code=500)
    with pytest.raises(TransportError) as exc_info:
        client.put_object("bucket", "key", b"data")
    assert exc_info.value.cause is not None
    assert exc_info.value.path == "bucket/key"

def test_get_object_reads_body(client, stubber):
    body = StreamingBody(io.BytesIO(b"payload"), len(b"payload"))
    stubber.add_response("get_object", {"Body": body}, {"Bucket": "bucket", "Key": "key"})
    assert client.get_object("bucket", "key") == b"payload"

def test_list_pages_follow_continuation_token(client, stubber):
    stubber.add_response(
        "list_objects_v2",
        {
            "Contents": [{"Key": "dir/a", "Size": 1, "LastModified": MODIFIED, "ETag": '"e1"'}],
            "CommonPrefixes": [{"Prefix": "dir/sub/"}],
            "IsTruncated": True,
            "NextContinuationToken": "token-1",
        },
        {"Bucket": "bucket", "Prefix": "dir/", "Delimiter": "/", "MaxKeys": 2},
    )
    stubber.add_response(
        "list_objects_v2",
        {
            "Contents": [{"Key": "dir/b", "Size": 2, "LastModified": MODIFIED, "ETag": '"e2"'}],
            "IsTruncated": False,
        },
        {"Bucket": "bucket", "Prefix": "dir/", "Delimiter": "/", "MaxKeys": 2, "ContinuationToken": "token-1"},
    )
    pages = list(client.list_objects_pages("bucket", ListObjectsOptions(prefix="dir/", delimiter="/", max_keys=2)))
    assert [s.key for s in pages[0].objects] == ["dir/a"]
    assert pages[0].common_prefixes == ["dir/sub/"]
    assert pages[0].objects[0].etag == "e1"
    assert [s.key for s in pages[1].objects] == ["dir/b"]
    assert not pages[1].is_truncated

def test_object_acl_is_mapped(client, stubber):
    stubber.add_response(
        "get_object_acl",
        {
            "Owner": {"ID": "owner-id", "DisplayName": "owner"},
            "Grants": [
                {"Grantee": {"Type": "CanonicalUser", "ID": "owner-id"}, "Permission": "FULL_CONTROL"},
                {"Grantee": {"Type": "Group", "URI": "http://acs.amazonaws.com/groups/global/AllUsers"},
                 "Permission": "READ"},
            ],
        },
        {"Bucket": "bucket", "Key": "key"},
    )
    policy = client.get_object_acl("bucket", "key")
    assert policy.owner.id == "owner-id"
    assert policy.grants == [Grant("owner-id", Permission.FULL_CONTROL), Grant(ALL_USERS, Permission.READ)]

def test_caller_id_is_resolved_once(client, stubber):
    stubber.add_response("list_buckets", {"Buckets": [], "Owner": {"ID": "caller-id"}})
    assert client.get_caller_id() == "caller-id"
    assert client.get_caller_id() == "caller-id"

def test_list_buckets(client, stubber):
    stubber.add_response("list_buckets", {"Buckets": [{"Name": "a", "CreationDate": MODIFIED}, {"Name": "b", "CreationDate": MODIFIED}]})
    assert client.list_buckets() == ["a", "b"]

def test_create_bucket_outside_default_region(s3, stubber):
    stubber.add_response(
        "create_bucket",
        {},
        {"Bucket": "bucket", "CreateBucketConfiguration": {"LocationConstraint": "eu-west-1"}},
    )
    S3StoreClient(s3, region="eu-west-1").create_bucket("bucket")

def test_copy_object(client, stubber):
    stubber.add_response(
        "copy_object",
        {},
        {"CopySource": {"Bucket": "src", "Key": "a"}, "Bucket": "dst", "Key": "b"},
    )
    client.copy_object("src", "a", "dst", "b")

def test_delete_object(client, stubber):
    stubber.add_response("delete_object", {}, {"Bucket": "bucket", "Key": ANY})
    client.delete_object("bucket", "key")
