import pytest

from bucketfs.client.exceptions import InvalidArgument

from conftest import BUCKET

def test_components(path):
    target = path(f"/{BUCKET}/dir/file.txt")
    assert target.is_absolute()
    assert target.bucket == BUCKET
    assert target.key == "dir/file.txt"
    assert target.name == "file.txt"
    assert str(target) == f"/{BUCKET}/dir/file.txt"

def test_root_and_bucket_root(path):
    root = path("/")
    assert root.is_root
    assert root.bucket is None
    assert root.key == ""
    assert root.parent is None
    bucket_root = path(f"/{BUCKET}")
    assert bucket_root.is_bucket_root
    assert bucket_root.parent == root

def test_trailing_separator_is_kept_in_key_but_not_in_cache_key(path):
    directory = path(f"/{BUCKET}/dir/")
    assert directory.key == "dir/"
    assert directory.cache_key == f"/{BUCKET}/dir"
    assert directory == path(f"/{BUCKET}/dir")
    assert hash(directory) == hash(path(f"/{BUCKET}/dir"))

def test_get_path_joins_segments(filesystem):
    assert filesystem.get_path("/", BUCKET, "dir", "file.txt").path == f"/{BUCKET}/dir/file.txt"
    assert filesystem.get_path(f"/{BUCKET}", "/dir").path == f"/{BUCKET}/dir"

def test_resolve(path):
    directory = path(f"/{BUCKET}/dir")
    assert (directory / "sub/file").path == f"/{BUCKET}/dir/sub/file"
    assert directory.resolve("/other/key").path == "/other/key"
    assert directory.resolve("") is directory
    assert path("/").resolve(BUCKET).path == f"/{BUCKET}"

def test_parent(path):
    assert path(f"/{BUCKET}/dir/file.txt").parent.path == f"/{BUCKET}/dir"
    assert path(f"/{BUCKET}/dir/").parent.path == f"/{BUCKET}"

def test_relative_path_has_no_bucket(path):
    relative = path("dir/file.txt")
    assert not relative.is_absolute()
    with pytest.raises(InvalidArgument):
        relative.bucket
    with pytest.raises(InvalidArgument):
        relative.key

def test_paths_of_different_filesystems_differ(provider, filesystem):
    other = provider.new_filesystem("s3://other.test/")
    assert filesystem.get_path(f"/{BUCKET}/a") != other.get_path(f"/{BUCKET}/a")

def test_to_uri(path):
    assert path(f"/{BUCKET}/a b").to_uri() == f"s3://memory.test/{BUCKET}/a b"
