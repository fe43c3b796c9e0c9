import pytest

from bucketfs.client.exceptions import InvalidArgument
from bucketfs.fs import keys

@pytest.mark.parametrize("path, expected", [
    ("", ""),
    ("/", ""),
    ("/a", "a"),
    ("/a/b.txt", "a/b.txt"),
    ("//a///b/", "a/b/"),
    ("a/b", "a/b"),
    ("/dir/", "dir/"),
])
def test_to_key(path, expected):
    assert keys.to_key(path) == expected

@pytest.mark.parametrize("path", ["", "/", "/a", "a", "//a//b", "/a/b/", "a//", "/x/y/z.bin"])
def test_key_round_trip_is_idempotent(path):
    key = keys.to_key(path)
    assert keys.to_key(keys.from_key(key)) == key

def test_split_path():
    assert keys.split_path("/") == (None, "")
    assert keys.split_path("/bucket") == ("bucket", "")
    assert keys.split_path("/bucket/") == ("bucket", "")
    assert keys.split_path("/bucket/dir/file.txt") == ("bucket", "dir/file.txt")
    assert keys.split_path("/bucket//dir/") == ("bucket", "dir/")

def test_split_path_requires_absolute_path():
    with pytest.raises(InvalidArgument):
        keys.split_path("bucket/dir")

def test_join_path_inverts_split_path():
    assert keys.join_path(None, "") == "/"
    assert keys.join_path("bucket", "") == "/bucket"
    assert keys.join_path("bucket", "dir/file.txt") == "/bucket/dir/file.txt"

def test_directory_key_for():
    assert keys.directory_key_for("") == ""
    assert keys.directory_key_for("dir") == "dir/"
    assert keys.directory_key_for("dir/") == "dir/"

def test_is_directory_key():
    assert keys.is_directory_key("")
    assert keys.is_directory_key("a/")
    assert not keys.is_directory_key("a")

def test_is_implicit_directory():
    assert keys.is_implicit_directory("a/b", ["a/b/c"])
    assert keys.is_implicit_directory("a/b/", ["x", "a/b/c/d"])
    # A sibling sharing the name prefix is not a child
    assert not keys.is_implicit_directory("a/b", ["a/bc"])
    # The marker alone is not a descendant
    assert not keys.is_implicit_directory("a/b", ["a/b/"])
    assert not keys.is_implicit_directory("a/b", [])

def test_child_name():
    assert keys.child_name("dir/", "dir/file.txt") == ("file.txt", False)
    assert keys.child_name("dir/", "dir/sub/file.txt") == ("sub", True)
    assert keys.child_name("dir/", "dir/sub/") == ("sub", True)
    assert keys.child_name("dir/", "dir/") == ("", False)
    assert keys.child_name("", "top") == ("top", False)

def test_normalize():
    assert keys.normalize("") == ""
    assert keys.normalize("///") == "/"
    assert keys.normalize("/a//b/") == "/a/b/"
    assert keys.normalize("a//b") == "a/b"
