import errno
import os
import stat

import pytest

try:
    from fuse import FuseOSError
    from bucketfs.fuse.fuse_mount import BucketFuse, to_fuse_error
except (ImportError, OSError):
    pytest.skip("fusepy or libfuse is not available", allow_module_level=True)

from bucketfs.client.exceptions import (
    AccessDenied,
    DirectoryNotEmpty,
    NotFound,
    TransportError,
    UnsupportedOperation,
)
from bucketfs.client.types import Owner

from conftest import BUCKET

@pytest.fixture
def fuse_ops(provider, path):
    ops = BucketFuse(provider, path(f"/{BUCKET}"))
    yield ops
    ops.release_all()

def fuse_errno(call, *args):
    with pytest.raises(FuseOSError) as exc_info:
        call(*args)
    return exc_info.value.errno

def test_error_mapping():
    assert to_fuse_error(NotFound("x")).errno == errno.ENOENT
    assert to_fuse_error(DirectoryNotEmpty("x")).errno == errno.ENOTEMPTY
    assert to_fuse_error(AccessDenied("x")).errno == errno.EACCES
    assert to_fuse_error(UnsupportedOperation("x")).errno == errno.ENOTSUP
    assert to_fuse_error(TransportError("x")).errno == errno.EIO

def test_getattr(fuse_ops, store):
    store.put_object(BUCKET, "dir/file.txt", b"hello")
    root = fuse_ops.getattr("/")
    assert stat.S_ISDIR(root["st_mode"])
    directory = fuse_ops.getattr("/dir")
    assert stat.S_ISDIR(directory["st_mode"])
    file_attrs = fuse_ops.getattr("/dir/file.txt")
    assert stat.S_ISREG(file_attrs["st_mode"])
    assert file_attrs["st_size"] == 5
    assert fuse_errno(fuse_ops.getattr, "/missing") == errno.ENOENT

def test_readdir(fuse_ops, store):
    store.put_object(BUCKET, "a.txt", b"")
    store.put_object(BUCKET, "sub/b.txt", b"")
    assert fuse_ops.readdir("/", None) == [".", "..", "a.txt", "sub"]
    assert fuse_errno(fuse_ops.readdir, "/a.txt", None) == errno.ENOTDIR

def test_create_write_release(fuse_ops, store):
    fh = fuse_ops.create("/new.txt", 0o644)
    # Visible before any data is flushed
    assert store.get_object(BUCKET, "new.txt") == b""
    assert fuse_ops.write("/new.txt", b"hello", 0, fh) == 5
    assert fuse_ops.getattr("/new.txt", fh)["st_size"] == 5
    fuse_ops.release("/new.txt", fh)
    assert store.get_object(BUCKET, "new.txt") == b"hello"
    assert fuse_errno(fuse_ops.read, "/new.txt", 5, 0, fh) == errno.EBADF

def test_open_read(fuse_ops, store):
    store.put_object(BUCKET, "f.txt", b"0123456789")
    fh = fuse_ops.open("/f.txt", os.O_RDONLY)
    assert fuse_ops.read("/f.txt", 4, 3, fh) == b"3456"
    fuse_ops.release("/f.txt", fh)
    assert fuse_errno(fuse_ops.open, "/missing.txt", os.O_RDONLY) == errno.ENOENT

def test_open_append(fuse_ops, store):
    store.put_object(BUCKET, "log.txt", b"one\n")
    fh = fuse_ops.open("/log.txt", os.O_WRONLY | os.O_APPEND)
    fuse_ops.write("/log.txt", b"two\n", 0, fh)
    fuse_ops.flush("/log.txt", fh)
    assert store.get_object(BUCKET, "log.txt") == b"one\ntwo\n"
    fuse_ops.release("/log.txt", fh)

def test_truncate_without_handle(fuse_ops, store):
    store.put_object(BUCKET, "f.txt", b"0123456789")
    fuse_ops.truncate("/f.txt", 3)
    assert store.get_object(BUCKET, "f.txt") == b"012"
    fuse_ops.truncate("/f.txt", 5)
    assert store.get_object(BUCKET, "f.txt") == b"012\0\0"

def test_mkdir_and_rmdir(fuse_ops, store):
    fuse_ops.mkdir("/dir", 0o755)
    assert store.get_object(BUCKET, "dir/") == b""
    assert fuse_errno(fuse_ops.mkdir, "/dir", 0o755) == errno.EEXIST

    store.put_object(BUCKET, "dir/child", b"")
    assert fuse_errno(fuse_ops.rmdir, "/dir") == errno.ENOTEMPTY
    fuse_ops.unlink("/dir/child")
    fuse_ops.rmdir("/dir")
    assert fuse_errno(fuse_ops.getattr, "/dir") == errno.ENOENT

def test_rmdir_on_file(fuse_ops, store):
    store.put_object(BUCKET, "f.txt", b"")
    assert fuse_errno(fuse_ops.rmdir, "/f.txt") == errno.ENOTDIR

def test_rename_replaces_target(fuse_ops, store):
    store.put_object(BUCKET, "a.txt", b"new")
    store.put_object(BUCKET, "b.txt", b"old")
    fuse_ops.rename("/a.txt", "/b.txt")
    assert store.get_object(BUCKET, "b.txt") == b"new"
    assert fuse_errno(fuse_ops.getattr, "/a.txt") == errno.ENOENT

def test_rename_directory_is_unsupported(fuse_ops, store):
    store.put_object(BUCKET, "d/f", b"")
    assert fuse_errno(fuse_ops.rename, "/d", "/e") == errno.ENOTSUP

def test_access(fuse_ops, store):
    store.put_object(BUCKET, "mine.txt", b"")
    store.put_object(BUCKET, "theirs.txt", b"")
    store.put_object_acl(BUCKET, "theirs.txt", [], owner=Owner("someone-else"))
    assert fuse_ops.access("/mine.txt", os.R_OK | os.W_OK) == 0
    assert fuse_ops.access("/theirs.txt", os.F_OK) == 0
    assert fuse_errno(fuse_ops.access, "/theirs.txt", os.R_OK) == errno.EACCES
    assert fuse_errno(fuse_ops.access, "/missing.txt", os.F_OK) == errno.ENOENT

def test_chmod_is_unsupported(fuse_ops):
    assert fuse_errno(fuse_ops.chmod, "/f", 0o600) == errno.ENOTSUP

def test_release_all_uploads_open_files(fuse_ops, store):
    fh = fuse_ops.create("/pending.txt", 0o644)
    fuse_ops.write("/pending.txt", b"data", 0, fh)
    fuse_ops.release_all()
    assert store.get_object(BUCKET, "pending.txt") == b"data"
    assert fuse_ops.channels == {}
