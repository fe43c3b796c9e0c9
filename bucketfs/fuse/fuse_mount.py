# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
FUSE adapter for bucketfs.

This module mounts a bucket as a local filesystem by translating FUSE
calls into ObjectStoreProvider operations. Open files are backed by
seekable channels; their content is uploaded when the file is flushed
or released.

Usage:
    # Create a mount point
    mkdir -p /mnt/my-bucket

    # Mount the bucket
    python -m bucketfs.fuse s3:///my-bucket /mnt/my-bucket

    # Now you can work with the files as if they were local
    ls /mnt/my-bucket
    cat /mnt/my-bucket/example.txt
"""

from fuse import FUSE, FuseOSError, Operations
import errno
import os
import stat
import sys
import time
import subprocess
from itertools import count
from threading import Lock

from ..client.exceptions import (
    AccessDenied,
    AlreadyExists,
    BucketFSError,
    DirectoryNotEmpty,
    InvalidArgument,
    NotADirectory,
    NotFound,
    UnsupportedOperation,
)
from ..fs.acl import AccessMode
from ..fs.attributes import AttributeKind
from ..fs.channel import OpenOption
from ..fs.provider import CopyOption, ObjectStoreProvider
from ..utils import configure_logging, logger, time_function, trace_op
from .mount_utils import unmount, setup_signal_handlers, get_mount_options

ERRNO_BY_ERROR = (
    (NotFound, errno.ENOENT),
    (AlreadyExists, errno.EEXIST),
    (DirectoryNotEmpty, errno.ENOTEMPTY),
    (NotADirectory, errno.ENOTDIR),
    (AccessDenied, errno.EACCES),
    (UnsupportedOperation, errno.ENOTSUP),
    (InvalidArgument, errno.EINVAL),
)

BLOCK_SIZE = 4096

def to_fuse_error(e: BucketFSError) -> FuseOSError:
    """Map a bucketfs error to the FuseOSError carrying the matching errno."""
    for error_type, code in ERRNO_BY_ERROR:
        if isinstance(e, error_type):
            return FuseOSError(code)
    return FuseOSError(errno.EIO)

class BucketFuse(Operations):
    """
    FUSE operations over a bucketfs provider.

    Attributes:
        provider (ObjectStoreProvider): Provider performing every operation.
        root (StorePath): Path mounted at the mountpoint, usually a bucket root.
    """

    def __init__(self, provider: ObjectStoreProvider, root):
        logger.info(f"Initializing BucketFuse with root: {root}")
        self.provider = provider
        self.root = root
        self.channels = {}
        self._handles = count(1)
        self._lock = Lock()
        self._uid = os.getuid()
        self._gid = os.getgid()

    def _path(self, path):
        """Convert a FUSE path to a StorePath below the mounted root."""
        relative = path.lstrip('/')
        return self.root.resolve(relative) if relative else self.root

    def _failed(self, operation, path, e, start_time):
        time_function(f"{operation} (error)", start_time)
        if isinstance(e, BucketFSError):
            logger.debug(f"{operation} failed for {path}: {e}")
            return to_fuse_error(e)
        logger.error(f"{operation} error for {path}: {str(e)}", exc_info=True)
        return FuseOSError(errno.EIO)

    def _register(self, channel):
        with self._lock:
            fh = next(self._handles)
            self.channels[fh] = channel
        return fh

    def _channel(self, fh):
        with self._lock:
            channel = self.channels.get(fh)
        if channel is None:
            raise FuseOSError(errno.EBADF)
        return channel

    def getattr(self, path, fh=None):
        """
        Get file attributes.

        Args:
            path (str): Path to the file or directory
            fh (int, optional): File handle

        Returns:
            dict: File attributes

        Raises:
            FuseOSError: ENOENT if the path does not exist
        """
        trace_op("getattr", path, fh=fh)
        start_time = time.time()
        try:
            attributes = self.provider.read_attributes(self._path(path), AttributeKind.BASIC)
            size = attributes.size
            if fh is not None and fh in self.channels:
                size = self._channel(fh).size()
            mtime = attributes.last_modified.timestamp() if attributes.last_modified else time.time()
            result = {
                'st_uid': self._uid,
                'st_gid': self._gid,
                'st_atime': mtime,
                'st_mtime': mtime,
                'st_ctime': mtime,
                'st_blksize': BLOCK_SIZE,
                'st_rdev': 0,
            }
            if attributes.is_directory:
                result.update(st_mode=stat.S_IFDIR | 0o755, st_nlink=2, st_size=BLOCK_SIZE, st_blocks=8)
            else:
                result.update(st_mode=stat.S_IFREG | 0o644, st_nlink=1, st_size=size,
                              st_blocks=(size + BLOCK_SIZE - 1) // BLOCK_SIZE)
            time_function("getattr", start_time)
            return result
        except FuseOSError:
            raise
        except Exception as e:
            raise self._failed("getattr", path, e, start_time)

    def readdir(self, path, fh):
        """
        List directory contents.

        Returns:
            list: ``.``, ``..`` and the names of the children
        """
        trace_op("readdir", path, fh=fh)
        start_time = time.time()
        try:
            with self.provider.list_directory(self._path(path)) as stream:
                names = ['.', '..'] + [entry.name for entry in stream]
            time_function("readdir", start_time)
            return names
        except Exception as e:
            raise self._failed("readdir", path, e, start_time)

    def mkdir(self, path, mode):
        trace_op("mkdir", path, mode=mode)
        start_time = time.time()
        try:
            self.provider.create_directory(self._path(path))
            time_function("mkdir", start_time)
        except Exception as e:
            raise self._failed("mkdir", path, e, start_time)

    def rmdir(self, path):
        """
        Remove an empty directory.

        Raises:
            FuseOSError: ENOTDIR for a file, ENOTEMPTY for a non-empty directory
        """
        trace_op("rmdir", path)
        start_time = time.time()
        try:
            target = self._path(path)
            if not self.provider.read_attributes(target, AttributeKind.BASIC).is_directory:
                raise FuseOSError(errno.ENOTDIR)
            self.provider.delete(target)
            time_function("rmdir", start_time)
        except FuseOSError:
            raise
        except Exception as e:
            raise self._failed("rmdir", path, e, start_time)

    def unlink(self, path):
        trace_op("unlink", path)
        start_time = time.time()
        try:
            self.provider.delete(self._path(path))
            time_function("unlink", start_time)
        except Exception as e:
            raise self._failed("unlink", path, e, start_time)

    def rename(self, old, new):
        """
        Rename a file. Directories cannot be renamed (ENOTSUP).

        The target is replaced if it exists, as rename(2) does.
        """
        trace_op("rename", old, new=new)
        start_time = time.time()
        try:
            self.provider.move(self._path(old), self._path(new), CopyOption.REPLACE_EXISTING)
            time_function("rename", start_time)
        except Exception as e:
            raise self._failed("rename", old, e, start_time)

    def create(self, path, mode, fi=None):
        """
        Create a file and open it for writing.

        The empty object is written immediately so the file is visible
        to getattr before the first flush.

        Returns:
            int: File handle
        """
        trace_op("create", path, mode=mode)
        start_time = time.time()
        try:
            channel = self.provider.open_channel(
                self._path(path), OpenOption.READ, OpenOption.WRITE,
                OpenOption.CREATE, OpenOption.TRUNCATE_EXISTING)
            channel.flush()
            fh = self._register(channel)
            time_function("create", start_time)
            return fh
        except Exception as e:
            raise self._failed("create", path, e, start_time)

    def open(self, path, flags):
        """
        Open a file.

        Args:
            path (str): Path to the file
            flags (int): Open flags (O_RDONLY, O_WRONLY, O_APPEND, O_TRUNC, ...)

        Returns:
            int: File handle
        """
        trace_op("open", path, flags=flags)
        start_time = time.time()
        accmode = flags & os.O_ACCMODE
        open_options = set()
        if flags & os.O_APPEND:
            open_options.update({OpenOption.WRITE, OpenOption.APPEND})
        else:
            if accmode in (os.O_RDONLY, os.O_RDWR):
                open_options.add(OpenOption.READ)
            if accmode in (os.O_WRONLY, os.O_RDWR):
                open_options.add(OpenOption.WRITE)
        if flags & os.O_TRUNC and accmode != os.O_RDONLY:
            open_options.add(OpenOption.TRUNCATE_EXISTING)
        try:
            channel = self.provider.open_channel(self._path(path), *open_options)
            fh = self._register(channel)
            time_function("open", start_time)
            return fh
        except Exception as e:
            raise self._failed("open", path, e, start_time)

    def read(self, path, size, offset, fh):
        trace_op("read", path, size=size, offset=offset)
        start_time = time.time()
        channel = self._channel(fh)
        try:
            channel.seek(offset)
            data = channel.read(size)
            time_function("read", start_time)
            return data
        except Exception as e:
            raise self._failed("read", path, e, start_time)

    def write(self, path, data, offset, fh):
        """
        Write into the open file's buffer.

        Returns:
            int: Number of bytes written
        """
        trace_op("write", path, size=len(data), offset=offset)
        start_time = time.time()
        channel = self._channel(fh)
        try:
            channel.seek(offset)
            written = channel.write(data)
            time_function("write", start_time)
            return written
        except Exception as e:
            raise self._failed("write", path, e, start_time)

    def truncate(self, path, length, fh=None):
        """
        Truncate or extend a file to ``length`` bytes.

        Without a handle the file is opened, resized and uploaded at once.
        """
        trace_op("truncate", path, length=length, fh=fh)
        start_time = time.time()
        try:
            if fh is not None and fh in self.channels:
                self._resize(self._channel(fh), length)
            else:
                with self.provider.open_channel(self._path(path), OpenOption.READ, OpenOption.WRITE) as channel:
                    self._resize(channel, length)
            time_function("truncate", start_time)
        except FuseOSError:
            raise
        except Exception as e:
            raise self._failed("truncate", path, e, start_time)

    @staticmethod
    def _resize(channel, length):
        current = channel.size()
        if length < current:
            channel.truncate(length)
        elif length > current:
            position = channel.tell()
            channel.seek(current)
            channel.write(b"\0" * (length - current))
            channel.seek(position)

    def flush(self, path, fh):
        """Upload pending writes of an open file."""
        trace_op("flush", path, fh=fh)
        start_time = time.time()
        channel = self._channel(fh)
        try:
            channel.flush()
            time_function("flush", start_time)
            return 0
        except Exception as e:
            raise self._failed("flush", path, e, start_time)

    def fsync(self, path, datasync, fh):
        return self.flush(path, fh)

    def release(self, path, fh):
        """Close an open file, uploading its content if it changed."""
        trace_op("release", path, fh=fh)
        start_time = time.time()
        with self._lock:
            channel = self.channels.pop(fh, None)
        if channel is None:
            return 0
        try:
            channel.close()
            time_function("release", start_time)
            return 0
        except Exception as e:
            raise self._failed("release", path, e, start_time)

    def release_all(self):
        """Close every open file; used when unmounting."""
        with self._lock:
            channels = list(self.channels.items())
            self.channels.clear()
        for fh, channel in channels:
            try:
                channel.close()
            except BucketFSError as e:
                logger.error(f"Failed to upload open file handle {fh} on {channel.path}: {e}")

    def access(self, path, mode):
        """
        Check if a file can be accessed with the given mode.

        Args:
            path (str): Path to the file
            mode (int): Access mode (F_OK, R_OK, W_OK, X_OK)

        Returns:
            int: 0 on success
        """
        trace_op("access", path, mode=mode)
        start_time = time.time()
        modes = []
        if mode & os.R_OK:
            modes.append(AccessMode.READ)
        if mode & os.W_OK:
            modes.append(AccessMode.WRITE)
        if mode & os.X_OK:
            modes.append(AccessMode.EXECUTE)
        try:
            self.provider.check_access(self._path(path), *modes)
            time_function("access", start_time)
            return 0
        except Exception as e:
            raise self._failed("access", path, e, start_time)

    def chmod(self, path, mode):
        # Permissions come from ACLs and cannot be changed through the mount
        raise FuseOSError(errno.ENOTSUP)

    def chown(self, path, uid, gid):
        raise FuseOSError(errno.ENOTSUP)

    def statfs(self, path):
        """
        Get filesystem statistics.

        Object stores have no fixed capacity; the values report a large,
        empty filesystem so that free space checks pass.
        """
        trace_op("statfs", path)
        block_size = BLOCK_SIZE
        total_blocks = 1250000000  # 5TB
        return {
            'f_bsize': block_size,
            'f_frsize': block_size,
            'f_blocks': total_blocks,
            'f_bfree': total_blocks,
            'f_bavail': total_blocks,
            'f_files': 1000000000,
            'f_ffree': 999999999,
            'f_favail': 999999999,
            'f_flag': 0,
            'f_namemax': 255,
        }

    def destroy(self, path):
        logger.info("Cleaning up BucketFuse resources...")
        self.release_all()

def mount(uri: str, mountpoint: str, foreground: bool = True, allow_other: bool = False,
          settings=None, provider: ObjectStoreProvider = None):
    """
    Mount a bucket at the specified mountpoint.

    The bucket is created if it does not exist.

    Args:
        uri (str): ``s3://[principal[:secret]@][host[:port]]/bucket[/prefix]``
        mountpoint (str): Local path where the filesystem should be mounted
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.
        settings (dict, optional): Option values for the filesystem.
        provider (ObjectStoreProvider, optional): Provider to use.
    """
    logger.info(f"Mounting {uri} at {mountpoint}")
    start_time = time.time()

    if os.path.exists(mountpoint) and not os.path.isdir(mountpoint):
        logger.error(f"Mountpoint path exists but is not a directory: {mountpoint}")
        print(f"Error: {mountpoint} exists but is not a directory. Please specify a directory path.")
        return
    if not os.path.exists(mountpoint):
        logger.info(f"Mountpoint {mountpoint} does not exist, creating it...")
        try:
            os.makedirs(mountpoint, mode=0o755)
        except OSError as e:
            logger.error(f"Failed to create mountpoint {mountpoint}: {str(e)}")
            print(f"Error: Failed to create mountpoint directory {mountpoint}: {str(e)}")
            print(f"Try: sudo mkdir -p {mountpoint}")
            return

    provider = provider or ObjectStoreProvider()
    try:
        root = provider.get_path(uri, settings)
        if root.bucket is None:
            print("Error: the URI must name a bucket, e.g. s3:///my-bucket")
            return
        if not provider.exists(root):
            logger.info(f"{root} does not exist. Creating it...")
            provider.create_directory(root)
    except BucketFSError as e:
        logger.error(f"Failed to open {uri}: {e}")
        print(f"Error: {e}")
        return

    process = subprocess.run(["mountpoint", "-q", mountpoint], check=False)
    if process.returncode == 0:
        logger.warning(f"Mountpoint {mountpoint} is already mounted")
        print(f"Warning: {mountpoint} is already mounted. Unmounting first...")
        unmount(mountpoint, BucketFuse)

    options = get_mount_options(foreground, allow_other)
    setup_signal_handlers(mountpoint, lambda mp: unmount(mp, BucketFuse))

    try:
        logger.info(f"Starting FUSE mount with options: {options}")
        FUSE(BucketFuse(provider, root), mountpoint, nothreads=False, **options)
        time_function("mount", start_time)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, unmounting...")
        print("Keyboard interrupt received, unmounting...")
        unmount(mountpoint, BucketFuse)
    except RuntimeError as e:
        logger.error(f"Error during mount: {type(e).__name__}: {e}")
        print(f"Error: {type(e).__name__}: {e}")
        print(f"Check that {mountpoint} is an empty directory you can write to.")
        unmount(mountpoint, BucketFuse)
    finally:
        provider.close()

def main(argv=None):
    """
    CLI entry point for mounting buckets.

    Usage:
        python -m bucketfs.fuse <uri> <mountpoint>

    Options:
        --allow-other: Allow other users to access the mount
            (requires user_allow_other in /etc/fuse.conf)
        --trace: Enable detailed tracing of file operations for debugging
        --set NAME=VALUE: Option value for the filesystem, repeatable
    """
    import argparse
    parser = argparse.ArgumentParser(description='Mount a bucket as a local filesystem')
    parser.add_argument('uri', help='Bucket URI, e.g. s3:///my-bucket or s3://host:9000/my-bucket')
    parser.add_argument('mountpoint', help='The directory to mount the bucket on')
    parser.add_argument('--allow-other', action='store_true',
                        help='Allow other users to access the mount (requires user_allow_other in /etc/fuse.conf)')
    parser.add_argument('--trace', action='store_true',
                        help='Enable detailed tracing of file operations for debugging')
    parser.add_argument('--set', dest='settings', action='append', default=[], metavar='NAME=VALUE',
                        help='Option value for the filesystem, e.g. --set region=eu-west-1')
    args = parser.parse_args(argv)

    if args.trace:
        os.environ['BUCKETFS_TRACE_OPS'] = 'true'
        os.environ.setdefault('BUCKETFS_LOG_LEVEL', 'DEBUG')
        print("Detailed operation tracing enabled")
    configure_logging()
    logger.info(f"Starting bucketfs FUSE CLI with arguments: {sys.argv}")
    start_time = time.time()

    settings = {}
    for item in args.settings:
        name, sep, value = item.partition('=')
        if not sep:
            parser.error(f"--set expects NAME=VALUE, got {item!r}")
        settings[name.strip()] = value

    mount(args.uri, args.mountpoint, allow_other=args.allow_other, settings=settings)
    time_function("main", start_time)

if __name__ == '__main__':
    main()
