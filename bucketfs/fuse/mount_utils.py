# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Mount utilities for the bucketfs FUSE adapter.

This module provides functions for unmounting, signal handling and the
FUSE mount options used by ``mount``.
"""

import sys
import signal
import subprocess
import time
from fuse import FUSE
from ..utils import logger, time_function

# Attribute and entry cache timeouts handed to the kernel, in seconds
ATTR_TIMEOUT = 60

def unmount(mountpoint, fuse_ops_class=None):
    """
    Unmount the filesystem using fusermount (Linux).

    Open files of the active operations object are closed, and so
    uploaded, before the mount is released.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        fuse_ops_class (class, optional): The FUSE operations class to look for in active operations
    """
    logger.info(f"Unmounting filesystem at {mountpoint}")
    start_time = time.time()

    mountpoint = mountpoint.rstrip('/')
    try:
        cp = subprocess.run(["mountpoint", "-q", mountpoint])
        if cp.returncode != 0:
            logger.warning(f"{mountpoint} is not mounted, nothing to unmount.")
            print(f"{mountpoint} is not mounted, nothing to unmount.")
            time_function("unmount", start_time)
            return

        if fuse_ops_class:
            active = getattr(FUSE, "_active_fuseops", ())
            fuse_ops = next((ops for ops in active if isinstance(ops, fuse_ops_class)), None)
            if fuse_ops is not None:
                fuse_ops.release_all()
                logger.info("Closed open files")

        subprocess.run(["fusermount", "-u", mountpoint], check=True)
        logger.info(f"Unmounted {mountpoint} gracefully.")
        print(f"Unmounted {mountpoint} gracefully.")
    except (OSError, subprocess.CalledProcessError) as e:
        logger.error(f"Error during unmounting: {e}")
        print(f"Error during unmounting: {e}")
    finally:
        time_function("unmount", start_time)

def setup_signal_handlers(mountpoint, unmount_func):
    """
    Set up signal handlers for graceful unmounting.

    Handles SIGINT and SIGTERM so that the filesystem is unmounted when
    the process is terminated.

    Args:
        mountpoint (str): Path where the filesystem is mounted
        unmount_func (callable): Function to call for unmounting

    Returns:
        callable: The signal handler function
    """
    def signal_handler(sig, frame):
        logger.info(f"Signal {sig} received, unmounting...")
        print("Signal received, unmounting...")
        unmount_func(mountpoint)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    return signal_handler

def get_mount_options(foreground=True, allow_other=False, debug=False):
    """
    Get mount options for FUSE.

    The kernel caches attributes and entries for ATTR_TIMEOUT seconds;
    writes are buffered by the adapter, so large writes are enabled.

    Args:
        foreground (bool, optional): Run in foreground. Defaults to True.
        allow_other (bool, optional): Allow other users to access the mount.
            Requires 'user_allow_other' in /etc/fuse.conf. Defaults to False.
        debug (bool, optional): Enable FUSE debug output. Defaults to False.

    Returns:
        dict: Dictionary of mount options
    """
    options = {
        'foreground': foreground,
        'debug': debug,
        'default_permissions': True,
        'rw': True,
        'big_writes': True,
        'hard_remove': True,
        'entry_timeout': ATTR_TIMEOUT,
        'negative_timeout': 0,
        'attr_timeout': ATTR_TIMEOUT,
        'fsname': 'bucketfs',
    }

    if allow_other:
        options['allow_other'] = True

    return options
