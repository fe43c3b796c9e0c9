# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Utility functions for bucketfs.

This module provides logging configuration and utility functions
shared by the filesystem emulation layer, the store clients and the
FUSE adapter.
"""

import logging
import time
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s] - %(message)s'

logger = logging.getLogger('BucketFS')

def trace_enabled():
    """Return True when BUCKETFS_TRACE_OPS requests a trace of every operation."""
    return os.environ.get('BUCKETFS_TRACE_OPS', '').lower() in ('true', '1', 'yes')

def configure_logging(level=None):
    """
    Configure root logging with the bucketfs format.

    Called by command line entry points; library use leaves logging
    configuration to the application.

    Args:
        level (int or str, optional): Log level. Defaults to the
            BUCKETFS_LOG_LEVEL environment variable, or INFO.
    """
    if level is None:
        level = os.environ.get('BUCKETFS_LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)

def time_function(func_name, start_time):
    """
    Helper function for timing operations.

    Calculates and logs the elapsed time for a function call.

    Args:
        func_name (str): Name of the function being timed
        start_time (float): Start time from time.time()

    Returns:
        float: Elapsed time in seconds
    """
    elapsed = time.time() - start_time
    logger.info(f"{func_name} completed in {elapsed:.4f} seconds")
    return elapsed

def trace_op(operation, path, **details):
    """
    Trace a filesystem operation for debugging purposes.

    This function logs detailed information about operations
    when the BUCKETFS_TRACE_OPS environment variable is set.

    Args:
        operation (str): The operation being performed
        path (str): The path being operated on
        **details: Additional details to log
    """
    if trace_enabled():
        detail_str = ', '.join(f"{k}={v}" for k, v in details.items())
        logger.debug(f"TRACE: {operation} on {path} {detail_str}")
