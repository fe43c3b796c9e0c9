# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Filesystem provider for object stores.

This module provides the operation set of a hierarchical filesystem on
top of a flat object store: filesystem lifecycle by URI, streams and
channels, directory creation and listing, delete, copy, move, access
checks and attribute reads. Paths are resolved to (bucket, key) pairs
by the key mapper; directories are either explicit marker objects
(``dir/``) or implicit through the keys below them.

Usage:
    provider = ObjectStoreProvider()
    path = provider.get_path("s3://s3.amazonaws.com/my-bucket/dir/file.txt")
    with provider.open_input_stream(path) as stream:
        data = stream.read()
"""

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, BinaryIO, Callable, Iterable, List, Mapping, Optional, Union
from urllib.parse import SplitResult, unquote, urlsplit

from . import keys
from .acl import AccessControlList, AccessMode
from .attributes import (
    AttributeKind,
    BasicAttributes,
    PosixAttributes,
    PosixPermission,
    attributes_to_map,
    parse_attribute_spec,
)
from .channel import SeekableChannel
from .filesystem import FileSystem
from .listing import DirectoryEntry, DirectoryStream
from .path import StorePath
from .registry import FileSystemRegistry, derive_identity
from .. import config as options
from ..client.exceptions import (
    AlreadyExists,
    DirectoryNotEmpty,
    InvalidArgument,
    NotADirectory,
    NotFound,
    UnsupportedOperation,
)
from ..client.types import ListObjectsOptions
from ..config import Configuration
from ..factory import DEFAULT_HOST, ClientFactoryRegistry
from ..utils import logger, time_function, trace_op

class CopyOption(Enum):
    REPLACE_EXISTING = "replace_existing"
    ATOMIC_MOVE = "atomic_move"
    COPY_ATTRIBUTES = "copy_attributes"

def _copy_options(values: Iterable) -> set:
    resolved = set()
    for value in values:
        if isinstance(value, CopyOption):
            resolved.add(value)
            continue
        try:
            resolved.add(CopyOption(str(value).lower()))
        except ValueError:
            raise InvalidArgument(f"Unsupported copy option {value!r}") from None
    return resolved

def _access_modes(values: Iterable) -> list:
    resolved = []
    for value in values:
        if isinstance(value, AccessMode):
            resolved.append(value)
            continue
        try:
            resolved.append(AccessMode(str(value).lower()))
        except ValueError:
            raise InvalidArgument(f"Unsupported access mode {value!r}") from None
    return resolved

class FileSystemOperations(ABC):
    """
    Operation set of a bucketfs provider.

    Host adapters (the FUSE layer, an application) program against this
    interface; ObjectStoreProvider is the object store implementation.
    """

    scheme = "s3"

    @abstractmethod
    def new_filesystem(self, uri: str, settings: Optional[Mapping[str, Any]] = None) -> FileSystem:
        """Open a new filesystem; AlreadyExists if its identity is already open."""

    @abstractmethod
    def get_filesystem(self, uri: str, settings: Optional[Mapping[str, Any]] = None, create: bool = False) -> FileSystem:
        """Return the open filesystem for a URI, opening it if ``create`` is set."""

    @abstractmethod
    def get_path(self, uri: str, settings: Optional[Mapping[str, Any]] = None) -> StorePath:
        """Return the path a URI designates."""

    @abstractmethod
    def open_input_stream(self, path: StorePath) -> BinaryIO:
        """Open an object for sequential reading."""

    @abstractmethod
    def open_channel(self, path: StorePath, *open_options) -> SeekableChannel:
        """Open an object for random access."""

    @abstractmethod
    def create_directory(self, path: StorePath) -> None:
        """Create a directory marker, or a bucket for a bucket root."""

    @abstractmethod
    def delete(self, path: StorePath) -> None:
        """Delete a file or an empty directory; a missing path is not an error."""

    @abstractmethod
    def copy(self, source: StorePath, target: StorePath, *copy_options) -> None:
        """Copy a single object."""

    @abstractmethod
    def move(self, source: StorePath, target: StorePath, *copy_options) -> None:
        """Copy a single object, then delete the source."""

    @abstractmethod
    def check_access(self, path: StorePath, *modes) -> None:
        """Check existence, or the requested access modes."""

    @abstractmethod
    def exists(self, path: StorePath) -> bool:
        """Whether a metadata probe for the path succeeds."""

    @abstractmethod
    def read_attributes(self, path: StorePath, what: Union[AttributeKind, str] = AttributeKind.BASIC):
        """Return an attribute snapshot, or a mapping for a string spec."""

    @abstractmethod
    def set_attribute(self, path: StorePath, name: str, value: Any) -> None:
        """Attributes are read-only on an object store."""

    @abstractmethod
    def list_directory(self, path: StorePath,
                       entry_filter: Optional[Callable[[DirectoryEntry], bool]] = None) -> DirectoryStream:
        """Return a lazy listing of a directory."""

    @abstractmethod
    def is_same_file(self, path: StorePath, other: StorePath) -> bool:
        """Whether two paths designate the same object."""

    @abstractmethod
    def is_hidden(self, path: StorePath) -> bool:
        """Hidden files do not exist on an object store."""

class ObjectStoreProvider(FileSystemOperations):
    """
    FileSystemOperations over an object store reached through a StoreClient.

    Attributes:
        registry (FileSystemRegistry): Open filesystems by identity key.
        factories (ClientFactoryRegistry): Client factories by name.
        environ (Mapping[str, str], optional): Environment consulted by the
            configuration layer, os.environ when None.
        system_properties (Mapping[str, str]): Process-wide option values.
        properties_file (str, optional): Defaults file, the bundled one when None.
        clock (Callable[[], float]): Time source of the attribute caches.
    """

    def __init__(self,
                 registry: Optional[FileSystemRegistry] = None,
                 factories: Optional[ClientFactoryRegistry] = None,
                 environ: Optional[Mapping[str, str]] = None,
                 system_properties: Optional[Mapping[str, str]] = None,
                 properties_file: Optional[str] = None,
                 clock: Callable[[], float] = time.time):
        self.registry = registry if registry is not None else FileSystemRegistry()
        self.factories = factories if factories is not None else ClientFactoryRegistry()
        self.environ = environ
        self.system_properties = dict(system_properties or {})
        self.properties_file = properties_file
        self.clock = clock

    # ------------------------------------------------------------------
    # Filesystem lifecycle
    # ------------------------------------------------------------------

    def _parse_uri(self, uri: str) -> SplitResult:
        if not uri:
            raise InvalidArgument("URI must not be empty")
        parts = urlsplit(uri)
        if parts.scheme != self.scheme:
            raise InvalidArgument(f"URI scheme must be {self.scheme}: {uri!r}")
        return parts

    @staticmethod
    def _endpoint(parts: SplitResult) -> str:
        host = parts.hostname or DEFAULT_HOST
        return f"{host}:{parts.port}" if parts.port is not None else host

    def _configuration(self, parts: SplitResult, settings: Optional[Mapping[str, Any]]) -> Configuration:
        configuration = Configuration(
            settings,
            environ=self.environ,
            system_properties=self.system_properties,
            properties_file=self.properties_file,
        )
        if parts.username:
            # User-info credentials win over every configured layer
            configuration = configuration.with_overrides(**{
                options.ACCESS_KEY: unquote(parts.username),
                options.SECRET_KEY: unquote(parts.password) if parts.password else None,
            })
        configuration.validate()
        return configuration

    def _opener(self, identity: str, endpoint: str, configuration: Configuration) -> Callable[[], FileSystem]:
        def build() -> FileSystem:
            client = self.factories.create(endpoint, configuration)
            return FileSystem(self, identity, client, endpoint, configuration, clock=self.clock)
        return build

    def new_filesystem(self, uri: str, settings: Optional[Mapping[str, Any]] = None) -> FileSystem:
        """
        Open a filesystem for a URI.

        Args:
            uri (str): ``s3://[principal[:secret]@][host[:port]]/...``.
            settings (Mapping, optional): Per-call option values.

        Returns:
            FileSystem: The new, registered filesystem.

        Raises:
            AlreadyExists: If a filesystem with the same identity is open.
            InvalidArgument: For a malformed URI or inconsistent credentials.
            ConfigurationError: If no client can be built.
        """
        start_time = time.time()
        parts = self._parse_uri(uri)
        configuration = self._configuration(parts, settings)
        identity = derive_identity(uri, configuration)
        endpoint = self._endpoint(parts)
        trace_op("new_filesystem", identity, endpoint=endpoint)
        filesystem = self.registry.open(identity, self._opener(identity, endpoint, configuration))
        time_function("new_filesystem", start_time)
        return filesystem

    def get_filesystem(self, uri: str, settings: Optional[Mapping[str, Any]] = None, create: bool = False) -> FileSystem:
        """
        Return the filesystem open for a URI's identity.

        Args:
            uri (str): Filesystem URI.
            settings (Mapping, optional): Option values used if it must be opened.
            create (bool): Open the filesystem when none is registered.

        Raises:
            NotFound: If none is open and ``create`` is False.
        """
        parts = self._parse_uri(uri)
        configuration = self._configuration(parts, settings)
        identity = derive_identity(uri, configuration)
        if not create:
            return self.registry.lookup(identity)
        endpoint = self._endpoint(parts)
        return self.registry.get_or_open(identity, self._opener(identity, endpoint, configuration))

    def close_filesystem(self, filesystem: FileSystem) -> None:
        self.registry.close(filesystem)

    def is_open(self, filesystem: FileSystem) -> bool:
        return self.registry.is_open(filesystem)

    def get_path(self, uri: str, settings: Optional[Mapping[str, Any]] = None) -> StorePath:
        """Resolve a URI to a path, opening its filesystem when needed."""
        parts = self._parse_uri(uri)
        filesystem = self.get_filesystem(uri, settings, create=True)
        return filesystem.get_path(unquote(parts.path) or keys.SEPARATOR)

    def close(self) -> None:
        """Close every open filesystem and release its client."""
        for filesystem in self.registry.close_all():
            filesystem.cache.clear()
            filesystem.client.close()

    # ------------------------------------------------------------------
    # Metadata helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve(path: StorePath):
        if not isinstance(path, StorePath):
            raise InvalidArgument(f"Expected a StorePath, got {type(path).__name__}")
        bucket, key = keys.split_path(path.path)
        return path.filesystem, bucket, key

    @staticmethod
    def _keys_under(filesystem: FileSystem, bucket: str, prefix: str) -> List[str]:
        """Return the first key stored under a prefix, as a list of at most one key."""
        pages = filesystem.client.list_objects_pages(bucket, ListObjectsOptions(prefix=prefix, max_keys=1))
        first = next(pages, None)
        if first is None:
            return []
        return [summary.key for summary in first.objects] + list(first.common_prefixes)

    def _fetch_basic(self, path: StorePath) -> BasicAttributes:
        """
        Fetch basic attributes from the store.

        A key that exists both as ``key`` and as a directory (``key/`` or
        keys below it) is reported as a directory.

        Raises:
            NotFound: If neither an object nor a directory exists at the path.
        """
        filesystem, bucket, key = self._resolve(path)
        client = filesystem.client
        if bucket is None:
            return BasicAttributes(file_key="", size=0, last_modified=None, is_directory=True)
        if not key:
            client.head_bucket(bucket)
            return BasicAttributes(file_key="", size=0, last_modified=None, is_directory=True)

        directory_key = keys.directory_key_for(key)
        try:
            head = client.head_object(bucket, key)
        except NotFound:
            head = None
        if head is not None:
            is_directory = keys.is_directory_key(key) or bool(self._keys_under(filesystem, bucket, directory_key))
            return BasicAttributes(
                file_key=directory_key if is_directory else key,
                size=0 if is_directory else head.content_length,
                last_modified=head.last_modified,
                is_directory=is_directory,
            )

        if not keys.is_directory_key(key):
            try:
                marker = client.head_object(bucket, directory_key)
                return BasicAttributes(file_key=directory_key, size=0,
                                       last_modified=marker.last_modified, is_directory=True)
            except NotFound:
                pass
        if keys.is_implicit_directory(key, self._keys_under(filesystem, bucket, directory_key)):
            return BasicAttributes(file_key=directory_key, size=0, last_modified=None, is_directory=True)
        raise NotFound(f"{path.path} does not exist", path=path.path)

    def _stat(self, path: StorePath) -> Optional[BasicAttributes]:
        try:
            return self._fetch_basic(path)
        except NotFound:
            return None

    def _access_control_list(self, filesystem: FileSystem, bucket: str, key: str,
                             is_directory: bool) -> AccessControlList:
        """
        Fetch the ACL governing a path.

        Files and explicit directories use the ACL of their object; implicit
        directories and bucket roots use the bucket ACL.
        """
        client = filesystem.client
        if key:
            acl_key = keys.directory_key_for(key) if is_directory else key
            try:
                policy = client.get_object_acl(bucket, acl_key)
                return AccessControlList(bucket, acl_key, policy.grants, policy.owner)
            except NotFound:
                if not is_directory:
                    raise
        policy = client.get_bucket_acl(bucket)
        return AccessControlList(bucket, "", policy.grants, policy.owner)

    def _fetch_posix(self, path: StorePath) -> PosixAttributes:
        filesystem, bucket, key = self._resolve(path)
        basic = self._fetch_basic(path)
        if bucket is None:
            permissions = {PosixPermission.OWNER_READ, PosixPermission.OWNER_WRITE, PosixPermission.OWNER_EXECUTE}
            return PosixAttributes.extend(basic, filesystem.caller_id, None, permissions)
        acl = self._access_control_list(filesystem, bucket, key, basic.is_directory)
        owner = acl.owner.id if acl.owner is not None else None
        return PosixAttributes.extend(basic, owner, None, acl.to_posix_permissions(basic.is_directory))

    def _read(self, path: StorePath, kind: AttributeKind) -> BasicAttributes:
        fetch = self._fetch_posix if kind is AttributeKind.POSIX else self._fetch_basic
        return path.filesystem.cache.read(path.cache_key, kind, lambda: fetch(path))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def exists(self, path: StorePath) -> bool:
        """
        Probe a path: HEAD of the key, then a one-key listing below it.

        The filesystem root and bucket roots of existing buckets always exist.
        """
        filesystem, bucket, key = self._resolve(path)
        trace_op("exists", path.path)
        if bucket is None:
            return True
        if not key:
            try:
                filesystem.client.head_bucket(bucket)
                return True
            except NotFound:
                return False
        try:
            filesystem.client.head_object(bucket, key)
            return True
        except NotFound:
            pass
        try:
            return bool(self._keys_under(filesystem, bucket, keys.directory_key_for(key)))
        except NotFound:
            return False

    def open_input_stream(self, path: StorePath) -> BinaryIO:
        """
        Open an object for reading.

        Raises:
            InvalidArgument: For the root, a bucket root or a directory.
            NotFound: If the object does not exist.
        """
        start_time = time.time()
        filesystem, bucket, key = self._resolve(path)
        trace_op("open_input_stream", path.path)
        if bucket is None or not key:
            raise InvalidArgument(f"Cannot open a stream on {path.path}: it is a directory", path=path.path)
        attributes = self._read(path, AttributeKind.BASIC)
        if attributes.is_directory:
            raise InvalidArgument(f"Cannot open a stream on {path.path}: it is a directory", path=path.path)
        stream = filesystem.client.open_object(bucket, attributes.file_key)
        time_function("open_input_stream", start_time)
        return stream

    def open_channel(self, path: StorePath, *open_options) -> SeekableChannel:
        """
        Open a seekable channel on an object.

        Args:
            path (StorePath): Path of the object.
            *open_options (OpenOption): READ by default.

        Returns:
            SeekableChannel: The channel.
        """
        self._resolve(path)
        attributes = self._stat(path) if path.key else None
        return SeekableChannel(path, open_options, attributes)

    def create_directory(self, path: StorePath) -> None:
        """
        Create a directory.

        A bucket root creates the bucket. Elsewhere the bucket is created
        if absent, then a zero-length marker is written at ``key/``.

        Raises:
            AlreadyExists: If a file or directory already exists at the path.
        """
        start_time = time.time()
        filesystem, bucket, key = self._resolve(path)
        trace_op("create_directory", path.path)
        client = filesystem.client
        if bucket is None:
            raise AlreadyExists("The filesystem root always exists", path=path.path)
        if not key:
            client.create_bucket(bucket)
            time_function("create_directory", start_time)
            return
        if self.exists(path):
            raise AlreadyExists(f"{path.path} already exists", path=path.path)
        try:
            client.head_bucket(bucket)
        except NotFound:
            logger.info(f"Bucket {bucket} does not exist, creating it")
            client.create_bucket(bucket)
        client.put_object(bucket, keys.directory_key_for(key), b"")
        filesystem.cache.invalidate(path.cache_key)
        time_function("create_directory", start_time)

    def delete(self, path: StorePath) -> None:
        """
        Delete a file or an empty directory.

        Both ``key`` and ``key/`` are removed. Deleting a path that does
        not exist succeeds.

        Raises:
            DirectoryNotEmpty: If the path is a directory with children.
            UnsupportedOperation: For the root or a bucket root.
        """
        start_time = time.time()
        filesystem, bucket, key = self._resolve(path)
        trace_op("delete", path.path)
        if bucket is None or not key:
            raise UnsupportedOperation(f"Cannot delete {path.path}", path=path.path)

        try:
            with DirectoryStream(path, page_size=2) as stream:
                if next(iter(stream), None) is not None:
                    raise DirectoryNotEmpty(f"{path.path} is not empty", path=path.path)
        except (NotFound, NotADirectory):
            pass

        plain_key = key.rstrip(keys.SEPARATOR)
        try:
            filesystem.client.delete_object(bucket, plain_key)
            filesystem.client.delete_object(bucket, keys.directory_key_for(plain_key))
        except NotFound:
            logger.debug(f"Bucket {bucket} does not exist, nothing to delete for {path.path}")
        filesystem.cache.invalidate(path.cache_key)
        time_function("delete", start_time)

    def copy(self, source: StorePath, target: StorePath, *copy_options) -> None:
        """
        Server-side copy of a single object.

        Args:
            source (StorePath): Existing file.
            target (StorePath): Destination path on the same filesystem.
            *copy_options (CopyOption): Only REPLACE_EXISTING is accepted.

        Raises:
            UnsupportedOperation: If source or target is a directory.
            AlreadyExists: If the target exists and REPLACE_EXISTING is not given.
            NotFound: If the source does not exist.
        """
        start_time = time.time()
        requested = _copy_options(copy_options)
        unsupported = requested - {CopyOption.REPLACE_EXISTING}
        if unsupported:
            raise InvalidArgument(f"Unsupported copy options {sorted(o.value for o in unsupported)}")
        source_fs, source_bucket, _ = self._resolve(source)
        target_fs, target_bucket, target_key = self._resolve(target)
        trace_op("copy", source.path, target=target.path, options=sorted(o.value for o in requested))
        if source_fs is not target_fs:
            raise UnsupportedOperation("Copy between filesystems is not supported", path=source.path)
        if source == target:
            return

        source_attributes = self._fetch_basic(source)
        if source_attributes.is_directory:
            raise UnsupportedOperation(f"Directory copy is not supported: {source.path}", path=source.path)
        if target_bucket is None or not target_key or keys.is_directory_key(target_key):
            raise UnsupportedOperation(f"Cannot copy onto directory {target.path}", path=target.path)
        target_attributes = self._stat(target)
        if target_attributes is not None:
            if target_attributes.is_directory:
                raise UnsupportedOperation(f"Cannot copy onto directory {target.path}", path=target.path)
            if CopyOption.REPLACE_EXISTING not in requested:
                raise AlreadyExists(f"{target.path} already exists", path=target.path)

        source_fs.client.copy_object(source_bucket, source_attributes.file_key, target_bucket, target_key)
        target_fs.cache.invalidate(target.cache_key)
        time_function("copy", start_time)

    def move(self, source: StorePath, target: StorePath, *copy_options) -> None:
        """
        Copy then delete. Not atomic: a failure between the two steps can
        leave both source and target present.

        Raises:
            UnsupportedOperation: If ATOMIC_MOVE is requested.
        """
        requested = _copy_options(copy_options)
        if CopyOption.ATOMIC_MOVE in requested:
            raise UnsupportedOperation("Atomic move is not supported", path=source.path)
        trace_op("move", source.path, target=target.path)
        self.copy(source, target, *requested)
        if source != target:
            self.delete(source)

    def check_access(self, path: StorePath, *modes) -> None:
        """
        Check access to a path for the filesystem's caller identity.

        With no modes this only checks that the path exists.

        Args:
            path (StorePath): Absolute path.
            *modes (AccessMode): Requested modes.

        Raises:
            InvalidArgument: For a relative path or an unknown mode name.
            NotFound: If the path does not exist.
            AccessDenied: Naming the first mode that is not granted.
        """
        start_time = time.time()
        filesystem, bucket, key = self._resolve(path)
        requested = _access_modes(modes)
        trace_op("check_access", path.path, modes=[m.value for m in requested])
        if not requested:
            if not self.exists(path):
                raise NotFound(f"{path.path} does not exist", path=path.path)
            return
        attributes = self._fetch_basic(path)
        if bucket is None:
            return
        acl = self._access_control_list(filesystem, bucket, key, attributes.is_directory)
        acl.check_access(requested, filesystem.caller_id)
        time_function("check_access", start_time)

    def read_attributes(self, path: StorePath, what: Union[AttributeKind, str] = AttributeKind.BASIC):
        """
        Read attributes of a path.

        Args:
            path (StorePath): Absolute path.
            what: An AttributeKind, or a filter spec such as ``"*"``,
                ``"posix:*"`` or ``"size,lastModifiedTime"``.

        Returns:
            BasicAttributes or PosixAttributes for a kind; a dict for a spec.

        Raises:
            UnsupportedOperation: For an attribute family other than basic or posix.
            InvalidArgument: For an unknown attribute name.
            NotFound: If the path does not exist.
        """
        self._resolve(path)
        trace_op("read_attributes", path.path, what=what)
        if isinstance(what, str):
            kind, names = parse_attribute_spec(what)
            return attributes_to_map(self._read(path, kind), names)
        return self._read(path, AttributeKind.parse(what))

    def set_attribute(self, path: StorePath, name: str, value: Any) -> None:
        raise UnsupportedOperation("Setting attributes is not supported", path=str(path))

    def list_directory(self, path: StorePath,
                       entry_filter: Optional[Callable[[DirectoryEntry], bool]] = None) -> DirectoryStream:
        """
        List a directory.

        Raises:
            NotADirectory: If the path is a regular file.
            NotFound: If nothing exists at the path.
        """
        self._resolve(path)
        return DirectoryStream(path, entry_filter)

    def is_same_file(self, path: StorePath, other: StorePath) -> bool:
        return path == other

    def is_hidden(self, path: StorePath) -> bool:
        return False

    def __repr__(self):
        return f"ObjectStoreProvider(open={len(self.registry)})"
