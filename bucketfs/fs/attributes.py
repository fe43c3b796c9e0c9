# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Attribute snapshots.

Two attribute kinds are supported, matched explicitly through the closed
AttributeKind enumeration: BASIC (size, timestamps, directory flag) and
POSIX (adds owner, group and permission bits derived from ACL grants).
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from ..client.exceptions import InvalidArgument, UnsupportedOperation

class AttributeKind(Enum):
    BASIC = "basic"
    POSIX = "posix"

    @classmethod
    def parse(cls, value) -> "AttributeKind":
        """
        Resolve an attribute kind from an enum member or family name.

        Raises:
            UnsupportedOperation: For any family other than basic or posix.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise UnsupportedOperation(f"attribute kind {value!r} is not supported, only basic / posix are supported") from None

class PosixPermission(Enum):
    OWNER_READ = 0o400
    OWNER_WRITE = 0o200
    OWNER_EXECUTE = 0o100
    GROUP_READ = 0o040
    GROUP_WRITE = 0o020
    GROUP_EXECUTE = 0o010
    OTHERS_READ = 0o004
    OTHERS_WRITE = 0o002
    OTHERS_EXECUTE = 0o001

def permissions_to_mode(permissions: Iterable[PosixPermission]) -> int:
    """Fold a permission set into mode bits (e.g. 0o640)."""
    mode = 0
    for permission in permissions:
        mode |= permission.value
    return mode

def permissions_to_string(permissions: Iterable[PosixPermission]) -> str:
    """Render a permission set as ``rwxr-x---``."""
    mode = permissions_to_mode(permissions)
    chars = []
    for shift in (6, 3, 0):
        bits = (mode >> shift) & 0o7
        chars.append("r" if bits & 0o4 else "-")
        chars.append("w" if bits & 0o2 else "-")
        chars.append("x" if bits & 0o1 else "-")
    return "".join(chars)

@dataclass
class BasicAttributes:
    """
    Basic attribute snapshot of a path.

    Attributes:
        file_key (str): Store key the snapshot was built from.
        size (int): Object size in bytes, 0 for directories.
        last_modified (datetime): Last modification time, None when unknown
            (implicit directories).
        is_directory (bool): Whether the path behaves as a directory.
        captured_at (float): Capture timestamp used for TTL evaluation.
    """
    file_key: str
    size: int
    last_modified: Optional[datetime]
    is_directory: bool
    captured_at: float = 0.0

    kind = AttributeKind.BASIC

    @property
    def is_regular_file(self) -> bool:
        return not self.is_directory

    @property
    def last_access_time(self) -> Optional[datetime]:
        return self.last_modified

    @property
    def creation_time(self) -> Optional[datetime]:
        return self.last_modified

    def satisfies(self, kind: AttributeKind) -> bool:
        """A snapshot satisfies its own kind and any kind it extends."""
        return kind is AttributeKind.BASIC or kind is self.kind

    def to_map(self) -> Dict[str, Any]:
        return {
            "lastModifiedTime": self.last_modified,
            "lastAccessTime": self.last_access_time,
            "creationTime": self.creation_time,
            "size": self.size,
            "isRegularFile": self.is_regular_file,
            "isDirectory": self.is_directory,
            "isSymbolicLink": False,
            "isOther": False,
            "fileKey": self.file_key,
        }

@dataclass
class PosixAttributes(BasicAttributes):
    """Basic attributes plus owner, group and permissions from the ACL."""
    owner: Optional[str] = None
    group: Optional[str] = None
    permissions: FrozenSet[PosixPermission] = field(default_factory=frozenset)

    kind = AttributeKind.POSIX

    @classmethod
    def extend(cls, basic: BasicAttributes, owner, group, permissions) -> "PosixAttributes":
        values = {f.name: getattr(basic, f.name) for f in fields(BasicAttributes)}
        return cls(owner=owner, group=group, permissions=frozenset(permissions), **values)

    def to_map(self) -> Dict[str, Any]:
        result = super().to_map()
        result.update({
            "owner": self.owner,
            "group": self.group,
            "permissions": set(self.permissions),
        })
        return result

BASIC_NAMES = frozenset(BasicAttributes("", 0, None, False).to_map())
POSIX_NAMES = BASIC_NAMES | {"owner", "group", "permissions"}

def parse_attribute_spec(spec: str) -> Tuple[AttributeKind, Optional[Tuple[str, ...]]]:
    """
    Parse an attribute filter spec.

    Accepted forms are ``*``, ``basic:*``, ``posix:*`` and a comma-separated
    list of names, each optionally prefixed by ``basic:`` or ``posix:``.

    Args:
        spec (str): The filter spec.

    Returns:
        tuple: ``(kind, names)``; ``names`` is None when every attribute of
            the kind is requested.

    Raises:
        InvalidArgument: If the attribute list is empty or names an unknown attribute.
        UnsupportedOperation: If a family other than basic or posix is used.
    """
    if spec is None or not spec.strip():
        raise InvalidArgument("Attributes spec must not be empty")
    spec = spec.strip()
    if spec in ("*", "basic:*"):
        return AttributeKind.BASIC, None
    if spec == "posix:*":
        return AttributeKind.POSIX, None

    kind = AttributeKind.BASIC
    names = []
    for item in spec.split(","):
        item = item.strip()
        if not item:
            continue
        family, sep, name = item.rpartition(":")
        if sep:
            if AttributeKind.parse(family) is AttributeKind.POSIX:
                kind = AttributeKind.POSIX
        if name == "*":
            names.extend(sorted(POSIX_NAMES if family == "posix" else BASIC_NAMES))
            continue
        if name not in POSIX_NAMES:
            raise InvalidArgument(f"Unknown attribute {item!r}")
        if name not in BASIC_NAMES:
            kind = AttributeKind.POSIX
        names.append(name)
    return kind, tuple(names)

def attributes_to_map(attrs: BasicAttributes, names: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Render a snapshot as a name -> value mapping.

    Args:
        attrs (BasicAttributes): The snapshot.
        names (Iterable[str], optional): Restrict the result to these names.

    Returns:
        dict: The attribute values.
    """
    values = attrs.to_map()
    if names is None:
        return values
    return {name: values[name] for name in names if name in values}
