# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
"""
Access control evaluation.

Maps an object's ACL (owner plus ordered grants) onto access decisions
for read, write and execute modes, and onto POSIX permission bits for
the posix attribute view.
"""

from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Set

from .attributes import PosixPermission
from ..client.exceptions import AccessDenied
from ..client.types import ALL_USERS, AUTHENTICATED_USERS, Grant, Owner, Permission

class AccessMode(Enum):
    READ = "read"
    WRITE = "write"
    EXECUTE = "execute"

# Store permissions that imply each access mode
IMPLYING_PERMISSIONS = {
    AccessMode.READ: frozenset({Permission.READ, Permission.FULL_CONTROL}),
    AccessMode.WRITE: frozenset({Permission.WRITE, Permission.FULL_CONTROL}),
    AccessMode.EXECUTE: frozenset({Permission.FULL_CONTROL}),
}

class AccessControlList:
    """
    ACL of one object or bucket.

    Attributes:
        bucket (str): Bucket the ACL belongs to.
        key (str): Object key, empty for a bucket ACL.
        grants (List[Grant]): Ordered grants.
        owner (Owner): Owner of the object.
    """

    def __init__(self, bucket: str, key: str, grants: Iterable[Grant], owner: Owner):
        self.bucket = bucket
        self.key = key
        self.grants: List[Grant] = list(grants)
        self.owner = owner

    def _name(self) -> str:
        return f"{self.bucket}/{self.key}" if self.key else self.bucket

    def _grantee_matches(self, grantee: str, identity: Optional[str]) -> bool:
        if grantee == ALL_USERS:
            return True
        if grantee == AUTHENTICATED_USERS:
            return bool(identity)
        return identity is not None and grantee == identity

    def is_owner(self, identity: Optional[str]) -> bool:
        return bool(identity) and self.owner is not None and identity == self.owner.id

    def permissions_for(self, identity: Optional[str]) -> Set[Permission]:
        """Store permissions granted to an identity, directly or through a group."""
        return {g.permission for g in self.grants if self._grantee_matches(g.grantee, identity)}

    def has_access(self, mode: AccessMode, identity: Optional[str]) -> bool:
        if self.is_owner(identity):
            return True
        return bool(self.permissions_for(identity) & IMPLYING_PERMISSIONS[mode])

    def check_access(self, modes: Iterable[AccessMode], identity: Optional[str]) -> None:
        """
        Verify every requested mode.

        Args:
            modes (Iterable[AccessMode]): Requested access modes.
            identity (str, optional): Canonical id of the caller.

        Raises:
            AccessDenied: Naming the first mode that is not granted.
        """
        for mode in modes:
            if not self.has_access(mode, identity):
                raise AccessDenied(f"{mode.value} access denied to {self._name()} for {identity or 'anonymous'}",
                                   path=self._name(), mode=mode)

    def to_posix_permissions(self, is_directory: bool = False) -> FrozenSet[PosixPermission]:
        """
        Derive POSIX permission bits.

        Owner bits come from grants to the owner, group bits from grants to
        authenticated users, others bits from grants to all users.
        Directories gain the execute bit wherever read is granted.

        Args:
            is_directory (bool): Whether the ACL belongs to a directory.

        Returns:
            frozenset: The PosixPermission members.
        """
        classes = (
            ("OWNER", {g.permission for g in self.grants if self.owner is not None and g.grantee == self.owner.id}),
            ("GROUP", {g.permission for g in self.grants if g.grantee == AUTHENTICATED_USERS}),
            ("OTHERS", {g.permission for g in self.grants if g.grantee == ALL_USERS}),
        )
        result = set()
        for prefix, granted in classes:
            readable = bool(granted & IMPLYING_PERMISSIONS[AccessMode.READ])
            if readable:
                result.add(PosixPermission[f"{prefix}_READ"])
            if granted & IMPLYING_PERMISSIONS[AccessMode.WRITE]:
                result.add(PosixPermission[f"{prefix}_WRITE"])
            if is_directory and readable:
                result.add(PosixPermission[f"{prefix}_EXECUTE"])
        return frozenset(result)
