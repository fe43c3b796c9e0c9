# Copyright 2025 Accelerated Cloud Storage Corporation. All Rights Reserved.
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

# Grantee sentinels for group grants
ALL_USERS = "http://acs.amazonaws.com/groups/global/AllUsers"
AUTHENTICATED_USERS = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"

@dataclass
class HeadBucketOutput:
    """Metadata for a bucket."""
    region: str

@dataclass
class HeadObjectOutput:
    """Metadata for an object."""
    content_length: int
    last_modified: datetime
    etag: str = ""
    content_type: Optional[str] = None
    user_metadata: Dict[str, str] = field(default_factory=dict)

@dataclass
class ObjectSummary:
    """One object returned by a prefix listing."""
    key: str
    size: int
    last_modified: datetime
    etag: str = ""

@dataclass
class ListObjectsOptions:
    """Options for listing objects."""
    prefix: Optional[str] = None
    start_after: Optional[str] = None
    max_keys: Optional[int] = None
    delimiter: Optional[str] = None
    continuation_token: Optional[str] = None

@dataclass
class ListObjectsPage:
    """A single page of a prefix listing."""
    objects: List[ObjectSummary] = field(default_factory=list)
    common_prefixes: List[str] = field(default_factory=list)
    is_truncated: bool = False
    next_continuation_token: Optional[str] = None

class Permission(str, Enum):
    """Object ACL permissions."""
    FULL_CONTROL = "FULL_CONTROL"
    READ = "READ"
    WRITE = "WRITE"
    READ_ACP = "READ_ACP"
    WRITE_ACP = "WRITE_ACP"

@dataclass(frozen=True)
class Owner:
    """Owner of a bucket or object."""
    id: str
    display_name: Optional[str] = None

@dataclass(frozen=True)
class Grant:
    """An ACL entry: a grantee (canonical id or group sentinel) and a permission."""
    grantee: str
    permission: Permission

@dataclass
class AccessControlPolicy:
    """Owner plus ordered grants, as returned by an ACL query."""
    owner: Owner
    grants: List[Grant] = field(default_factory=list)
