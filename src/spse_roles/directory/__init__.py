"""Directory collaborator: protocol, errors, and the in-memory backend."""
from __future__ import annotations

from spse_roles.directory.memory import InMemoryDirectory, SnapshotError
from spse_roles.directory.protocol import (
    Directory,
    DirectoryRole,
    DirectoryUnavailableError,
    MembershipNotFoundError,
)

__all__ = [
    "Directory",
    "DirectoryRole",
    "DirectoryUnavailableError",
    "MembershipNotFoundError",
    "InMemoryDirectory",
    "SnapshotError",
]
