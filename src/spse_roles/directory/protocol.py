"""Directory collaborator protocol.

The policy engine never talks to an identity directory itself.  It is
handed an object satisfying ``Directory`` and calls only the methods
below.  Every method may raise ``DirectoryUnavailableError``; callers
must surface that as a retryable condition, distinct from a validation
failure.

Implementations
---------------
- :class:`~spse_roles.directory.memory.InMemoryDirectory` — plain-data
  backend used by the CLI and the test suite.
- Real directory clients (Auth0 management API, LDAP, ...) are injected
  by the embedding service; this library ships none.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from spse_roles.model.keys import OrgUnit, RoleKey


class DirectoryUnavailableError(RuntimeError):
    """The directory could not be reached.  Retryable; never a validation failure."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        self.detail = detail
        suffix = f": {detail}" if detail else ""
        super().__init__(f"Directory unavailable during {operation}{suffix}")


class MembershipNotFoundError(LookupError):
    """The identity is not a member of the unit (the directory answered 404)."""

    def __init__(self, unit: OrgUnit, identity: str) -> None:
        self.unit = unit
        self.identity = identity
        super().__init__(f"{identity!r} is not a member of {unit.display_name}")


@dataclass(frozen=True)
class DirectoryRole:
    """One entry of the directory's role list.  Division is derived locally."""

    name: str
    external_id: str


@runtime_checkable
class Directory(Protocol):
    """Read (and, for the role manager, write) access to an identity directory."""

    def list_all_roles(self) -> list[DirectoryRole]:
        """Return every role the directory knows, with its external id."""
        ...  # pragma: no cover

    def get_org_unit(self, unit: OrgUnit) -> bool:
        """Return ``True`` if ``unit`` exists in the directory."""
        ...  # pragma: no cover

    def get_identity_roles(self, identity: str) -> list[RoleKey]:
        """Return the identity's current roles, sorted by formatted name."""
        ...  # pragma: no cover

    def get_member_roles(self, unit: OrgUnit, identity: str) -> list[str]:
        """Return the role names ``identity`` holds in ``unit``.

        Raises
        ------
        MembershipNotFoundError
            If ``identity`` is not a member of ``unit``.
        """
        ...  # pragma: no cover

    def get_global_roles(self, identity: str) -> list[str]:
        """Return the names of the roles ``identity`` holds outside any org unit.

        The superuser marker named by the hierarchy is one of these.
        """
        ...  # pragma: no cover

    def assign_member_roles(self, unit: OrgUnit, identity: str, external_ids: Iterable[str]) -> None:
        ...  # pragma: no cover

    def delete_member_roles(self, unit: OrgUnit, identity: str, external_ids: Iterable[str]) -> None:
        ...  # pragma: no cover
