"""In-memory ``Directory`` implementation.

``InMemoryDirectory`` keeps org units, the role list, memberships and
global (unit-less) roles in plain Python containers.  It backs the CLI (loaded
from a YAML/JSON snapshot) and the test suite.

Snapshot format
---------------
::

    roles:
      Admin PPE: rol_001
      PPK: rol_005
    units:
      - A-A1
      - A-A2
    members:
      auth0|alice:
        A-A1: [Admin PPE]
    global_roles:
      auth0|root: [Super Admin]

Setting ``available=False`` makes every call raise
``DirectoryUnavailableError``, which is how tests exercise the
unavailable path.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from spse_roles.directory.protocol import (
    DirectoryRole,
    DirectoryUnavailableError,
    MembershipNotFoundError,
)
from spse_roles.model.keys import UNIT_NAME_SEPARATOR, OrgUnit, RoleKey

logger = logging.getLogger(__name__)


class SnapshotError(ValueError):
    """Raised when a directory snapshot file cannot be loaded."""


def parse_unit_name(name: str) -> OrgUnit:
    """Split a directory unit name ``"A-A1"`` into an ``OrgUnit``."""
    top, sep, sub = name.partition(UNIT_NAME_SEPARATOR)
    if not sep or not top or not sub:
        raise SnapshotError(f"Unit name {name!r} must look like '<klpd>-<satker>'")
    return OrgUnit(top, sub)


class InMemoryDirectory:
    """Directory backed by dictionaries.

    Parameters
    ----------
    roles:
        Mapping ``role name -> external id``.
    units:
        Org units that exist.
    members:
        Mapping ``identity -> {OrgUnit -> role names}``.
    global_roles:
        Mapping ``identity -> role names`` held outside any org unit.
    """

    def __init__(
        self,
        roles: dict[str, str] | None = None,
        units: Iterable[OrgUnit] = (),
        members: dict[str, dict[OrgUnit, list[str]]] | None = None,
        global_roles: dict[str, list[str]] | None = None,
    ) -> None:
        self._roles: dict[str, str] = dict(roles or {})
        self._units: set[OrgUnit] = set(units)
        self._members: dict[str, dict[OrgUnit, list[str]]] = {
            identity: {unit: list(names) for unit, names in per_unit.items()}
            for identity, per_unit in (members or {}).items()
        }
        self._global_roles: dict[str, list[str]] = {
            identity: list(names) for identity, names in (global_roles or {}).items()
        }
        self.available: bool = True
        self.reads: int = 0

    def _ensure_available(self, operation: str) -> None:
        if not self.available:
            raise DirectoryUnavailableError(operation, "in-memory directory marked unavailable")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list_all_roles(self) -> list[DirectoryRole]:
        self._ensure_available("list_all_roles")
        self.reads += 1
        return [DirectoryRole(name, rid) for name, rid in sorted(self._roles.items())]

    def get_org_unit(self, unit: OrgUnit) -> bool:
        self._ensure_available("get_org_unit")
        self.reads += 1
        return unit in self._units

    def get_identity_roles(self, identity: str) -> list[RoleKey]:
        self._ensure_available("get_identity_roles")
        self.reads += 1
        per_unit = self._members.get(identity, {})
        keys = [RoleKey.of(unit, role) for unit, names in per_unit.items() for role in names]
        return sorted(keys, key=str)

    def get_member_roles(self, unit: OrgUnit, identity: str) -> list[str]:
        self._ensure_available("get_member_roles")
        self.reads += 1
        per_unit = self._members.get(identity, {})
        if unit not in per_unit:
            raise MembershipNotFoundError(unit, identity)
        return sorted(per_unit[unit])

    def get_global_roles(self, identity: str) -> list[str]:
        self._ensure_available("get_global_roles")
        self.reads += 1
        return sorted(self._global_roles.get(identity, []))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def assign_member_roles(self, unit: OrgUnit, identity: str, external_ids: Iterable[str]) -> None:
        self._ensure_available("assign_member_roles")
        by_id = {rid: name for name, rid in self._roles.items()}
        held = self._members.setdefault(identity, {}).setdefault(unit, [])
        for rid in external_ids:
            name = by_id.get(rid)
            if name is None:
                raise KeyError(f"Unknown role id {rid!r}")
            if name not in held:
                held.append(name)
        logger.debug("Assigned %d role(s) to %r in %s", len(held), identity, unit)

    def delete_member_roles(self, unit: OrgUnit, identity: str, external_ids: Iterable[str]) -> None:
        self._ensure_available("delete_member_roles")
        by_id = {rid: name for name, rid in self._roles.items()}
        per_unit = self._members.get(identity, {})
        if unit not in per_unit:
            raise MembershipNotFoundError(unit, identity)
        removed = {by_id.get(rid) for rid in external_ids}
        per_unit[unit] = [name for name in per_unit[unit] if name not in removed]

    # ------------------------------------------------------------------
    # Snapshot loading
    # ------------------------------------------------------------------

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InMemoryDirectory":
        """Build a directory from the snapshot mapping described in the module docstring."""
        if not isinstance(data, dict):
            raise SnapshotError("Directory snapshot must be a mapping")
        roles = data.get("roles") or {}
        if not isinstance(roles, dict):
            raise SnapshotError("'roles' must map role names to external ids")
        units = [parse_unit_name(str(name)) for name in data.get("units") or []]
        members: dict[str, dict[OrgUnit, list[str]]] = {}
        for identity, per_unit in (data.get("members") or {}).items():
            if not isinstance(per_unit, dict):
                raise SnapshotError(f"Memberships of {identity!r} must be a mapping")
            members[str(identity)] = {
                parse_unit_name(str(unit)): [str(r) for r in names or []]
                for unit, names in per_unit.items()
            }
        global_roles = data.get("global_roles") or {}
        if not isinstance(global_roles, dict):
            raise SnapshotError("'global_roles' must map identities to role names")
        return cls(
            roles={str(k): str(v) for k, v in roles.items()},
            units=units,
            members=members,
            global_roles={
                str(identity): [str(r) for r in names or []]
                for identity, names in global_roles.items()
            },
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemoryDirectory":
        """Load a snapshot from a YAML or JSON file."""
        try:
            text = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(text)
        except OSError as exc:
            raise SnapshotError(f"Cannot read directory snapshot {str(path)!r}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise SnapshotError(f"Directory snapshot {str(path)!r} is not valid YAML: {exc}") from exc
        logger.debug("Loaded directory snapshot from %s", path)
        return cls.from_dict(data)
