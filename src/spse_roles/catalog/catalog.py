"""RoleCatalog: immutable role -> (division, external id) index.

The catalog is built once at startup from the hierarchy table and the
directory's live role list, then shared read-only by the validator and
the authority engine.

Usage
-----
::

    from spse_roles.catalog import DEFAULT_HIERARCHY, RoleCatalog

    catalog = RoleCatalog.from_directory(DEFAULT_HIERARCHY, directory)
    catalog.division_of("PPK")       # Division(name='Pelaku Pengadaan LPSE')
    catalog.external_id_of("PPK")    # 'rol_005'
"""
from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from types import MappingProxyType

from spse_roles.catalog.hierarchy import DEFAULT_HIERARCHY, Hierarchy
from spse_roles.directory.protocol import Directory, DirectoryUnavailableError
from spse_roles.model.nodes import Division, Role

logger = logging.getLogger(__name__)


class CatalogLoadError(RuntimeError):
    """The catalog could not be built.  Fatal at startup."""


class RoleCatalog:
    """Read-only lookup of roles by name.

    Parameters
    ----------
    hierarchy:
        The role taxonomy; defines which roles exist and their divisions.
    external_ids:
        Mapping ``role name -> external id`` from the directory.  Names not
        in ``hierarchy`` are ignored.
    """

    def __init__(
        self,
        hierarchy: Hierarchy = DEFAULT_HIERARCHY,
        external_ids: Mapping[str, str] | None = None,
    ) -> None:
        self._hierarchy = hierarchy
        ids = dict(external_ids or {})
        roles: dict[str, Role] = {}
        for division_name, role_names in hierarchy.divisions:
            division = Division(division_name)
            for name in role_names:
                roles[name] = Role(name=name, division=division, external_id=ids.get(name))
        self._roles: Mapping[str, Role] = MappingProxyType(roles)
        self._divisions: tuple[Division, ...] = tuple(
            Division(name) for name in hierarchy.division_names
        )

    @classmethod
    def from_directory(cls, hierarchy: Hierarchy, directory: Directory) -> "RoleCatalog":
        """Build a catalog from ``hierarchy`` and ``directory.list_all_roles()``.

        Raises
        ------
        CatalogLoadError
            If the directory cannot be reached.
        """
        try:
            listed = directory.list_all_roles()
        except DirectoryUnavailableError as exc:
            raise CatalogLoadError(f"Cannot build role catalog: {exc}") from exc

        known = set(hierarchy.role_names)
        external_ids: dict[str, str] = {}
        for entry in listed:
            if entry.name not in known:
                logger.warning(
                    "Directory role %r is not in the hierarchy table; ignoring it", entry.name
                )
                continue
            external_ids[entry.name] = entry.external_id
        for name in hierarchy.role_names:
            if name not in external_ids:
                logger.warning("Hierarchy role %r has no counterpart in the directory", name)

        catalog = cls(hierarchy, external_ids)
        logger.debug(
            "Built role catalog: %d role(s) across %d division(s)",
            len(catalog),
            len(catalog.divisions),
        )
        return catalog

    def reload(self, directory: Directory) -> "RoleCatalog":
        """Return a fresh catalog for the same hierarchy, re-reading the directory."""
        return type(self).from_directory(self._hierarchy, directory)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def division_of(self, role_name: str) -> Division | None:
        role = self._roles.get(role_name)
        return role.division if role is not None else None

    def external_id_of(self, role_name: str) -> str | None:
        role = self._roles.get(role_name)
        return role.external_id if role is not None else None

    def role(self, role_name: str) -> Role | None:
        return self._roles.get(role_name)

    @property
    def hierarchy(self) -> Hierarchy:
        return self._hierarchy

    @property
    def roles(self) -> Mapping[str, Role]:
        return self._roles

    @property
    def divisions(self) -> tuple[Division, ...]:
        return self._divisions

    def __contains__(self, role_name: object) -> bool:
        return role_name in self._roles

    def __iter__(self) -> Iterator[Role]:
        return iter(self._roles.values())

    def __len__(self) -> int:
        return len(self._roles)

    def __repr__(self) -> str:
        return f"RoleCatalog(roles={len(self)}, divisions={[d.name for d in self._divisions]})"
