"""Role catalog and hierarchy configuration.

Exports the ``RoleCatalog`` index, the ``Hierarchy`` configuration type,
the built-in ``DEFAULT_HIERARCHY`` and the YAML loader.
"""
from __future__ import annotations

from spse_roles.catalog.catalog import CatalogLoadError, RoleCatalog
from spse_roles.catalog.hierarchy import (
    DEFAULT_HIERARCHY,
    AuthorityRule,
    Hierarchy,
    HierarchyError,
    load_hierarchy,
)

__all__ = [
    "RoleCatalog",
    "CatalogLoadError",
    "Hierarchy",
    "HierarchyError",
    "AuthorityRule",
    "DEFAULT_HIERARCHY",
    "load_hierarchy",
]
