"""Data model: structured keys and value types."""
from __future__ import annotations

from spse_roles.model.keys import MalformedRoleError, OrgUnit, RoleKey, coerce_key, unit_prefix
from spse_roles.model.nodes import (
    Division,
    Role,
    RoleAssignment,
    UnitGroup,
    group_by_top_level_unit,
)

__all__ = [
    "OrgUnit",
    "RoleKey",
    "MalformedRoleError",
    "coerce_key",
    "unit_prefix",
    "Division",
    "Role",
    "RoleAssignment",
    "UnitGroup",
    "group_by_top_level_unit",
]
