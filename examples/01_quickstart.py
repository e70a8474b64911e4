#!/usr/bin/env python3
"""Example: Quickstart — spse-roles

Minimal working example: build a role catalog, validate a proposed
role set, and ask whether an administrator may grant a role.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install spse-roles
"""
from __future__ import annotations

import spse_roles
from spse_roles.catalog import RoleCatalog
from spse_roles.model import OrgUnit


def main() -> None:
    print(f"spse-roles version: {spse_roles.__version__}")

    # Step 1: Build a catalog from the built-in LPSE hierarchy
    catalog = RoleCatalog(spse_roles.DEFAULT_HIERARCHY)
    print(f"Catalog: {len(catalog)} roles in {len(catalog.divisions)} divisions")

    # Step 2: A consistent role set
    violations = spse_roles.validate_assignments(
        "auth0|alice", ["A:A1:KUPBJ", "A:A2:PPK", "B:B1:Helpdesk"], catalog
    )
    print(f"Consistent set: {len(violations)} violations")

    # Step 3: PP and PPK under the same KLPD
    violations = spse_roles.validate_assignments(
        "auth0|alice", ["A:A1:PP", "A:A2:PPK", "A:A3:Verifikator"], catalog
    )
    print(f"Conflicting set: {len(violations)} violations")
    for violation in violations:
        print(f"  {violation}")

    # Step 4: Authority delegation
    unit = OrgUnit("A", "A1")
    for target in ("Admin Agency", "Auditor"):
        allowed = spse_roles.can_assign(["A:A1:Admin PPE"], unit, target, False, catalog)
        print(f"Admin PPE may grant {target} in {unit}: {allowed}")


if __name__ == "__main__":
    main()
