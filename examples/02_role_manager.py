#!/usr/bin/env python3
"""Example: Role manager against a directory snapshot

Loads ``data/directory.yaml`` into an in-memory directory, then adds
roles through ``RoleManager`` the way the role-management service does:
authority first, then merge-and-validate, then directory writes.

Usage:
    python examples/02_role_manager.py

Requirements:
    pip install spse-roles
"""
from __future__ import annotations

from pathlib import Path

from spse_roles.authority import AuthorityDeniedError
from spse_roles.catalog import DEFAULT_HIERARCHY, RoleCatalog
from spse_roles.directory import InMemoryDirectory
from spse_roles.manager import RoleManager
from spse_roles.request import load_request
from spse_roles.validator import ViolationReport

DATA = Path(__file__).parent / "data"


def show(directory: InMemoryDirectory, identity: str) -> None:
    roles = ", ".join(str(k) for k in directory.get_identity_roles(identity)) or "(none)"
    print(f"  {identity}: {roles}")


def main() -> None:
    directory = InMemoryDirectory.from_file(DATA / "directory.yaml")
    catalog = RoleCatalog.from_directory(DEFAULT_HIERARCHY, directory)
    manager = RoleManager(catalog, directory)

    print("Before:")
    show(directory, "auth0|budi")

    request = load_request(DATA / "add_ppk.yaml")
    try:
        expanded = manager.add_roles(request, assigner="auth0|admin")
    except ViolationReport as report:
        print(report)
    except AuthorityDeniedError as exc:
        print(f"Denied: {exc}")
    else:
        print(f"Accepted, expanded set: {[str(k) for k in expanded]}")

    print("After:")
    show(directory, "auth0|budi")


if __name__ == "__main__":
    main()
