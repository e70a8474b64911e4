"""Shared test fixtures for spse-roles.

Fixtures defined here are available to all tests in the suite without
needing an explicit import.  The directory fixture mirrors the LPSE
bootstrap: KLPD ``A`` and ``B`` with three Satuan Kerja each, and one
directory id per role of the default hierarchy.
"""
from __future__ import annotations

import pytest

from spse_roles.catalog import DEFAULT_HIERARCHY, RoleCatalog
from spse_roles.directory import InMemoryDirectory
from spse_roles.model import OrgUnit

ROLE_IDS: dict[str, str] = {
    "Admin PPE": "rol_admin_ppe",
    "Admin Agency": "rol_admin_agency",
    "Verifikator": "rol_verifikator",
    "Helpdesk": "rol_helpdesk",
    "PPK": "rol_ppk",
    "KUPBJ": "rol_kupbj",
    "Anggota Pokmil": "rol_pokmil",
    "PP": "rol_pp",
    "Auditor": "rol_auditor",
}

UNITS: tuple[OrgUnit, ...] = tuple(
    OrgUnit(klpd, f"{klpd}{i}") for klpd in ("A", "B") for i in range(1, 4)
)


def make_directory(
    members: dict[str, dict[OrgUnit, list[str]]] | None = None,
    superusers: tuple[str, ...] = (),
) -> InMemoryDirectory:
    """Build a directory over ``UNITS``; each superuser holds ``Super Admin`` globally."""
    return InMemoryDirectory(
        roles=dict(ROLE_IDS),
        units=UNITS,
        members=members,
        global_roles={identity: ["Super Admin"] for identity in superusers},
    )


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "spse_roles"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def catalog() -> RoleCatalog:
    return RoleCatalog(DEFAULT_HIERARCHY, ROLE_IDS)


@pytest.fixture()
def directory() -> InMemoryDirectory:
    return make_directory(
        members={
            "auth0|admin-ppe": {OrgUnit("A", "A1"): ["Admin PPE"]},
            "auth0|admin-agency": {OrgUnit("A", "A1"): ["Admin Agency"]},
            "auth0|pengadaan": {OrgUnit("A", "A1"): ["KUPBJ"]},
            "auth0|nobody": {OrgUnit("B", "B1"): ["Helpdesk"]},
        },
        superusers=("auth0|root",),
    )
