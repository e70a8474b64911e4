"""Unit tests for spse_roles.catalog.hierarchy — the role taxonomy configuration."""
from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from spse_roles.catalog.hierarchy import (
    DEFAULT_HIERARCHY,
    AuthorityRule,
    Hierarchy,
    HierarchyError,
    load_hierarchy,
)

_CUSTOM_YAML = """
divisions:
  Ops: [Lead, Clerk]
  Audit: [Inspector]
exclusive:
  - [Lead, Clerk]
authority:
  - granter: Lead
    denied: [Lead, Inspector]
superuser_role: Root
"""


class TestDefaultHierarchy:
    def test_has_three_divisions(self) -> None:
        assert DEFAULT_HIERARCHY.division_names == (
            "Pengelola LPSE",
            "Pelaku Pengadaan LPSE",
            "Auditor",
        )

    def test_division_index(self) -> None:
        index = DEFAULT_HIERARCHY.division_index()
        assert index["PPK"] == "Pelaku Pengadaan LPSE"
        assert index["Helpdesk"] == "Pengelola LPSE"
        assert index["Auditor"] == "Auditor"
        assert len(index) == 9

    def test_pp_ppk_is_exclusive(self) -> None:
        assert ("PP", "PPK") in DEFAULT_HIERARCHY.exclusive_pairs

    def test_authority_rule_order(self) -> None:
        granters = [rule.granter for rule in DEFAULT_HIERARCHY.authority_rules]
        assert granters == ["Admin PPE", "Admin Agency"]

    def test_superuser_marker(self) -> None:
        assert DEFAULT_HIERARCHY.superuser_role == "Super Admin"


class TestAuthorityRule:
    def test_permits_everything_not_denied(self) -> None:
        rule = AuthorityRule("Admin PPE", frozenset({"Auditor"}))
        assert rule.permits("PPK")
        assert not rule.permits("Auditor")


class TestHierarchyConsistency:
    def test_role_in_two_divisions_rejected(self) -> None:
        with pytest.raises(HierarchyError, match="both"):
            Hierarchy(divisions=(("X", ("R",)), ("Y", ("R",))))

    def test_exclusive_pair_with_unknown_role_rejected(self) -> None:
        with pytest.raises(HierarchyError, match="unknown role"):
            Hierarchy(divisions=(("X", ("R",)),), exclusive_pairs=(("R", "Q"),))

    def test_exclusive_pair_of_same_role_rejected(self) -> None:
        with pytest.raises(HierarchyError):
            Hierarchy(divisions=(("X", ("R",)),), exclusive_pairs=(("R", "R"),))

    def test_authority_rule_with_unknown_granter_rejected(self) -> None:
        with pytest.raises(HierarchyError, match="granter"):
            Hierarchy(divisions=(("X", ("R",)),), authority_rules=(AuthorityRule("Q"),))

    def test_authority_rule_denying_unknown_role_rejected(self) -> None:
        with pytest.raises(HierarchyError, match="Q"):
            Hierarchy(
                divisions=(("X", ("R",)),),
                authority_rules=(AuthorityRule("R", frozenset({"Q"})),),
            )

    def test_empty_division_name_rejected(self) -> None:
        with pytest.raises(HierarchyError):
            Hierarchy(divisions=(("", ("R",)),))


class TestFromDict:
    def test_custom_taxonomy(self) -> None:
        hierarchy = Hierarchy.from_dict(yaml.safe_load(_CUSTOM_YAML))
        assert hierarchy.division_names == ("Ops", "Audit")
        assert hierarchy.exclusive_pairs == (("Lead", "Clerk"),)
        assert hierarchy.authority_rules[0].denied == frozenset({"Lead", "Inspector"})
        assert hierarchy.superuser_role == "Root"

    def test_default_round_trips_through_dict(self) -> None:
        assert Hierarchy.from_dict(DEFAULT_HIERARCHY.to_dict()) == DEFAULT_HIERARCHY

    def test_default_round_trips_through_yaml(self) -> None:
        data = yaml.safe_load(DEFAULT_HIERARCHY.to_yaml())
        assert Hierarchy.from_dict(data) == DEFAULT_HIERARCHY

    def test_missing_divisions_rejected(self) -> None:
        with pytest.raises(HierarchyError, match="divisions"):
            Hierarchy.from_dict({"exclusive": []})

    def test_non_mapping_rejected(self) -> None:
        with pytest.raises(HierarchyError):
            Hierarchy.from_dict(["not", "a", "mapping"])  # type: ignore[arg-type]

    def test_division_roles_must_be_list(self) -> None:
        with pytest.raises(HierarchyError):
            Hierarchy.from_dict({"divisions": {"X": "R"}})

    def test_exclusive_entry_must_be_pair(self) -> None:
        with pytest.raises(HierarchyError):
            Hierarchy.from_dict({"divisions": {"X": ["R", "S"]}, "exclusive": [["R"]]})

    def test_authority_entry_needs_granter(self) -> None:
        with pytest.raises(HierarchyError):
            Hierarchy.from_dict({"divisions": {"X": ["R"]}, "authority": [{"denied": []}]})


class TestLoadHierarchy:
    def test_loads_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "hierarchy.yaml"
        path.write_text(_CUSTOM_YAML, encoding="utf-8")
        assert load_hierarchy(path).role_names == ("Lead", "Clerk", "Inspector")

    def test_missing_file_raises_hierarchy_error(self, tmp_path: Path) -> None:
        with pytest.raises(HierarchyError, match="Cannot read"):
            load_hierarchy(tmp_path / "absent.yaml")

    def test_invalid_yaml_raises_hierarchy_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("divisions: [unclosed", encoding="utf-8")
        with pytest.raises(HierarchyError, match="not valid YAML"):
            load_hierarchy(path)
