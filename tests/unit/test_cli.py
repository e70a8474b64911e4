"""Unit tests for spse_roles.cli.main via click's CliRunner."""
from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from conftest import ROLE_IDS
from spse_roles.cli.main import EXIT_UNAVAILABLE, EXIT_VIOLATIONS, cli
from spse_roles.directory import DirectoryUnavailableError, InMemoryDirectory


# ===========================================================================
# Helpers
# ===========================================================================


def _make_runner() -> CliRunner:
    return CliRunner()


def _write_request(tmp_path: Path, roles: dict[str, dict[str, list[str]]], identity: str = "auth0|target") -> Path:
    body = {
        "id": identity,
        "klpd": [
            {
                "name": klpd,
                "satuan-kerja": [{"name": satker, "roles": names} for satker, names in satkers.items()],
            }
            for klpd, satkers in roles.items()
        ],
    }
    path = tmp_path / "request.yaml"
    path.write_text(yaml.dump(body), encoding="utf-8")
    return path


@pytest.fixture()
def snapshot(tmp_path: Path) -> Path:
    data = {
        "roles": dict(ROLE_IDS),
        "units": ["A-A1", "A-A2", "A-A3", "B-B1"],
        "members": {
            "auth0|target": {"A-A1": ["KUPBJ"], "A-A3": ["PP"]},
            "auth0|admin": {"A-A1": ["Admin PPE"], "A-A2": ["Admin Agency"]},
        },
        "global_roles": {"auth0|root": ["Super Admin"]},
    }
    path = tmp_path / "directory.yaml"
    path.write_text(yaml.dump(data), encoding="utf-8")
    return path


# ===========================================================================
# version / hierarchy
# ===========================================================================


class TestVersionCommand:
    def test_prints_version(self) -> None:
        result = _make_runner().invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "spse-roles" in result.output
        assert "0.1.0" in result.output


class TestHierarchyCommand:
    def test_table_lists_divisions(self) -> None:
        result = _make_runner().invoke(cli, ["hierarchy"])
        assert result.exit_code == 0
        assert "Pengelola LPSE" in result.output
        assert "Exclusive:" in result.output
        assert "Super Admin" in result.output

    def test_yaml_output_is_loadable(self) -> None:
        result = _make_runner().invoke(cli, ["hierarchy", "--yaml"])
        assert result.exit_code == 0
        data = yaml.safe_load(result.output)
        assert data["exclusive"] == [["PP", "PPK"]]

    def test_custom_hierarchy_file(self, tmp_path: Path) -> None:
        path = tmp_path / "hierarchy.yaml"
        path.write_text("divisions:\n  Ops: [Lead]\n", encoding="utf-8")
        result = _make_runner().invoke(cli, ["--hierarchy", str(path), "hierarchy", "--yaml"])
        assert result.exit_code == 0
        assert "Lead" in result.output

    def test_hierarchy_from_environment(self, tmp_path: Path) -> None:
        path = tmp_path / "hierarchy.yaml"
        path.write_text("divisions:\n  Ops: [Lead]\n", encoding="utf-8")
        result = _make_runner().invoke(
            cli, ["hierarchy", "--yaml"], env={"SPSE_ROLES_HIERARCHY": str(path)}
        )
        assert result.exit_code == 0
        assert "Lead" in result.output

    def test_invalid_hierarchy_file(self, tmp_path: Path) -> None:
        path = tmp_path / "hierarchy.yaml"
        path.write_text("divisions:\n  X: [R]\n  Y: [R]\n", encoding="utf-8")
        result = _make_runner().invoke(cli, ["--hierarchy", str(path), "hierarchy"])
        assert result.exit_code == 1
        assert "Error" in result.output


# ===========================================================================
# validate
# ===========================================================================


class TestValidateCommand:
    def test_valid_request(self, tmp_path: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A1": ["KUPBJ"], "A2": ["PPK"]}})
        result = _make_runner().invoke(cli, ["validate", str(request)])
        assert result.exit_code == 0
        assert "OK" in result.output

    def test_conflict_exits_with_violations(self, tmp_path: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A1": ["PP"], "A2": ["PPK"]}})
        result = _make_runner().invoke(cli, ["validate", str(request)])
        assert result.exit_code == EXIT_VIOLATIONS
        assert "ROLE005" in result.output

    def test_json_output(self, tmp_path: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A1": ["Ghost", "PP"]}, "B": {"B1": ["Ghost"]}})
        result = _make_runner().invoke(cli, ["validate", str(request), "--json"])
        assert result.exit_code == EXIT_VIOLATIONS
        payload = json.loads(result.output)
        assert [v["code"] for v in payload["violations"]] == ["ROLE002"]

    def test_unknown_unit_with_directory(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"C": {"C9": ["PP"]}})
        result = _make_runner().invoke(
            cli, ["--directory", str(snapshot), "validate", str(request), "--json"]
        )
        assert result.exit_code == EXIT_VIOLATIONS
        payload = json.loads(result.output)
        assert [v["code"] for v in payload["violations"]] == ["ROLE003"]

    def test_unreadable_request(self, tmp_path: Path) -> None:
        result = _make_runner().invoke(cli, ["validate", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 1
        assert "Cannot read" in result.output


# ===========================================================================
# merge
# ===========================================================================


class TestMergeCommand:
    def test_needs_directory(self, tmp_path: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A2": ["PPK"]}})
        result = _make_runner().invoke(cli, ["merge", str(request)])
        assert result.exit_code == 1
        assert "directory snapshot" in result.output

    def test_prior_pp_rejects_ppk(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A2": ["PPK"]}})
        result = _make_runner().invoke(
            cli, ["--directory", str(snapshot), "merge", str(request), "--json"]
        )
        assert result.exit_code == EXIT_VIOLATIONS
        payload = json.loads(result.output)
        assert payload["expanded"] == ["A:A1:KUPBJ", "A:A2:PPK", "A:A3:PP"]
        assert [v["code"] for v in payload["violations"]] == ["ROLE005"]

    def test_compatible_addition(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A2": ["Anggota Pokmil"]}})
        result = _make_runner().invoke(cli, ["--directory", str(snapshot), "merge", str(request)])
        assert result.exit_code == 0
        assert "A:A2:Anggota Pokmil" in result.output
        assert "A:A1:KUPBJ" in result.output

    def test_directory_unavailable(
        self, tmp_path: Path, snapshot: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def unavailable(self: InMemoryDirectory, identity: str) -> list:
            raise DirectoryUnavailableError("get_identity_roles", "timeout")

        monkeypatch.setattr(InMemoryDirectory, "get_identity_roles", unavailable)
        request = _write_request(tmp_path, {"A": {"A2": ["PPK"]}})
        result = _make_runner().invoke(cli, ["--directory", str(snapshot), "merge", str(request)])
        assert result.exit_code == EXIT_UNAVAILABLE
        assert "unavailable" in result.output


# ===========================================================================
# check-authority
# ===========================================================================


class TestCheckAuthorityCommand:
    def test_allowed(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A1": ["Admin Agency", "PPK"]}})
        result = _make_runner().invoke(
            cli,
            ["--directory", str(snapshot), "check-authority", str(request), "--assigner", "auth0|admin"],
        )
        assert result.exit_code == 0
        assert "Allowed" in result.output

    def test_denied(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A1": ["Auditor"]}})
        result = _make_runner().invoke(
            cli,
            ["--directory", str(snapshot), "check-authority", str(request), "--assigner", "auth0|admin"],
        )
        assert result.exit_code == EXIT_VIOLATIONS
        assert "Denied" in result.output

    def test_no_membership(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A3": ["PP"]}})
        result = _make_runner().invoke(
            cli,
            ["--directory", str(snapshot), "check-authority", str(request), "--assigner", "auth0|admin"],
        )
        assert result.exit_code == EXIT_VIOLATIONS
        assert "no administrative access" in result.output

    def test_assigner_required(self, tmp_path: Path, snapshot: Path) -> None:
        request = _write_request(tmp_path, {"A": {"A1": ["PP"]}})
        result = _make_runner().invoke(cli, ["--directory", str(snapshot), "check-authority", str(request)])
        assert result.exit_code == 2
