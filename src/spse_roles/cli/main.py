"""CLI entry point for spse-roles.

Invoked as::

    spse-roles [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m spse_roles.cli.main

Commands
--------
validate          Validate the role set named in a request file
merge             Merge a request with current roles, then validate
check-authority   Check whether an assigner may grant a request's roles
hierarchy         Show the loaded role hierarchy
version           Show version information

Request files use the service's request body shape (``id``, ``klpd``,
``satuan-kerja``, ``roles``) in YAML or JSON.  Directory snapshots are
described in :mod:`spse_roles.directory.memory`.
"""
from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from spse_roles.catalog import Hierarchy, RoleCatalog
    from spse_roles.directory import InMemoryDirectory
    from spse_roles.request import RoleRequest
    from spse_roles.validator import Violation

console = Console()
err_console = Console(stderr=True)

EXIT_VIOLATIONS = 1
EXIT_UNAVAILABLE = 2


def _fail(message: str, code: int = 1) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {message}")
    sys.exit(code)


def _load_hierarchy(path: str | None) -> "Hierarchy":
    from spse_roles.catalog import DEFAULT_HIERARCHY, HierarchyError, load_hierarchy

    if path is None:
        return DEFAULT_HIERARCHY
    try:
        return load_hierarchy(path)
    except HierarchyError as exc:
        _fail(str(exc))


def _load_directory(path: str | None, required: bool) -> "InMemoryDirectory | None":
    from spse_roles.directory import InMemoryDirectory, SnapshotError

    if path is None:
        if required:
            _fail("This command needs a directory snapshot (--directory or SPSE_ROLES_DIRECTORY)")
        return None
    try:
        return InMemoryDirectory.from_file(path)
    except SnapshotError as exc:
        _fail(str(exc))


def _build_catalog(hierarchy: "Hierarchy", directory: "InMemoryDirectory | None") -> "RoleCatalog":
    from spse_roles.catalog import CatalogLoadError, RoleCatalog

    if directory is None:
        return RoleCatalog(hierarchy)
    try:
        return RoleCatalog.from_directory(hierarchy, directory)
    except CatalogLoadError as exc:
        _fail(str(exc), EXIT_UNAVAILABLE)


def _load_request(path: str, identity: str | None) -> "RoleRequest":
    from spse_roles.request import RequestError, load_request

    try:
        return load_request(path, identity=identity)
    except RequestError as exc:
        _fail(str(exc))


def _print_violations(title: str, violations: list["Violation"]) -> None:
    table = Table(title=title, show_lines=True)
    table.add_column("Code", style="bold", min_width=8)
    table.add_column("Kind", min_width=12)
    table.add_column("Unit", min_width=6)
    table.add_column("Message")

    for v in violations:
        table.add_row(
            f"[red]{v.code}[/red]",
            v.kind.name,
            v.unit or "-",
            v.message + (f"\n[dim]hint: {v.suggestion}[/dim]" if v.suggestion else ""),
        )
    console.print(table)
    console.print(f"\n[bold]Summary:[/bold] {len(violations)} violation(s)")


def _report(title: str, violations: list["Violation"], as_json: bool, extra: dict | None = None) -> None:
    if as_json:
        payload = dict(extra or {})
        payload["violations"] = [v.to_dict() for v in violations]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    elif violations:
        _print_violations(title, violations)
    else:
        console.print(f"[green]OK[/green] {title} (no violations)")
    if violations:
        sys.exit(EXIT_VIOLATIONS)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="spse-roles")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.option(
    "--hierarchy",
    "hierarchy_path",
    type=click.Path(dir_okay=False),
    envvar="SPSE_ROLES_HIERARCHY",
    default=None,
    help="YAML role hierarchy (defaults to the built-in LPSE table)",
)
@click.option(
    "--directory",
    "directory_path",
    type=click.Path(dir_okay=False),
    envvar="SPSE_ROLES_DIRECTORY",
    default=None,
    help="YAML/JSON directory snapshot",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, hierarchy_path: str | None, directory_path: str | None) -> None:
    """Role-assignment policy engine: validation, merging and authority checks."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )
    ctx.ensure_object(dict)
    ctx.obj["hierarchy_path"] = hierarchy_path
    ctx.obj["directory_path"] = directory_path


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from spse_roles import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]spse-roles[/bold]", f"v{__version__}")
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# hierarchy command
# ---------------------------------------------------------------------------


@cli.command(name="hierarchy")
@click.option("--yaml", "as_yaml", is_flag=True, default=False, help="Print as YAML")
@click.pass_context
def hierarchy_command(ctx: click.Context, as_yaml: bool) -> None:
    """Show divisions, exclusive pairs and authority rules."""
    hierarchy = _load_hierarchy(ctx.obj["hierarchy_path"])
    if as_yaml:
        click.echo(hierarchy.to_yaml(), nl=False)
        return

    table = Table(title="Divisions")
    table.add_column("Division", style="bold")
    table.add_column("Roles")
    for name, roles in hierarchy.divisions:
        table.add_row(name, ", ".join(roles))
    console.print(table)

    for first, second in hierarchy.exclusive_pairs:
        console.print(f"[yellow]Exclusive:[/yellow] {first} / {second}")
    for rule in hierarchy.authority_rules:
        denied = ", ".join(sorted(rule.denied)) or "nothing"
        console.print(f"[blue]Authority:[/blue] {rule.granter} may grant all except {denied}")
    console.print(f"[dim]Superuser marker: {hierarchy.superuser_role}[/dim]")


# ---------------------------------------------------------------------------
# validate command
# ---------------------------------------------------------------------------


@cli.command(name="validate")
@click.argument("request_file", type=click.Path(dir_okay=False))
@click.option("--identity", default=None, help="Override the request's 'id'")
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit violations as JSON")
@click.pass_context
def validate_command(ctx: click.Context, request_file: str, identity: str | None, as_json: bool) -> None:
    """Validate the role set named in REQUEST_FILE.

    With a directory snapshot, referenced org units are checked too.
    """
    from spse_roles.directory import DirectoryUnavailableError
    from spse_roles.validator import ConstraintValidator

    hierarchy = _load_hierarchy(ctx.obj["hierarchy_path"])
    directory = _load_directory(ctx.obj["directory_path"], required=False)
    catalog = _build_catalog(hierarchy, directory)
    request = _load_request(request_file, identity)

    try:
        violations = ConstraintValidator(catalog, directory=directory).validate(
            request.identity, request.assignments
        )
    except DirectoryUnavailableError as exc:
        _fail(str(exc), EXIT_UNAVAILABLE)

    _report(f"Validation: {request_file}", violations, as_json)


# ---------------------------------------------------------------------------
# merge command
# ---------------------------------------------------------------------------


@cli.command(name="merge")
@click.argument("request_file", type=click.Path(dir_okay=False))
@click.option("--identity", default=None, help="Override the request's 'id'")
@click.option("--json", "as_json", is_flag=True, default=False, help="Emit the result as JSON")
@click.pass_context
def merge_command(ctx: click.Context, request_file: str, identity: str | None, as_json: bool) -> None:
    """Merge REQUEST_FILE with the identity's current roles and validate the union."""
    from spse_roles.directory import DirectoryUnavailableError
    from spse_roles.merger import IncrementalMerger
    from spse_roles.validator import ConstraintValidator

    hierarchy = _load_hierarchy(ctx.obj["hierarchy_path"])
    directory = _load_directory(ctx.obj["directory_path"], required=True)
    catalog = _build_catalog(hierarchy, directory)
    request = _load_request(request_file, identity)

    merger = IncrementalMerger(ConstraintValidator(catalog, directory=directory))
    try:
        current = directory.get_identity_roles(request.identity)
        expanded, violations = merger.merge_and_validate(request.identity, request.keys, current)
    except DirectoryUnavailableError as exc:
        _fail(str(exc), EXIT_UNAVAILABLE)

    if not as_json:
        console.print(f"[bold]Expanded role set for {request.identity}:[/bold]")
        for key in expanded:
            console.print(f"  {key}")
    _report(
        f"Merge: {request_file}",
        violations,
        as_json,
        extra={"identity": request.identity, "expanded": [str(k) for k in expanded]},
    )


# ---------------------------------------------------------------------------
# check-authority command
# ---------------------------------------------------------------------------


@cli.command(name="check-authority")
@click.argument("request_file", type=click.Path(dir_okay=False))
@click.option("--assigner", required=True, help="Identity performing the grant")
@click.pass_context
def check_authority_command(ctx: click.Context, request_file: str, assigner: str) -> None:
    """Check whether ASSIGNER may grant every role in REQUEST_FILE."""
    from spse_roles.authority import AuthorityDeniedError, AuthorityEngine
    from spse_roles.directory import DirectoryUnavailableError

    hierarchy = _load_hierarchy(ctx.obj["hierarchy_path"])
    directory = _load_directory(ctx.obj["directory_path"], required=True)
    catalog = _build_catalog(hierarchy, directory)
    request = _load_request(request_file, None)

    try:
        AuthorityEngine(catalog).authorize(directory, assigner, request.keys)
    except AuthorityDeniedError as exc:
        err_console.print(f"[red]Denied:[/red] {exc}")
        sys.exit(EXIT_VIOLATIONS)
    except DirectoryUnavailableError as exc:
        _fail(str(exc), EXIT_UNAVAILABLE)

    console.print(f"[green]Allowed[/green] {assigner} may grant {len(request.keys)} role(s)")


if __name__ == "__main__":
    cli()
