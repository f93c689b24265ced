"""CLI entry point for monobump."""

from __future__ import annotations

import json
from pathlib import Path

import click
from pydantic import ValidationError

from monobump.errors import ConfigValidationError, InvalidRangeError
from monobump.models import VersionUpdate
from monobump.pipeline import discover_packages, load_config, run_version


def _parse_update(value: str) -> VersionUpdate:
    """Parse a NAME=VERSION argument."""
    name, sep, version = value.rpartition("=")
    if not sep or not name:
        raise click.BadParameter(f"expected NAME=VERSION, got {value!r}")
    try:
        return VersionUpdate(name=name, version=version)
    except ValidationError as exc:
        raise click.BadParameter(f"{value!r}: {exc.errors()[0]['msg']}") from exc


cwd_option = click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory.",
)


@click.group()
@click.version_option(package_name="monobump")
def cli() -> None:
    """Monorepo versioning — keeps internal dependency ranges in step."""


@cli.command()
@cwd_option
def validate(cwd: Path) -> None:
    """Validate the release config against the workspace packages."""
    root = cwd.resolve()
    packages = discover_packages(root)
    try:
        config = load_config(root, packages)
    except ConfigValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Config is not valid JSON: {exc}") from exc

    click.echo()
    click.echo("✓ Config is valid")
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


@cli.command()
@click.argument("updates", nargs=-1, required=True)
@cwd_option
@click.option("--dry-run", is_flag=True, help="Show changes without writing files.")
def version(updates: tuple[str, ...], cwd: Path, dry_run: bool) -> None:
    """Set new versions and rewrite internal dependency ranges.

    Each UPDATE is NAME=VERSION, e.g. pkg-a=2.0.0 or @scope/pkg=1.0.1.
    """
    parsed = [_parse_update(value) for value in updates]
    names = [u.name for u in parsed]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise click.BadParameter(f"duplicate updates for: {', '.join(duplicates)}")

    try:
        changed = run_version(cwd.resolve(), parsed, dry_run=dry_run)
    except ConfigValidationError as exc:
        raise click.ClickException(str(exc)) from exc
    except InvalidRangeError as exc:
        raise click.ClickException(str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Config is not valid JSON: {exc}") from exc

    click.echo(f"\n✓ Updated {len(changed)} package(s)")
