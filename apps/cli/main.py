"""CLI application for libbump."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from libbump.bitbucket import DEFAULT_BASE_URL
from libbump import errors
from libbump.errors import AppError
from libbump.inputs import ACCESS_TOKEN_ENV, BASE_URL_ENV, DEFAULT_AUTHOR, DEFAULT_MANIFEST_PATH, collect_inputs
from libbump.log import configure_logging
from libbump.models import DependencyKind, UpgradeResult
from libbump.upgrade import LibraryUpgradeService, upgrade_manifest_content
from libbump.workflow import run_upgrade_workflow

console = Console(soft_wrap=True)


def format_changes(result: UpgradeResult, file_path: str) -> str:
    """Format diff-style output of the rewritten declarations."""
    lines = [f"--- {file_path}", f"+++ {file_path}"]
    for change in result.changes:
        lines.append(f'-{change.kind.value}: "{result.library_name}": "{change.current_version}"')
        lines.append(f'+{change.kind.value}: "{result.library_name}": "{change.new_version}"')
    return "\n".join(lines)


app = typer.Typer(
    name="libbump",
    help="libbump - Upgrade a library version in package.json and open a pull request",
    add_completion=False,
)


@app.command()
def upgrade(
    workspace: str | None = typer.Option(None, "--workspace", help="Bitbucket workspace"),
    repo_slug: str | None = typer.Option(None, "--reposlug", help="Bitbucket repository slug"),
    library: str | None = typer.Option(None, "--library", help="Name of the library to upgrade"),
    library_version: str | None = typer.Option(None, "--library-version", help="New exact version (x.y.z)"),
    access_token: str | None = typer.Option(
        None, "--access-token", envvar=ACCESS_TOKEN_ENV, help="Repository access token", show_default=False
    ),
    manifest_path: str = typer.Option(DEFAULT_MANIFEST_PATH, "--manifest-path", help="package.json path in the repo"),
    kinds: list[DependencyKind] | None = typer.Option(
        None, "--dependency-kind", "-k", help="Dependency kind to upgrade (repeatable)"
    ),
    author: str = typer.Option(DEFAULT_AUTHOR, "--author", help="Commit author"),
    base_url: str = typer.Option(DEFAULT_BASE_URL, "--base-url", envvar=BASE_URL_ENV, help="Bitbucket API URL"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
) -> None:
    """Upgrade a library in a remote repository and open a pull request."""

    try:
        inputs = collect_inputs(
            workspace,
            repo_slug,
            library,
            library_version,
            access_token,
            manifest_path=manifest_path,
            dependency_kinds=kinds,
            author=author,
            base_url=base_url,
        )
        configure_logging(log_level)

        console.print("Script start: upgrade-library-version")
        console.print(f"library: {inputs.library_name}; version: {inputs.library_version}")

        pr = asyncio.run(run_upgrade_workflow(inputs))

        console.print(f"Library version upgraded: {inputs.library_name} => {inputs.library_version}")
        console.print(f"PR created: {pr.link}")

    except AppError as e:
        console.print("Script failure", style="red")
        console.print(e.message, style="red", markup=False)
        raise typer.Exit(1)
    except Exception as e:
        console.print("Script failure", style="red")
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)


@app.command()
def local(
    file_path: str = typer.Argument(help="Path to a package.json file"),
    library: str = typer.Option(..., "--library", help="Name of the library to upgrade"),
    library_version: str = typer.Option(..., "--library-version", help="New exact version (x.y.z)"),
    kinds: list[DependencyKind] | None = typer.Option(
        None, "--dependency-kind", "-k", help="Dependency kind to upgrade (repeatable)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show changes without applying"),
) -> None:
    """Upgrade a library version in a local package.json file."""

    # An omitted option arrives as an empty list
    kinds = kinds or None

    try:
        if dry_run:
            path = Path(file_path)
            if not path.exists():
                raise errors.file_not_found(file_path)
            result = upgrade_manifest_content(
                path.read_text(encoding="utf-8"), library, library_version, kinds, source=file_path
            )
            console.print(format_changes(result, file_path), markup=False, highlight=False)
            return

        result = LibraryUpgradeService().upgrade_library(file_path, library, library_version, kinds)
        console.print(f"Updated {file_path} ({len(result.changes)} location(s))")

    except typer.Exit:
        raise
    except AppError as e:
        console.print(f"Error: {e.message}", style="red", markup=False)
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
