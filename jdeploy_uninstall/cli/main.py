"""Main CLI entry point for jdeploy-uninstall."""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from .. import __version__
from ..core.config import UninstallerConfig, reload_config
from ..core.lib_logger import setup_logging
from ..lib.exceptions import ManifestRepositoryError
from ..lib.paths import validate_package_name
from ..models.uninstall_manifest import UninstallManifest
from ..models.uninstall_result import UninstallResult
from ..services.manifest_repository import FileManifestRepository
from ..services.uninstall_service import UninstallService

console = Console()

EXIT_ABORTED = 2
EXIT_NOT_FOUND = 4


def check_package_name(ctx, param, value: str) -> str:
    """Reject package names that would resolve outside their own directories."""
    try:
        return validate_package_name(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def get_repository(config: UninstallerConfig) -> FileManifestRepository:
    """Create the manifest repository for the configured jDeploy home."""
    return FileManifestRepository(
        manifests_dir=config.manifests_dir,
        architecture=config.architecture,
        relaxed=config.skip_schema_validation
    )


def display_manifest(manifest: UninstallManifest) -> None:
    """Display everything a manifest will reverse."""
    info = manifest.package_info
    console.print(f"[bold]{info.name}[/bold] {info.version} ({info.architecture})")
    if info.source:
        console.print(f"Source: {info.source}")
    console.print(f"Installed: {info.installed_at.isoformat()} by installer {info.installer_version}\n")

    table = Table(title="Recorded side effects", show_header=True, header_style="bold magenta")
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Target", style="yellow")
    table.add_column("Action", style="green")

    for file in manifest.files:
        table.add_row("File", file.path, f"Delete ({file.type.to_token()})")

    for directory in manifest.directories:
        table.add_row("Directory", directory.path, f"Cleanup ({directory.cleanup.to_token()})")

    if manifest.registry is not None:
        for key in manifest.registry.created_keys:
            table.add_row("Registry key", f"{key.root.value}\\{key.path}", "Delete")
        for value in manifest.registry.modified_values:
            action = "Delete" if value.previous_value is None else "Restore"
            table.add_row("Registry value", f"{value.root.value}\\{value.path} [{value.name}]", action)

    if manifest.path_modifications is not None:
        for entry in manifest.path_modifications.windows_paths:
            table.add_row("Windows PATH", entry.added_entry, "Remove entry")
        for profile in manifest.path_modifications.shell_profiles:
            table.add_row("Shell profile", profile.file, f"Remove line: {profile.export_line}")
        for profile in manifest.path_modifications.git_bash_profiles:
            table.add_row("Git Bash profile", profile.file, f"Remove line: {profile.export_line}")

    console.print(table)


def display_result(package_name: str, result: UninstallResult) -> None:
    """Display the outcome of an uninstall."""
    table = Table(title=f"Uninstall of {package_name}", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Succeeded", str(result.success_count))
    table.add_row("Failed", str(result.failure_count))
    console.print(table)

    for error in result.errors:
        console.print(f"[red]  {error}[/red]")

    if result.is_success:
        console.print(f"[green]{package_name} uninstalled successfully.[/green]")
    else:
        console.print(f"[yellow]{package_name} uninstalled with {result.failure_count} error(s).[/yellow]")


@click.group()
@click.version_option(__version__, "--version", "-v", help="Show version and exit")
@click.option("--debug", is_flag=True, help="Enable debug output")
@click.pass_context
def main(ctx: click.Context, debug: bool):
    """jdeploy-uninstall - reverse jDeploy package installs from their uninstall manifests.

    \b
    EXAMPLES:
      jdeploy-uninstall show my-app
      jdeploy-uninstall uninstall my-app --force
      jdeploy-uninstall uninstall my-app --source https://github.com/me/my-app
    """
    config = reload_config()
    if debug:
        config.debug = True
        config.log_level = "DEBUG"
    setup_logging(config)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command()
@click.argument("package_name", callback=check_package_name)
@click.option("--source", default=None, help="Repository URL for GitHub-released packages")
@click.option("--force", is_flag=True, help="Skip the confirmation prompt")
@click.option("--dry-run", is_flag=True, help="Show what would be removed without removing")
@click.pass_context
def uninstall(ctx, package_name: str, source: Optional[str], force: bool, dry_run: bool):
    """Reverse every side effect recorded for PACKAGE_NAME."""
    config = ctx.obj["config"]
    repository = get_repository(config)

    try:
        manifest = repository.load(package_name, source)
    except ManifestRepositoryError as e:
        console.print(f"[yellow]Stored manifest is unreadable ({e.message}); only package directories will be removed.[/yellow]")
        manifest = None

    if manifest is not None:
        display_manifest(manifest)
    else:
        console.print(f"[yellow]No uninstall manifest for {package_name}; only package directories will be removed.[/yellow]")

    if dry_run:
        console.print("\n[cyan]DRY RUN: No changes will be made.[/cyan]")
        sys.exit(0)

    if not force and not Confirm.ask(f"Uninstall [bold]{package_name}[/bold]?", default=False):
        console.print("[red]Uninstall aborted by user.[/red]")
        sys.exit(EXIT_ABORTED)

    service = UninstallService(repository, jdeploy_home=config.home)
    result = service.uninstall(package_name, source)
    display_result(package_name, result)
    sys.exit(result.get_exit_code())


@main.command()
@click.argument("package_name", callback=check_package_name)
@click.option("--source", default=None, help="Repository URL for GitHub-released packages")
@click.pass_context
def show(ctx, package_name: str, source: Optional[str]):
    """Show the stored uninstall manifest of PACKAGE_NAME."""
    repository = get_repository(ctx.obj["config"])

    try:
        manifest = repository.load(package_name, source)
    except ManifestRepositoryError as e:
        console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(1)

    if manifest is None:
        console.print(f"[yellow]No uninstall manifest found for {package_name}.[/yellow]")
        sys.exit(EXIT_NOT_FOUND)

    display_manifest(manifest)


@main.command()
@click.argument("package_name", callback=check_package_name)
@click.option("--source", default=None, help="Repository URL for GitHub-released packages")
@click.pass_context
def path(ctx, package_name: str, source: Optional[str]):
    """Print where the uninstall manifest of PACKAGE_NAME is stored."""
    repository = get_repository(ctx.obj["config"])
    click.echo(str(repository.get_manifest_file(package_name, source)))


if __name__ == "__main__":
    main()
