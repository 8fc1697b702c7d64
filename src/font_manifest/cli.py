"""Command line interface for font manifest generation."""

import asyncio
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from font_manifest.assets import assets_from_directory
from font_manifest.build import (
    CLIENT_FS,
    NODE_FS,
    BuildExecutionError,
    BuildSummary,
    run_font_manifest_build,
)
from font_manifest.config import load_config
from font_manifest.emit import ConflictingOutputError, EmitResult, OutputAssetSet
from font_manifest.fonts import FONT_EXTENSIONS
from font_manifest.manifest import (
    FontManifestError,
    create_font_manifest,
    load_font_manifest,
    manifest_entries,
)
from font_manifest.observability.logging import build_logging
from font_manifest.paths import FileSystem

app = typer.Typer(help="Generate per-route next-font-manifest.json files.")
config_app = typer.Typer(help="Configuration management commands.")
app.add_typer(config_app, name="config")
console = Console()


def _config_option() -> Any:
    return typer.Option(  # noqa: B008 - CLI option definition
        ...,
        "--config",
        "--config-path",
        envvar="FONT_MANIFEST_CONFIG",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="Config file to load (overridable via FONT_MANIFEST_CONFIG).",
    )


def _dry_run_flag(help_text: str) -> Any:
    return typer.Option(False, "--dry-run", help=help_text)


def _print_build_summary(summary: BuildSummary | None) -> None:
    if summary is None:
        return

    state = "[green]SUCCESS[/green]" if summary.success else "[red]FAILED[/red]"
    console.print(
        f"{state} font manifests for {len(summary.routes)} route(s) "
        f"in {summary.duration:.2f}s"
    )

    table = Table("route", "convention", "status", "fonts", "manifest")
    for outcome in summary.routes:
        status = outcome.status
        if status == "failed":
            status = f"[red]{status}[/red]"
        table.add_row(
            outcome.route.pathname,
            outcome.route.convention,
            status,
            str(len(outcome.font_paths)),
            outcome.path or outcome.details or "—",
        )
    console.print(table)

    for result in summary.emitted:
        verb = "wrote" if result.written else "would write"
        console.print(f"{verb} {result.disk_path} ({result.size_bytes} bytes)")


@app.command()
def version() -> None:
    """Show the current package version."""

    from font_manifest import __version__

    console.print(f"font-manifest version: [bold green]{__version__}[/bold green]")


@app.command("build")
def build(
    config_path: Path = _config_option(),
    dry_run: bool = _dry_run_flag("Compute manifests without writing them."),
    log: bool = typer.Option(False, help="Emit structured JSON build logs."),
    log_path: Path | None = typer.Option(
        None, "--log-path", help="Also append JSON build logs to this file."
    ),
) -> None:
    """Generate font manifests for every configured route."""

    try:
        config = load_config(config_path)
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid configuration:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    try:
        if log or log_path is not None:
            context = {"config": str(config_path)}
            with build_logging(log_path, context=context) as logger:
                summary = run_font_manifest_build(
                    config, dry_run=dry_run, logger=logger
                )
        else:
            summary = run_font_manifest_build(config, dry_run=dry_run)
    except BuildExecutionError as exc:
        _print_build_summary(exc.summary)
        pathname = escape(exc.route.pathname)
        console.print(f"[red]Route {pathname} failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    except ConflictingOutputError as exc:
        console.print(f"[red]Build failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    _print_build_summary(summary)


@app.command("create")
def create(
    client_root: Path = typer.Option(  # noqa: B008 - CLI option definition
        ...,
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Client build output directory.",
    ),
    node_root: Path = typer.Option(  # noqa: B008 - CLI option definition
        ..., file_okay=False, help="Server build output directory."
    ),
    pathname: str = typer.Option(..., help="Route pathname, e.g. /blog/[slug]."),
    name: str = typer.Option(..., "--name", help="Logical name of the font entry."),
    app_dir: bool = typer.Option(
        False, "--app-dir/--pages", help="Route-tree convention of the route."
    ),
    ty: str = typer.Option("page", help="Manifest type for app routes."),
    entry: list[str] = typer.Option(  # noqa: B008 - CLI option definition
        ["**/*"], "--entry", help="Glob (relative to client root) of entry assets."
    ),
    dry_run: bool = _dry_run_flag("Print the manifest without writing it."),
) -> None:
    """Generate the font manifest of a single route."""

    client = FileSystem(name=CLIENT_FS, root=client_root.resolve()).root_path()
    node = FileSystem(name=NODE_FS, root=node_root.resolve()).root_path()

    async def _create() -> list[EmitResult]:
        asset = await create_font_manifest(
            client,
            node,
            ty,
            pathname,
            name,
            assets_from_directory(client, entry),
            app_dir,
            font_extensions=FONT_EXTENSIONS,
        )
        output = OutputAssetSet()
        await output.add(asset)
        console.print(asset.data.text(), markup=False, highlight=False)
        return output.write(dry_run=dry_run)

    try:
        results = asyncio.run(_create())
    except (FontManifestError, OSError, ValueError) as exc:
        console.print(f"[red]Font manifest failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    for result in results:
        verb = "Wrote" if result.written else "Would write"
        console.print(f"[green]{verb}[/green] {result.disk_path}")


@app.command("show")
def show(
    manifest_path: Path = typer.Argument(  # noqa: B008 - CLI argument definition
        ..., exists=True, dir_okay=False, readable=True
    ),
) -> None:
    """Display the font entries of a manifest file."""

    try:
        manifest = load_font_manifest(manifest_path)
    except ValidationError as exc:
        console.print(f"[red]Invalid font manifest:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    convention = "app" if manifest.app else "pages"
    table = Table("font", "convention", "paths")
    for font, paths in manifest_entries(manifest).items():
        table.add_row(font, convention, "\n".join(paths) or "—")
    console.print(table)
    console.print(
        f"size-adjust: app={manifest.app_using_size_adjust} "
        f"pages={manifest.pages_using_size_adjust}"
    )


@config_app.command("validate")
def config_validate(config_path: Path = _config_option()) -> None:
    """Validate a build configuration file."""

    try:
        config = load_config(config_path)
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid configuration:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    table = Table("root", "path", "exists")
    for label, directory in zip(("node", "client"), config.paths.directories):
        table.add_row(label, str(directory), "yes" if directory.is_dir() else "no")
    console.print(table)
    console.print(
        f"[green]Configuration valid.[/green] {len(config.routes)} route(s), "
        f"font extensions: {', '.join(config.fonts.extensions)}"
    )


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
