"""Orchestration of font manifest generation across configured routes."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from font_manifest.assets import (
    OutputAssets,
    VirtualOutputAsset,
    assets_from_directory,
)
from font_manifest.config import Config, RouteConfig
from font_manifest.emit import EmitResult, OutputAssetSet
from font_manifest.graph import AssetGraph
from font_manifest.manifest import (
    create_font_manifest,
    manifest_entries,
    parse_font_manifest,
)
from font_manifest.observability.logging import BUILD_LOGGER, StructuredLoggerAdapter
from font_manifest.paths import FileSystem, FileSystemPath

__all__ = [
    "BuildExecutionError",
    "BuildSummary",
    "RouteOutcome",
    "RouteSpec",
    "build_route_manifests",
    "run_font_manifest_build",
]

CLIENT_FS = "client"
NODE_FS = "node"


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """A route that needs a font manifest."""

    pathname: str
    original_name: str
    app_dir: bool
    ty: str = ""
    entries: tuple[str, ...] = ("**/*",)

    @classmethod
    def from_config(cls, route: RouteConfig) -> RouteSpec:
        return cls(
            pathname=route.pathname,
            original_name=route.original_name,
            app_dir=route.app_dir,
            ty=route.ty or "",
            entries=tuple(route.entries),
        )

    @property
    def convention(self) -> str:
        return "app" if self.app_dir else "pages"


@dataclass(slots=True)
class RouteOutcome:
    """Result of generating one route's font manifest."""

    route: RouteSpec
    status: str
    duration: float
    path: str | None = None
    font_paths: tuple[str, ...] = ()
    details: str | None = None
    error: Exception | None = None


@dataclass(slots=True)
class BuildSummary:
    """Aggregated summary of a font manifest build."""

    success: bool
    duration: float
    routes: list[RouteOutcome]
    emitted: list[EmitResult] = field(default_factory=list)


class BuildExecutionError(RuntimeError):
    """Raised when a route's font manifest fails during a build."""

    def __init__(
        self,
        route: RouteSpec,
        message: str,
        *,
        summary: BuildSummary | None = None,
        original: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.route = route
        self.summary = summary
        self.original = original


async def build_route_manifests(
    routes: Sequence[RouteSpec],
    *,
    client_root: FileSystemPath,
    node_root: FileSystemPath,
    font_extensions: Sequence[str],
    logger: logging.LoggerAdapter[logging.Logger] | None = None,
) -> list[tuple[RouteOutcome, VirtualOutputAsset | None]]:
    """Create every route's manifest concurrently over one shared asset graph."""

    log = logger or StructuredLoggerAdapter(logging.getLogger(BUILD_LOGGER), {})
    graph = AssetGraph()
    entry_sets: dict[tuple[str, ...], OutputAssets] = {}

    def _entries(route: RouteSpec) -> OutputAssets:
        if route.entries not in entry_sets:
            entry_sets[route.entries] = assets_from_directory(client_root, route.entries)
        return entry_sets[route.entries]

    async def _run(route: RouteSpec) -> tuple[RouteOutcome, VirtualOutputAsset | None]:
        context = {"route": route.pathname, "convention": route.convention}
        log.info("route_start", extra={"event": "route_start", **context})
        started = time.perf_counter()
        try:
            asset = await create_font_manifest(
                client_root,
                node_root,
                route.ty,
                route.pathname,
                route.original_name,
                _entries(route),
                route.app_dir,
                graph=graph,
                font_extensions=font_extensions,
            )
        except Exception as exc:
            duration = time.perf_counter() - started
            log.error(
                "route_failed",
                extra={
                    "event": "route_end",
                    "status": "failed",
                    "error": str(exc),
                    **context,
                },
            )
            outcome = RouteOutcome(
                route=route,
                status="failed",
                duration=duration,
                details=str(exc),
                error=exc,
            )
            return outcome, None

        duration = time.perf_counter() - started
        manifest = parse_font_manifest(asset.data.data)
        font_paths = tuple(manifest_entries(manifest).get(route.original_name, ()))
        log.info(
            "route_completed",
            extra={
                "event": "route_end",
                "status": "completed",
                "duration": duration,
                "fonts": len(font_paths),
                **context,
            },
        )
        outcome = RouteOutcome(
            route=route,
            status="completed",
            duration=duration,
            path=str(asset.path),
            font_paths=font_paths,
        )
        return outcome, asset

    try:
        return list(await asyncio.gather(*(_run(route) for route in routes)))
    finally:
        graph.clear()


def run_font_manifest_build(
    config: Config,
    *,
    dry_run: bool = False,
    logger: logging.LoggerAdapter[logging.Logger] | None = None,
) -> BuildSummary:
    """Generate and emit the font manifests for every configured route.

    Nothing is written unless every route succeeds.
    """

    log = logger or StructuredLoggerAdapter(logging.getLogger(BUILD_LOGGER), {})
    routes = [RouteSpec.from_config(route) for route in config.routes]
    client_root = _filesystem_root(CLIENT_FS, config.paths.client_root)
    node_root = _filesystem_root(NODE_FS, config.paths.node_root)

    log.info(
        "build_start",
        extra={"event": "build_start", "routes": len(routes), "dry_run": dry_run},
    )
    started = time.perf_counter()

    async def _collect() -> tuple[list[RouteOutcome], OutputAssetSet]:
        results = await build_route_manifests(
            routes,
            client_root=client_root,
            node_root=node_root,
            font_extensions=tuple(config.fonts.extensions),
            logger=log,
        )
        output = OutputAssetSet()
        if all(asset is not None for _, asset in results):
            await output.add_all(asset for _, asset in results if asset is not None)
        return [outcome for outcome, _ in results], output

    outcomes, output = asyncio.run(_collect())
    failed = next((outcome for outcome in outcomes if outcome.status == "failed"), None)
    if failed is not None:
        duration = time.perf_counter() - started
        log.error(
            "build_failed",
            extra={"event": "build_end", "status": "failed", "duration": duration},
        )
        summary = BuildSummary(success=False, duration=duration, routes=outcomes)
        raise BuildExecutionError(
            failed.route,
            failed.details or f"Font manifest for {failed.route.pathname} failed",
            summary=summary,
            original=failed.error,
        )

    emitted = output.write(dry_run=dry_run)

    duration = time.perf_counter() - started
    log.info(
        "build_completed",
        extra={
            "event": "build_end",
            "status": "completed",
            "duration": duration,
            "emitted": len(emitted),
        },
    )
    return BuildSummary(
        success=True, duration=duration, routes=outcomes, emitted=emitted
    )


def _filesystem_root(name: str, directory: Path) -> FileSystemPath:
    return FileSystem(name=name, root=directory).root_path()
