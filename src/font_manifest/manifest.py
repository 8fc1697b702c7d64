# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Font manifest model and per-route manifest assembly."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticSerializationError

from font_manifest.assets import AssetContent, OutputAssets, VirtualOutputAsset
from font_manifest.fonts import FONT_EXTENSIONS, get_font_paths_from_root
from font_manifest.graph import AssetGraph, all_assets_from_entries, resolve
from font_manifest.paths import (
    FileSystemPath,
    InvalidPathError,
    get_asset_prefix_from_pathname,
)

MANIFEST_FILENAME = "next-font-manifest.json"

logger = logging.getLogger(__name__)


class FontManifestError(RuntimeError):
    """Raised when the font manifest for a route cannot be produced."""

    def __init__(self, message: str, *, pathname: str, ty: str | None) -> None:
        super().__init__(message)
        self.pathname = pathname
        self.ty = ty


class ManifestResolutionError(FontManifestError):
    """Raised when the client root or the client asset graph cannot be resolved."""


class ManifestSerializationError(FontManifestError):
    """Raised when the manifest cannot be encoded as JSON."""


class NextFontManifest(BaseModel):
    """Font preload paths per route, keyed by the font's logical name.

    Serialized with camelCase keys, which is what the runtime reads.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    pages: dict[str, list[str]]
    app: dict[str, list[str]]
    app_using_size_adjust: bool
    pages_using_size_adjust: bool

    def to_json(self) -> str:
        return self.model_dump_json(indent=2, by_alias=True)


@dataclass(frozen=True, slots=True)
class AppRoute:
    """App-router route; manifests are nested per route type."""

    ty: str
    name: ClassVar[str] = "app"

    def manifest_path(self, prefix: str) -> str:
        return f"server/app{prefix}/{self.ty}/{MANIFEST_FILENAME}"

    def build_manifest(self, entries: dict[str, list[str]]) -> NextFontManifest:
        # TODO: derive app_using_size_adjust once font metadata carries it.
        return NextFontManifest(
            pages={},
            app=entries,
            app_using_size_adjust=False,
            pages_using_size_adjust=False,
        )


@dataclass(frozen=True, slots=True)
class PagesRoute:
    """Pages-router route."""

    name: ClassVar[str] = "pages"

    def manifest_path(self, prefix: str) -> str:
        return f"server/pages{prefix}/{MANIFEST_FILENAME}"

    def build_manifest(self, entries: dict[str, list[str]]) -> NextFontManifest:
        # TODO: derive pages_using_size_adjust once font metadata carries it.
        return NextFontManifest(
            pages=entries,
            app={},
            app_using_size_adjust=False,
            pages_using_size_adjust=False,
        )


RouteConvention = AppRoute | PagesRoute


def route_convention(app_dir: bool, ty: str) -> RouteConvention:
    return AppRoute(ty=ty) if app_dir else PagesRoute()


async def create_font_manifest(
    client_root: FileSystemPath | Awaitable[FileSystemPath],
    node_root: FileSystemPath | Awaitable[FileSystemPath],
    ty: str,
    pathname: str,
    original_name: str,
    client_assets: OutputAssets,
    app_dir: bool,
    *,
    graph: AssetGraph | None = None,
    font_extensions: Sequence[str] = FONT_EXTENSIONS,
) -> VirtualOutputAsset:
    """Build the ``next-font-manifest.json`` output asset for one route.

    ``client_assets`` is expanded to every reachable client asset; the fonts
    among them that live under ``client_root`` become the preload paths of
    ``original_name``. When ``graph`` is given, the expansion is shared with
    other routes querying the same entries.
    """

    convention = route_convention(app_dir, ty)
    manifest_ty = ty if app_dir else None

    try:
        client_root_value = await resolve(client_root)
        node_root_value = await resolve(node_root)
        if graph is not None:
            all_client_assets = await graph.all_assets_from_entries(client_assets)
        else:
            all_client_assets = await all_assets_from_entries(client_assets)
    except Exception as exc:
        raise ManifestResolutionError(
            f"Failed to resolve client assets for {convention.name} route "
            f"{pathname!r}: {exc}",
            pathname=pathname,
            ty=manifest_ty,
        ) from exc

    font_paths = get_font_paths_from_root(
        client_root_value, all_client_assets, font_extensions
    )

    try:
        manifest_path_prefix = get_asset_prefix_from_pathname(pathname)
        path = node_root_value.join(convention.manifest_path(manifest_path_prefix))
    except InvalidPathError as exc:
        raise FontManifestError(
            f"Invalid font manifest location for route {pathname!r}: {exc}",
            pathname=pathname,
            ty=manifest_ty,
        ) from exc

    manifest = convention.build_manifest({original_name: font_paths})

    try:
        text = manifest.to_json()
    except PydanticSerializationError as exc:
        raise ManifestSerializationError(
            f"Failed to serialize font manifest for route {pathname!r}: {exc}",
            pathname=pathname,
            ty=manifest_ty,
        ) from exc

    logger.debug(
        "font_manifest_created",
        extra={
            "route": pathname,
            "convention": convention.name,
            "ty": manifest_ty,
            "path": str(path),
            "fonts": len(font_paths),
        },
    )
    return VirtualOutputAsset(path=path, data=AssetContent.from_text(text))


def parse_font_manifest(text: str | bytes) -> NextFontManifest:
    """Decode a serialized font manifest."""

    return NextFontManifest.model_validate_json(text)


def load_font_manifest(path: Path) -> NextFontManifest:
    """Load and validate a ``next-font-manifest.json`` file."""

    return parse_font_manifest(path.read_text(encoding="utf-8"))


def manifest_entries(manifest: NextFontManifest) -> Mapping[str, list[str]]:
    """The populated font mapping of a single-route manifest."""

    return manifest.app or manifest.pages


__all__ = [
    "MANIFEST_FILENAME",
    "AppRoute",
    "FontManifestError",
    "ManifestResolutionError",
    "ManifestSerializationError",
    "NextFontManifest",
    "PagesRoute",
    "RouteConvention",
    "create_font_manifest",
    "load_font_manifest",
    "manifest_entries",
    "parse_font_manifest",
    "route_convention",
]
