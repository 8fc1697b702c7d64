"""Tests for font manifest assembly."""

# mypy: disable-error-code=no-untyped-def

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from pathlib import Path

import pytest
from pydantic_core import PydanticSerializationError

from font_manifest.assets import AssetContent, OutputAssets, VirtualOutputAsset
from font_manifest.graph import AssetGraph
from font_manifest.manifest import (
    AppRoute,
    FontManifestError,
    ManifestResolutionError,
    ManifestSerializationError,
    NextFontManifest,
    PagesRoute,
    create_font_manifest,
    load_font_manifest,
    manifest_entries,
    parse_font_manifest,
    route_convention,
)
from font_manifest.paths import FileSystem, FileSystemPath

CLIENT = FileSystem(name="client").root_path()
NODE = FileSystem(name="project").root_path().join("out")

EXPECTED_APP_JSON = """{
  "pages": {},
  "app": {
    "app/page": [
      "static/fonts/a.woff2",
      "static/fonts/b.woff2"
    ]
  },
  "appUsingSizeAdjust": false,
  "pagesUsingSizeAdjust": false
}"""


def _assets(*paths: str) -> OutputAssets:
    return OutputAssets(
        VirtualOutputAsset(path=CLIENT.join(path), data=AssetContent(b""))
        for path in paths
    )


FONT_ASSETS = _assets("static/fonts/a.woff2", "static/css/a.css", "static/fonts/b.woff2")


def _create(
    *,
    pathname: str = "/blog/[slug]",
    app_dir: bool = True,
    ty: str = "rsc",
    original_name: str = "app/page",
    assets: OutputAssets = FONT_ASSETS,
    client_root=CLIENT,
    node_root=NODE,
    graph: AssetGraph | None = None,
    font_extensions: Sequence[str] | None = None,
) -> VirtualOutputAsset:
    kwargs = {"graph": graph}
    if font_extensions is not None:
        kwargs["font_extensions"] = font_extensions
    return asyncio.run(
        create_font_manifest(
            client_root,
            node_root,
            ty,
            pathname,
            original_name,
            assets,
            app_dir,
            **kwargs,
        )
    )


def _decode(asset: VirtualOutputAsset) -> NextFontManifest:
    return parse_font_manifest(asset.data.data)


def test_app_route_manifest_path_and_content() -> None:
    asset = _create(pathname="/", original_name="app/page")

    assert asset.path.path == "out/server/app/rsc/next-font-manifest.json"
    assert asset.data.text() == EXPECTED_APP_JSON


def test_nested_dynamic_routes_use_the_pathname_prefix() -> None:
    app_asset = _create(pathname="/blog/[slug]", app_dir=True)
    pages_asset = _create(pathname="/blog/[slug]", app_dir=False)

    assert app_asset.path.path == (
        "out/server/app/blog/[slug]/rsc/next-font-manifest.json"
    )
    assert pages_asset.path.path == (
        "out/server/pages/blog/[slug]/next-font-manifest.json"
    )


def test_pages_route_ignores_type_and_populates_pages() -> None:
    asset = _create(app_dir=False, ty="ignored", original_name="pages/_app")
    manifest = _decode(asset)

    assert "ignored" not in asset.path.path
    assert manifest.app == {}
    assert manifest.pages == {
        "pages/_app": ["static/fonts/a.woff2", "static/fonts/b.woff2"]
    }
    assert manifest.app_using_size_adjust is False
    assert manifest.pages_using_size_adjust is False


def test_exactly_one_convention_is_populated() -> None:
    for app_dir in (True, False):
        manifest = _decode(_create(app_dir=app_dir))
        populated = [name for name in ("app", "pages") if getattr(manifest, name)]
        assert populated == (["app"] if app_dir else ["pages"])


def test_original_name_is_kept_verbatim() -> None:
    name = "app/[locale]/layout ✓"
    manifest = _decode(_create(original_name=name))

    assert list(manifest.app) == [name]


def test_key_present_with_empty_paths_when_no_fonts() -> None:
    manifest = _decode(_create(assets=_assets("static/css/a.css")))

    assert manifest.app == {"app/page": []}
    payload = json.loads(_create(assets=OutputAssets()).data.text())
    assert payload["app"] == {"app/page": []}


def test_font_order_follows_extraction() -> None:
    assets = _assets("static/fonts/b.woff2", "static/fonts/a.woff2")

    manifest = _decode(_create(assets=assets, app_dir=False))

    assert manifest.pages["app/page"] == ["static/fonts/b.woff2", "static/fonts/a.woff2"]


def test_custom_font_extensions() -> None:
    assets = _assets("static/fonts/a.woff2", "static/fonts/b.ttc")

    manifest = _decode(_create(assets=assets, font_extensions=(".ttc",)))

    assert manifest.app["app/page"] == ["static/fonts/b.ttc"]


def test_output_is_deterministic() -> None:
    first = _create()
    second = _create()

    assert first == second
    assert first.data.data == second.data.data


def test_json_round_trips(tmp_path: Path) -> None:
    asset = _create()
    target = tmp_path / "next-font-manifest.json"
    target.write_bytes(asset.data.data)

    manifest = load_font_manifest(target)

    assert manifest == NextFontManifest(
        pages={},
        app={"app/page": ["static/fonts/a.woff2", "static/fonts/b.woff2"]},
        app_using_size_adjust=False,
        pages_using_size_adjust=False,
    )
    assert manifest.to_json() == asset.data.text()
    assert manifest_entries(manifest) == manifest.app


def test_awaitable_roots_are_resolved() -> None:
    async def client_root() -> FileSystemPath:
        await asyncio.sleep(0)
        return CLIENT

    async def node_root() -> FileSystemPath:
        return NODE

    asset = _create(client_root=client_root(), node_root=node_root())

    assert asset.path.path == "out/server/app/blog/[slug]/rsc/next-font-manifest.json"


def test_root_resolution_failure_carries_route_context() -> None:
    async def broken_root() -> FileSystemPath:
        raise OSError("client root missing")

    with pytest.raises(ManifestResolutionError) as exc_info:
        _create(client_root=broken_root(), pathname="/shop", ty="page")

    error = exc_info.value
    assert error.pathname == "/shop"
    assert error.ty == "page"
    assert "/shop" in str(error)
    assert isinstance(error.__cause__, OSError)


def test_graph_failure_is_a_resolution_error() -> None:
    class Unreadable(VirtualOutputAsset):
        async def references(self) -> OutputAssets:
            raise OSError("graph unavailable")

    asset = Unreadable(path=CLIENT.join("static/css/a.css"), data=AssetContent(b""))

    with pytest.raises(ManifestResolutionError) as exc_info:
        _create(assets=OutputAssets([asset]), app_dir=False)

    assert exc_info.value.ty is None


def test_escaping_pathname_is_rejected() -> None:
    with pytest.raises(FontManifestError) as exc_info:
        _create(pathname="/../../../../etc", app_dir=False)

    assert not isinstance(exc_info.value, ManifestResolutionError)


def test_pathname_cannot_leave_the_convention_directory() -> None:
    with pytest.raises(FontManifestError) as exc_info:
        _create(pathname="/../../pages/x", app_dir=True, ty="rsc")

    assert not isinstance(exc_info.value, ManifestResolutionError)
    assert exc_info.value.pathname == "/../../pages/x"
    assert exc_info.value.ty == "rsc"


def test_serialization_failure_is_distinct(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_to_json(self):
        raise PydanticSerializationError("unserializable")

    monkeypatch.setattr(NextFontManifest, "to_json", failing_to_json)

    with pytest.raises(ManifestSerializationError) as exc_info:
        _create(pathname="/about")

    assert exc_info.value.pathname == "/about"
    assert exc_info.value.ty == "rsc"


def test_shared_graph_is_reused() -> None:
    graph = AssetGraph()

    async def scenario():
        return await asyncio.gather(
            create_font_manifest(
                CLIENT, NODE, "page", "/a", "a", FONT_ASSETS, True, graph=graph
            ),
            create_font_manifest(
                CLIENT, NODE, "page", "/b", "b", FONT_ASSETS, False, graph=graph
            ),
        )

    first, second = asyncio.run(scenario())

    assert first.path.path == "out/server/app/a/page/next-font-manifest.json"
    assert second.path.path == "out/server/pages/b/next-font-manifest.json"
    assert len(graph._traversals) == 1


def test_cancellation_produces_no_artifact() -> None:
    async def scenario():
        never = asyncio.get_running_loop().create_future()
        task = asyncio.create_task(
            create_font_manifest(never, NODE, "page", "/", "a", FONT_ASSETS, True)
        )
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())


def test_route_conventions() -> None:
    assert route_convention(True, "page") == AppRoute(ty="page")
    assert route_convention(False, "page") == PagesRoute()
    assert AppRoute(ty="route").manifest_path("") == (
        "server/app/route/next-font-manifest.json"
    )
    assert PagesRoute().manifest_path("/index/index") == (
        "server/pages/index/index/next-font-manifest.json"
    )
