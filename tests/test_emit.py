"""Tests for output asset collection and persistence."""

from __future__ import annotations

import asyncio
import hashlib
from pathlib import Path

import pytest

from font_manifest.assets import AssetContent, VirtualOutputAsset
from font_manifest.emit import ConflictingOutputError, OutputAssetSet
from font_manifest.paths import FileSystem


def _asset(root: FileSystem, path: str, text: str) -> VirtualOutputAsset:
    return VirtualOutputAsset(
        path=root.root_path().join(path), data=AssetContent.from_text(text)
    )


def test_identical_assets_are_deduplicated(tmp_path: Path) -> None:
    node = FileSystem(name="node", root=tmp_path)
    output = OutputAssetSet()

    assert asyncio.run(output.add(_asset(node, "server/pages/a.json", "{}")))
    assert not asyncio.run(output.add(_asset(node, "server/pages/a.json", "{}")))
    assert len(output) == 1


def test_conflicting_assets_are_rejected(tmp_path: Path) -> None:
    node = FileSystem(name="node", root=tmp_path)
    output = OutputAssetSet()
    asyncio.run(output.add(_asset(node, "server/pages/a.json", "{}")))

    with pytest.raises(ConflictingOutputError) as exc_info:
        asyncio.run(output.add(_asset(node, "server/pages/a.json", "[]")))

    assert exc_info.value.path.path == "server/pages/a.json"


def test_write_persists_assets_in_path_order(tmp_path: Path) -> None:
    node = FileSystem(name="node", root=tmp_path)
    output = OutputAssetSet()
    asyncio.run(
        output.add_all(
            [
                _asset(node, "server/pages/b/next-font-manifest.json", "b"),
                _asset(node, "server/app/a/page/next-font-manifest.json", "a"),
            ]
        )
    )

    results = output.write()

    assert [result.path.path for result in results] == [
        "server/app/a/page/next-font-manifest.json",
        "server/pages/b/next-font-manifest.json",
    ]
    written = tmp_path / "server" / "app" / "a" / "page" / "next-font-manifest.json"
    assert written.read_text(encoding="utf-8") == "a"
    assert results[0].disk_path == written
    assert results[0].sha256 == hashlib.sha256(b"a").hexdigest()
    assert results[0].size_bytes == 1
    assert all(result.written for result in results)
    assert not list(tmp_path.rglob("*.tmp"))


def test_dry_run_leaves_disk_untouched(tmp_path: Path) -> None:
    node = FileSystem(name="node", root=tmp_path / "node")
    output = OutputAssetSet()
    asyncio.run(output.add(_asset(node, "server/pages/next-font-manifest.json", "{}")))

    results = output.write(dry_run=True)

    assert len(results) == 1
    assert not results[0].written
    assert not (tmp_path / "node").exists()


def test_write_replaces_existing_files(tmp_path: Path) -> None:
    node = FileSystem(name="node", root=tmp_path)
    target = tmp_path / "server" / "pages" / "next-font-manifest.json"
    target.parent.mkdir(parents=True)
    target.write_text("stale", encoding="utf-8")
    output = OutputAssetSet()
    asyncio.run(output.add(_asset(node, "server/pages/next-font-manifest.json", "new")))

    output.write()

    assert target.read_text(encoding="utf-8") == "new"
