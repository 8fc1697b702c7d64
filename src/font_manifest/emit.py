# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Collection and persistence of output assets."""

from __future__ import annotations

import hashlib
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from font_manifest.assets import AssetContent, OutputAsset
from font_manifest.paths import FileSystemPath


class ConflictingOutputError(RuntimeError):
    """Raised when two assets with different content target the same path."""

    def __init__(self, path: FileSystemPath) -> None:
        super().__init__(f"Conflicting output assets for {path}")
        self.path = path


@dataclass(frozen=True, slots=True)
class EmitResult:
    """Record of an asset written (or planned) by :class:`OutputAssetSet`."""

    path: FileSystemPath
    disk_path: Path
    size_bytes: int
    sha256: str
    written: bool


class OutputAssetSet:
    """Output assets of a build, deduplicated by path."""

    def __init__(self) -> None:
        self._assets: dict[FileSystemPath, OutputAsset] = {}
        self._contents: dict[FileSystemPath, AssetContent] = {}

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[OutputAsset]:
        return iter(self._assets.values())

    async def add(self, asset: OutputAsset) -> bool:
        """Add ``asset``; return ``False`` when an identical asset is present."""

        content = await asset.content()
        existing = self._contents.get(asset.path)
        if existing is not None:
            if existing != content:
                raise ConflictingOutputError(asset.path)
            return False
        self._assets[asset.path] = asset
        self._contents[asset.path] = content
        return True

    async def add_all(self, assets: Iterable[OutputAsset]) -> None:
        for asset in assets:
            await self.add(asset)

    def write(self, *, dry_run: bool = False) -> list[EmitResult]:
        """Persist every collected asset to its filesystem's disk root."""

        results: list[EmitResult] = []
        for path in sorted(self._contents, key=lambda item: (item.fs.name, item.path)):
            content = self._contents[path]
            disk_path = path.to_disk()
            if not dry_run:
                _write_bytes_atomic(content.data, disk_path)
            results.append(
                EmitResult(
                    path=path,
                    disk_path=disk_path,
                    size_bytes=len(content.data),
                    sha256=hashlib.sha256(content.data).hexdigest(),
                    written=not dry_run,
                )
            )
        return results


def _write_bytes_atomic(data: bytes, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        delete=False, dir=str(path.parent), suffix=".tmp"
    ) as handle:
        temp_path = Path(handle.name)

    try:
        temp_path.write_bytes(data)
        temp_path.replace(path)
    finally:
        if temp_path.exists():
            temp_path.unlink(missing_ok=True)


__all__ = ["ConflictingOutputError", "EmitResult", "OutputAssetSet"]
