# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Output asset records collected and emitted by the build pipeline."""

from __future__ import annotations

import asyncio
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from font_manifest.paths import FileSystemPath, InvalidPathError

_CSS_URL = re.compile(r"""url\(\s*(['"]?)([^'")]+?)\1\s*\)""")


@dataclass(frozen=True, slots=True)
class AssetContent:
    """Immutable file content of an output asset."""

    data: bytes

    @classmethod
    def from_text(cls, text: str) -> AssetContent:
        return cls(text.encode("utf-8"))

    def text(self) -> str:
        return self.data.decode("utf-8")


class OutputAsset(ABC):
    """An artifact produced by the build, addressed by its output path."""

    path: FileSystemPath

    @abstractmethod
    async def content(self) -> AssetContent:
        """Return the asset's content."""

    @abstractmethod
    async def references(self) -> OutputAssets:
        """Return the output assets this asset loads at runtime."""


class OutputAssets(Sequence[OutputAsset]):
    """Ordered, hashable collection of output assets."""

    __slots__ = ("_assets",)

    def __init__(self, assets: Iterable[OutputAsset] = ()) -> None:
        self._assets: tuple[OutputAsset, ...] = tuple(assets)

    def __getitem__(self, index):  # type: ignore[no-untyped-def]
        return self._assets[index]

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[OutputAsset]:
        return iter(self._assets)

    def __hash__(self) -> int:
        return hash(self._assets)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OutputAssets):
            return NotImplemented
        return self._assets == other._assets

    def __repr__(self) -> str:
        return f"OutputAssets({[str(asset.path) for asset in self._assets]!r})"


@dataclass(frozen=True, slots=True, eq=True)
class VirtualOutputAsset(OutputAsset):
    """In-memory asset whose content is already known."""

    path: FileSystemPath
    data: AssetContent

    async def content(self) -> AssetContent:
        return self.data

    async def references(self) -> OutputAssets:
        return OutputAssets()


@dataclass(frozen=True, slots=True, eq=True)
class FileOutputAsset(OutputAsset):
    """Asset backed by a file under a disk-backed filesystem.

    Stylesheets reference the files they load with ``url(...)``; those
    resolve relative to the stylesheet. Remote and ``data:`` URLs, and URLs
    pointing at files that were not emitted, are not references.
    """

    path: FileSystemPath

    async def content(self) -> AssetContent:
        data = await asyncio.to_thread(self.path.to_disk().read_bytes)
        return AssetContent(data)

    async def references(self) -> OutputAssets:
        if self.path.extension != "css":
            return OutputAssets()
        text = (await self.content()).text()
        found: list[OutputAsset] = []
        for match in _CSS_URL.finditer(text):
            target = _local_reference(self.path, match.group(2))
            if target is not None and await asyncio.to_thread(_is_emitted, target):
                found.append(FileOutputAsset(target))
        return OutputAssets(found)


def _is_emitted(path: FileSystemPath) -> bool:
    return path.to_disk().is_file()


def _local_reference(origin: FileSystemPath, url: str) -> FileSystemPath | None:
    url = url.split("#", 1)[0].split("?", 1)[0].strip()
    if not url or url.startswith(("data:", "http:", "https:", "//")):
        return None
    try:
        if url.startswith("/"):
            return origin.fs.root_path().join(url.lstrip("/"))
        return origin.parent.join(url)
    except InvalidPathError:
        return None


def assets_from_directory(
    root: FileSystemPath, patterns: Sequence[str] = ("**/*",)
) -> OutputAssets:
    """Entry assets for every file under ``root`` matching ``patterns``.

    Patterns must be non-empty and relative to ``root``; ``root`` must be an
    existing directory.
    """

    directory = root.to_disk()
    if not directory.is_dir():
        raise FileNotFoundError(f"Client output directory not found: {directory}")
    for pattern in patterns:
        if not pattern.strip() or Path(pattern).anchor:
            raise ValueError(f"Entry pattern must be relative to {root}: {pattern!r}")
    seen: set[Path] = set()
    ordered: list[Path] = []
    for pattern in patterns:
        for file_path in sorted(directory.glob(pattern)):
            if file_path.is_file() and file_path not in seen:
                seen.add(file_path)
                ordered.append(file_path)
    return OutputAssets(
        FileOutputAsset(root.join(file_path.relative_to(directory).as_posix()))
        for file_path in ordered
    )


__all__ = [
    "AssetContent",
    "FileOutputAsset",
    "OutputAsset",
    "OutputAssets",
    "VirtualOutputAsset",
    "assets_from_directory",
]
