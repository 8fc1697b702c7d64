# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Virtual filesystem paths and route pathname helpers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

_INDEX_ROUTE = "/index"


class InvalidPathError(ValueError):
    """Raised when a joined path is absolute or escapes its filesystem root."""


@dataclass(frozen=True, slots=True)
class FileSystem:
    """A named output filesystem, optionally backed by a directory on disk."""

    name: str
    root: Path | None = None

    def root_path(self) -> FileSystemPath:
        return FileSystemPath(fs=self, path="")


@dataclass(frozen=True, slots=True)
class FileSystemPath:
    """Normalized ``/``-separated path relative to the root of ``fs``."""

    fs: FileSystem
    path: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", _normalize(self.path, origin=self.path))

    def __str__(self) -> str:
        return f"[{self.fs.name}]/{self.path}"

    def join(self, relative: str) -> FileSystemPath:
        """Return ``relative`` appended to this path."""

        if relative.startswith("/"):
            raise InvalidPathError(f"Cannot join absolute path {relative!r} to {self}")
        combined = f"{self.path}/{relative}" if self.path else relative
        return FileSystemPath(fs=self.fs, path=_normalize(combined, origin=relative))

    def get_path_to(self, other: FileSystemPath) -> str | None:
        """Relative path from this directory to ``other`` when it is a descendant."""

        if other.fs != self.fs:
            return None
        if not self.path:
            return other.path or None
        prefix = f"{self.path}/"
        if other.path.startswith(prefix):
            return other.path[len(prefix) :]
        return None

    @property
    def file_name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def extension(self) -> str | None:
        name = self.file_name
        if "." not in name.lstrip("."):
            return None
        return name.rsplit(".", 1)[-1]

    @property
    def parent(self) -> FileSystemPath:
        head, _, _ = self.path.rpartition("/")
        return FileSystemPath(fs=self.fs, path=head)

    def to_disk(self) -> Path:
        """Location of this path on disk; requires a disk-backed filesystem."""

        if self.fs.root is None:
            raise InvalidPathError(f"Filesystem {self.fs.name!r} has no disk root")
        if not self.path:
            return self.fs.root
        return self.fs.root.joinpath(*self.path.split("/"))


def _normalize(path: str, *, origin: str) -> str:
    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not segments:
                raise InvalidPathError(f"Path {origin!r} escapes the filesystem root")
            segments.pop()
            continue
        segments.append(segment)
    return "/".join(segments)


def get_asset_prefix_from_pathname(pathname: str) -> str:
    """Directory prefix under which per-route manifests for ``pathname`` live.

    The root route maps to an empty prefix. An explicit ``/index`` route is
    nested under ``/index`` so it cannot collide with the root route. Other
    pathnames keep their segments verbatim, dynamic segments included.
    Relative segments (``.`` and ``..``) are rejected.
    """

    segments = [segment for segment in pathname.split("/") if segment]
    if any(segment in (".", "..") for segment in segments):
        raise InvalidPathError(f"Pathname {pathname!r} contains relative segments")
    if not segments:
        return ""
    normalized = "/" + "/".join(segments)
    if normalized == _INDEX_ROUTE or normalized.startswith(f"{_INDEX_ROUTE}/"):
        return f"{_INDEX_ROUTE}{normalized}"
    return normalized


def get_asset_path_from_pathname(pathname: str, ext: str) -> str:
    """Asset path for a per-page file such as ``/blog/[slug].js``."""

    prefix = get_asset_prefix_from_pathname(pathname) or _INDEX_ROUTE
    return f"{prefix}{ext}"


__all__ = [
    "FileSystem",
    "FileSystemPath",
    "InvalidPathError",
    "get_asset_path_from_pathname",
    "get_asset_prefix_from_pathname",
]
