# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Classification of output assets as web fonts."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from font_manifest.assets import OutputAsset
from font_manifest.paths import FileSystemPath

FONT_EXTENSIONS: Final[tuple[str, ...]] = (".woff", ".woff2", ".eot", ".ttf", ".otf")


def is_font_path(path: str, extensions: Sequence[str] = FONT_EXTENSIONS) -> bool:
    """Return whether ``path`` names a font file."""

    lowered = path.lower()
    return any(lowered.endswith(ext.lower()) for ext in extensions)


def get_font_paths_from_root(
    root: FileSystemPath,
    assets: Iterable[OutputAsset],
    extensions: Sequence[str] = FONT_EXTENSIONS,
) -> list[str]:
    """Paths relative to ``root`` of the font assets that live under it.

    Order follows ``assets``. It is the order fonts get preloaded in, so
    callers must pass assets in a deterministic order.
    """

    paths: list[str] = []
    seen: set[str] = set()
    for asset in assets:
        relative = root.get_path_to(asset.path)
        if relative is None or relative in seen:
            continue
        if is_font_path(relative, extensions):
            seen.add(relative)
            paths.append(relative)
    return paths


__all__ = ["FONT_EXTENSIONS", "get_font_paths_from_root", "is_font_path"]
