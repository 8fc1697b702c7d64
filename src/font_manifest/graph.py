# Copyright (c) 2025 Arye Kogan
# SPDX-License-Identifier: MIT

"""Traversal of the client output asset graph."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable
from typing import TypeVar

from font_manifest.assets import OutputAsset, OutputAssets

T = TypeVar("T")

logger = logging.getLogger(__name__)


class AssetGraphError(RuntimeError):
    """Raised when an asset's references cannot be read."""

    def __init__(self, asset: OutputAsset, error: Exception) -> None:
        super().__init__(f"Failed to read references of {asset.path}: {error}")
        self.asset = asset
        self.error = error


async def resolve(value: T | Awaitable[T]) -> T:
    """Await ``value`` if it is still pending, otherwise return it."""

    if inspect.isawaitable(value):
        return await value
    return value


class AssetGraph:
    """Memoized reachability queries over a read-only asset graph.

    Concurrent callers asking for the same entry set share one traversal.
    A caller being cancelled does not cancel the traversal for the others.
    """

    def __init__(self) -> None:
        self._traversals: dict[OutputAssets, asyncio.Task[OutputAssets]] = {}

    async def all_assets_from_entries(self, entries: OutputAssets) -> OutputAssets:
        task = self._traversals.get(entries)
        if task is None:
            task = asyncio.ensure_future(_traverse(entries))
            self._traversals[entries] = task
        return await asyncio.shield(task)

    def clear(self) -> None:
        for task in self._traversals.values():
            if not task.done():
                task.cancel()
        self._traversals.clear()


async def all_assets_from_entries(entries: OutputAssets) -> OutputAssets:
    """Every asset reachable from ``entries``, without memoization."""

    return await _traverse(entries)


async def _traverse(entries: OutputAssets) -> OutputAssets:
    # Depth-first pre-order; entries keep their given order.
    visited: set[OutputAsset] = set()
    ordered: list[OutputAsset] = []
    stack: list[OutputAsset] = list(reversed(entries))
    while stack:
        asset = stack.pop()
        if asset in visited:
            continue
        visited.add(asset)
        ordered.append(asset)
        try:
            references = await asset.references()
        except Exception as exc:
            raise AssetGraphError(asset, exc) from exc
        stack.extend(reversed(references))

    logger.debug(
        "asset_graph_traversed",
        extra={"entries": len(entries), "assets": len(ordered)},
    )
    return OutputAssets(ordered)


__all__ = ["AssetGraph", "AssetGraphError", "all_assets_from_entries", "resolve"]
