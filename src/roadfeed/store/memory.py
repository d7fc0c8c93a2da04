"""In-process store with the same update/delete semantics as the Firebase client."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from roadfeed.store.base import split_path


def _strip_nulls(value: Any) -> Any:
    """Drop ``None`` leaves and the empty objects they leave behind."""
    if isinstance(value, Mapping):
        cleaned: dict[str, Any] = {}
        for key, item in value.items():
            stripped = _strip_nulls(item)
            if stripped is not None:
                cleaned[str(key)] = stripped
        return cleaned or None
    if isinstance(value, (list, tuple)):
        return [_strip_nulls(item) for item in value]
    return value


class MemoryStore:
    """Nested-dict store used for dry runs without a database and in tests.

    ``update_calls`` counts applied :meth:`update` calls so callers can tell
    whether a write was issued at all.
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._root: dict[str, Any] = copy.deepcopy(dict(data or {}))
        self.update_calls = 0

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._root)

    async def get(self, path: str) -> Any | None:
        node: Any = self._root
        for part in split_path(path):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return copy.deepcopy(node)

    async def update(self, path: str, values: Mapping[str, Any | None]) -> None:
        base = split_path(path)
        writes: list[tuple[list[str], Any]] = []
        for key, value in values.items():
            parts = base + split_path(str(key))
            if not parts:
                raise ValueError("cannot update the store root")
            writes.append((parts, _strip_nulls(copy.deepcopy(value))))

        for parts, value in writes:
            if value is None:
                self._delete(parts)
            else:
                self._set(parts, value)
        self.update_calls += 1

    def _set(self, parts: list[str], value: Any) -> None:
        node = self._root
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = value

    def _delete(self, parts: list[str]) -> None:
        trail: list[tuple[dict[str, Any], str]] = []
        node: Any = self._root
        for part in parts:
            if not isinstance(node, dict) or part not in node:
                return
            trail.append((node, part))
            node = node[part]
        parent, key = trail.pop()
        del parent[key]
        # Remove parents emptied by the delete.
        while trail and not parent:
            parent, key = trail.pop()
            del parent[key]
