"""Store contract.

The event store is a hierarchical, path-addressable document store. The
pipeline only needs two operations: read a subtree, and apply an atomic
multi-key update where a ``None`` value deletes that key.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Protocol

_FORBIDDEN_KEY_CHARS = re.compile(r"[.$#\[\]/]")


class Store(Protocol):
    """Structural store interface shared by the Firebase client and test doubles."""

    async def get(self, path: str) -> Any | None:
        """Return the value at *path*, or ``None`` when absent."""
        ...

    async def update(self, path: str, values: Mapping[str, Any | None]) -> None:
        """Atomically write every key of *values* under *path*.

        Keys may be nested relative paths (``"a/b"``). A ``None`` value
        deletes the key.
        """
        ...


def split_path(path: str) -> list[str]:
    return [part for part in path.split("/") if part]


def join_path(*parts: str) -> str:
    segments: list[str] = []
    for part in parts:
        segments.extend(split_path(part))
    return "/" + "/".join(segments)


def store_key(value: str) -> str:
    """Make *value* usable as a single path segment (``. $ # [ ] /`` become ``_``)."""
    return _FORBIDDEN_KEY_CHARS.sub("_", value.strip())
