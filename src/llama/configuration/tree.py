"""Recursive, ordered configuration tree.

Built from nested mappings (usually a parsed INI file). Nested mappings
become child ``Configuration`` nodes; everything else is stored as-is.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

_MISSING = object()


class Configuration(Mapping[str, Any]):
    """An ordered, read-mostly configuration node.

    Usage::

        config = Configuration({"db": {"url": "sqlite:///app.db"}, "debug": True})
        config.get("db").get("url")           # "sqlite:///app.db"
        config.get_path("db.url")             # same, dotted
        config.get("missing", "fallback")     # "fallback"
        config.remove("debug")
        len(config)                           # 1

    Iteration yields keys in insertion order through a
    ``ConfigurationCursor``. Keys removed while a cursor is live are never
    yielded, and the cursor never skips a key that is still present.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = {}
        for name, value in (data or {}).items():
            if isinstance(value, Mapping) and not isinstance(value, Configuration):
                self._data[name] = Configuration(value)
            else:
                self._data[name] = value

    # -- Mapping protocol --

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __iter__(self) -> Iterator[str]:
        return ConfigurationCursor(self)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, name: object) -> bool:
        return name in self._data

    def __delitem__(self, name: str) -> None:
        self.remove(name)

    def __repr__(self) -> str:
        return f"Configuration({self.to_dict()!r})"

    # -- Explicit API --

    def count(self) -> int:
        """Number of live children."""
        return len(self._data)

    def get(self, name: str, default: Any = None) -> Any:
        """Return the value stored under *name*, or *default* if absent."""
        return self._data.get(name, default)

    def get_path(self, path: str, default: Any = None) -> Any:
        """Dotted lookup through child nodes: ``get_path("resources.module_path")``."""
        node: Any = self
        for part in path.split("."):
            if not isinstance(node, Configuration):
                return default
            node = node._data.get(part, _MISSING)
            if node is _MISSING:
                return default
        return node

    def has(self, name: str) -> bool:
        """True if *name* is present and not ``None``."""
        return self._data.get(name) is not None

    def remove(self, name: str) -> None:
        """Remove *name*. Missing keys are ignored."""
        self._data.pop(name, None)

    def to_dict(self) -> dict[str, Any]:
        """Return a plain nested ``dict`` copy of this node."""
        return {
            name: value.to_dict() if isinstance(value, Configuration) else value
            for name, value in self._data.items()
        }


class ConfigurationCursor(Iterator[str]):
    """Cursor over a snapshot of a node's key order.

    The snapshot is taken when the cursor is created. Keys removed from the
    node afterwards act as tombstones and are stepped over; the position
    only moves forward one live key per ``__next__``.
    """

    __slots__ = ("_keys", "_node", "_position")

    def __init__(self, node: Configuration) -> None:
        self._node = node
        self._keys = list(node._data)
        self._position = 0

    def __next__(self) -> str:
        while self._position < len(self._keys):
            key = self._keys[self._position]
            self._position += 1
            if key in self._node._data:
                return key
        raise StopIteration


def array_merge_recursive(first: Mapping[str, Any], second: Mapping[str, Any]) -> dict[str, Any]:
    """Overlay *second* onto *first*, returning a new ``dict``.

    Keys present in both are merged recursively when both values are
    mappings; otherwise the value from *second* wins. Keys unique to
    *second* are added. Neither argument is modified.

    ::

        array_merge_recursive({"a": {"x": 1}}, {"a": {"y": 2}, "b": 3})
        # {"a": {"x": 1, "y": 2}, "b": 3}
    """
    merged: dict[str, Any] = {
        key: dict(value) if isinstance(value, Mapping) else value for key, value in first.items()
    }
    for key, value in second.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = array_merge_recursive(current, value)
        elif isinstance(value, Mapping):
            merged[key] = dict(value)
        else:
            merged[key] = value
    return merged
