"""Hierarchical settings with parent-chain override.

A Settings node is a key/value table with at most one parent. Lookups walk
the node, then its parent, and so on, so trial settings shadow block
settings, which shadow session settings. Writes always go to the node they
are called on.
"""

import json
import weakref
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Union

from errors import SettingNotFoundError

# Distinguishes "no default passed" from an explicit default of None
_MISSING = object()


class Settings:
    """Key/value configuration node with an optional parent.

    The parent is referenced weakly: the owner hierarchy
    (Session -> Block -> Trial) keeps it alive. The parent link is fixed at
    construction, so a chain can never contain a cycle.

    Usage:
        session_settings = Settings({"a": 1})
        block_settings = Settings({"b": 2}, parent=session_settings)
        trial_settings = Settings({"a": 3}, parent=block_settings)
        trial_settings["a"]  # 3
        trial_settings["b"]  # 2
    """

    def __init__(
        self,
        values: Optional[Mapping[str, Any]] = None,
        parent: Optional["Settings"] = None,
    ) -> None:
        """Initialize a settings node.

        Args:
            values: Initial values, copied into this node
            parent: Node to fall back to for missing keys
        """
        self._values: Dict[str, Any] = dict(values or {})
        self._parent_ref = weakref.ref(parent) if parent is not None else None

    @classmethod
    def empty(cls, parent: Optional["Settings"] = None) -> "Settings":
        """Create a node with no values of its own."""
        return cls(parent=parent)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "Settings":
        """Load a root settings node from a JSON object file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file does not contain a JSON object
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Settings file must contain a JSON object: {path}")
        return cls(data)

    @property
    def parent(self) -> Optional["Settings"]:
        """Return the parent node, or None for a root (or collected) parent."""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def get(self, key: str, default: Any = _MISSING) -> Any:
        """Resolve a key through the parent chain.

        Args:
            key: Setting name
            default: Returned if no node in the chain has the key

        Raises:
            SettingNotFoundError: If the key is absent everywhere and no default was given
        """
        node: Optional[Settings] = self
        while node is not None:
            if key in node._values:
                return node._values[key]
            node = node.parent

        if default is _MISSING:
            raise SettingNotFoundError(key)
        return default

    # Resolution is always fresh: no caching of parent values
    get_object = get

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __contains__(self, key: object) -> bool:
        node: Optional[Settings] = self
        while node is not None:
            if key in node._values:
                return True
            node = node.parent
        return False

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[str]:
        """Return this node's own keys (not inherited ones)."""
        return list(self._values.keys())

    def update(self, values: Mapping[str, Any]) -> None:
        """Set several values on this node."""
        self._values.update(values)

    def clear(self) -> None:
        """Remove this node's own values. Parent values are unaffected."""
        self._values.clear()

    @property
    def base_dict(self) -> Dict[str, Any]:
        """Return a shallow copy of this node's own values."""
        return dict(self._values)

    def __repr__(self) -> str:
        return f"Settings({self._values!r}, has_parent={self.parent is not None})"
