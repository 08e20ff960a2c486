"""Lazily populated configuration tree.

Purpose
-------
Hold application configuration as a tree of key/value mappings whose branches
can be deferred and materialised on first access. This module belongs to the
domain layer: it performs no I/O itself and reaches files and overrides only
through the ports injected by the composition root.

Contents
--------
* :class:`ConfigTree` – mutable mapping with autoload, merge-on-load, and
  cached size bookkeeping.
* :func:`convert_mapping` – turns nested mappings into non-root trees.
* :func:`merge_into` – right-biased deep merge of a payload into a tree.

System Role
-----------
:func:`lib_config_tree.core.read_config` returns a root :class:`ConfigTree`.
Every nested mapping below it is a non-root :class:`ConfigTree`, created by
:func:`convert_mapping` whenever data enters the tree (construction, ``set``,
explicit loads, and autoload).
"""

from __future__ import annotations

import json
from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any, Iterator

from .errors import ConfigError, InvalidFormat, NotFound, UnsupportedOffset

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..application.ports import FileLoader, OverrideSource

ConfigKey = str | int

_MISSING = object()


class ConfigTree(MutableMapping[ConfigKey, Any]):
    """Mutable configuration mapping that loads missing top-level keys on demand.

    Why
    ----
    Applications rarely need every configuration file at startup. A root tree
    asks its collaborators for ``tree["database"]`` only when someone reads it,
    remembers that it asked, and never asks again.

    What
    ----
    Keys are strings or non-negative integers. Nested mappings become non-root
    :class:`ConfigTree` instances. A root tree that misses a string key consults
    the override source first and the file loader second, merges whatever they
    return, and records the key as attempted.

    Parameters
    ----------
    data:
        Initial mapping. Nested mappings are converted recursively.
    is_root:
        Only root trees autoload. Trees created by conversion are never root.
    file_loader:
        :class:`~lib_config_tree.application.ports.FileLoader` used by
        :meth:`load_file` and by autoload.
    override:
        :class:`~lib_config_tree.application.ports.OverrideSource` or a plain
        mapping of top-level keys to override values.

    Examples
    --------
    >>> tree = ConfigTree({"test1": "String", "test2": {"test3": 1, "test4": False}})
    >>> tree.get("test2").get("test3")
    1
    >>> tree.set("test5", {"nested": True})
    >>> tree.size()
    3
    >>> tree.to_dict()["test5"]
    {'nested': True}
    >>> tree.append("first index")
    0
    >>> tree.exists(0), tree.exists("never")
    (True, False)
    """

    def __init__(
        self,
        data: Mapping[ConfigKey, Any] | None = None,
        *,
        is_root: bool = True,
        file_loader: FileLoader | None = None,
        override: OverrideSource | Mapping[str, Any] | None = None,
    ) -> None:
        self._entries: dict[ConfigKey, Any] = convert_mapping(data or {})
        self._is_root = is_root
        self._file_loader = file_loader
        self._override = dict(override) if isinstance(override, Mapping) else override
        self._loaded: set[str] = set()
        self._size = len(self._entries)
        self._size_dirty = False

    @property
    def is_root(self) -> bool:
        """Return ``True`` when this tree is allowed to autoload."""

        return self._is_root

    @property
    def loaded_keys(self) -> frozenset[str]:
        """Return the keys an autoload has already been attempted for."""

        return frozenset(self._loaded)

    def exists(self, key: ConfigKey) -> bool:
        """Return ``True`` when *key* is present, autoloading it if eligible.

        Raises
        ------
        UnsupportedOffset
            When *key* is neither a string nor a non-negative integer.
        """

        _check_offset(key)
        if key in self._entries:
            return True
        self._autoload(key)
        return key in self._entries

    def get(self, key: ConfigKey, default: Any = None) -> Any:
        """Return the value under *key*, or *default* when it cannot be found.

        Why
        ----
        The lookup is the natural trigger for lazy loading: a miss on a root
        tree with a string key consults the collaborators once before giving
        up.

        Examples
        --------
        >>> ConfigTree({"a": 1}, is_root=False).get("b", "fallback")
        'fallback'
        """

        _check_offset(key)
        if key not in self._entries:
            self._autoload(key)
        return self._entries.get(key, default)

    def set(self, key: ConfigKey | None, value: Any) -> None:
        """Store *value* under *key*; ``None`` appends at the next integer index."""

        if key is None:
            key = self._next_index()
        else:
            _check_offset(key)
        self._entries[key] = _convert_value(value)
        self._size_dirty = True

    def append(self, value: Any) -> int:
        """Store *value* at the next integer index and return that index."""

        index = self._next_index()
        self.set(index, value)
        return index

    def delete(self, key: ConfigKey) -> None:
        """Remove *key* when present. Missing keys are not an error."""

        _check_offset(key)
        self._entries.pop(key, None)
        self._size_dirty = True

    def size(self) -> int:
        """Return the number of direct entries, recounting only when stale."""

        if self._size_dirty:
            self._size = len(self._entries)
            self._size_dirty = False
        return self._size

    def merge(self, payload: Mapping[ConfigKey, Any]) -> None:
        """Deep-merge *payload* into this tree. See :func:`merge_into`."""

        merge_into(self, payload)

    def load_file(self, identifier: str) -> None:
        """Merge the mapping the file loader returns for *identifier*.

        Why
        ----
        Hosts pre-load well-known files at startup instead of waiting for the
        first lookup.

        What
        ----
        Missing and malformed files leave the tree untouched; the loader is
        responsible for reporting them. A successful load merges the mapping via
        :func:`merge_into`, which marks the cached size stale.

        Raises
        ------
        ConfigError
            When the tree was built without a file loader.
        """

        if self._file_loader is None:
            raise ConfigError(f"No file loader configured to load {identifier!r}")
        self._load_from_file(self._file_loader, identifier)

    def to_dict(self) -> dict[ConfigKey, Any]:
        """Return a plain nested ``dict`` snapshot of the tree.

        Examples
        --------
        >>> data = {"test1": "String", "test2": {"test3": 1, "test4": False}}
        >>> ConfigTree(data).to_dict() == data
        True
        """

        return {key: _unwrap(value) for key, value in self._entries.items()}

    def to_json(self, *, indent: int | None = None) -> str:
        """Serialise :meth:`to_dict` to JSON.

        Examples
        --------
        >>> ConfigTree({"service": {"timeout": 5}}).to_json()
        '{"service":{"timeout":5}}'
        """

        return json.dumps(self.to_dict(), indent=indent, separators=(",", ":"), ensure_ascii=False)

    def __getitem__(self, key: ConfigKey) -> Any:
        value = self.get(key, _MISSING)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __setitem__(self, key: ConfigKey, value: Any) -> None:
        _check_offset(key)
        self.set(key, value)

    def __delitem__(self, key: ConfigKey) -> None:
        self.delete(key)

    def __contains__(self, key: object) -> bool:
        return self.exists(key)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[ConfigKey]:
        return iter(self._entries)

    def __len__(self) -> int:
        return self.size()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Mapping):
            return NotImplemented
        return self.to_dict() == _unwrap(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_dict()!r}, is_root={self._is_root!r})"

    def _autoload(self, key: ConfigKey) -> None:
        """Try the override source, then the file loader, once per string key."""

        if not self._is_root or not isinstance(key, str) or key in self._loaded:
            return
        try:
            override = self._lookup_override(key)
            if override is not None:
                self._merge_loaded(override)
            elif self._file_loader is not None:
                self._load_from_file(self._file_loader, key)
        finally:
            self._loaded.add(key)

    def _lookup_override(self, key: str) -> Mapping[ConfigKey, Any] | None:
        if self._override is None:
            return None
        if isinstance(self._override, dict):
            return {key: self._override[key]} if key in self._override else None
        try:
            found = self._override.lookup(key)
        except InvalidFormat:
            return None
        return found if isinstance(found, Mapping) else None

    def _load_from_file(self, loader: FileLoader, identifier: str) -> None:
        try:
            data = loader.load(identifier)
        except (NotFound, InvalidFormat):
            return
        if isinstance(data, Mapping):
            self._merge_loaded(data)

    def _merge_loaded(self, payload: Mapping[Any, Any]) -> None:
        # Collaborator data with unaddressable keys counts as malformed.
        try:
            merge_into(self, payload)
        except UnsupportedOffset:
            return

    def _next_index(self) -> int:
        return max((key for key in self._entries if _is_index(key)), default=-1) + 1


def convert_mapping(mapping: Mapping[ConfigKey, Any]) -> dict[ConfigKey, Any]:
    """Return a copy of *mapping* with nested mappings turned into non-root trees.

    Why
    ----
    The tree stores every branch as a :class:`ConfigTree` so nested lookups get
    the same access semantics as the root. The conversion is side-effect free
    and independent of autoload so it can be exercised on its own.

    Examples
    --------
    >>> converted = convert_mapping({"test1": "String", "test2": {"test3": 1, "test4": False}})
    >>> converted["test1"]
    'String'
    >>> child = converted["test2"]
    >>> isinstance(child, ConfigTree), child.is_root, child.size()
    (True, False, 2)
    >>> convert_mapping({})
    {}
    >>> convert_mapping({"on": {True: 1}})
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.UnsupportedOffset: Unsupported offset: True
    """

    converted: dict[ConfigKey, Any] = {}
    for key, value in mapping.items():
        _check_offset(key)
        converted[key] = _convert_value(value)
    return converted


def merge_into(tree: ConfigTree, payload: Mapping[ConfigKey, Any]) -> None:
    """Merge *payload* into *tree*, letting *payload* win on conflicts.

    Rules
    -----
    * Keys missing from *tree* are inserted (after conversion).
    * A mapping arriving on top of an existing subtree is merged recursively.
    * Anything else overwrites, including a mapping replacing a scalar and a
      scalar replacing a subtree.

    Every key in *payload* is validated before anything is written, so an
    :class:`UnsupportedOffset` leaves *tree* untouched.

    Examples
    --------
    >>> tree = ConfigTree({"a": 1, "b": {"c": 1, "d": False}})
    >>> merge_into(tree, {"a": "X"})
    >>> tree.to_dict()
    {'a': 'X', 'b': {'c': 1, 'd': False}}
    >>> merge_into(tree, {"b": {"e": "Y"}})
    >>> tree.to_dict()
    {'a': 'X', 'b': {'c': 1, 'd': False, 'e': 'Y'}}
    """

    _check_keys(payload)
    _merge(tree, payload)


def _merge(tree: ConfigTree, payload: Mapping[ConfigKey, Any]) -> None:
    entries = tree._entries
    for key, value in payload.items():
        existing = entries.get(key)
        if isinstance(value, Mapping) and isinstance(existing, ConfigTree):
            _merge(existing, value)
        else:
            entries[key] = _convert_value(value)
    tree._size_dirty = True


def _check_keys(payload: Mapping[Any, Any]) -> None:
    for key, value in payload.items():
        _check_offset(key)
        if isinstance(value, Mapping) and not isinstance(value, ConfigTree):
            _check_keys(value)


def _convert_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return ConfigTree(value, is_root=False)
    return value


def _unwrap(value: Any) -> Any:
    """Clone *value*, replacing trees and mappings with plain ``dict`` copies."""

    if isinstance(value, ConfigTree):
        return value.to_dict()
    if isinstance(value, Mapping):
        return {key: _unwrap(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_unwrap(item) for item in value]
    if isinstance(value, (set, tuple)):
        return type(value)(_unwrap(item) for item in value)
    return value


def _is_index(key: object) -> bool:
    return isinstance(key, int) and not isinstance(key, bool)


def _check_offset(key: object) -> None:
    """Raise :class:`UnsupportedOffset` unless *key* is a string or a non-negative integer."""

    if isinstance(key, str):
        return
    if _is_index(key) and key >= 0:  # type: ignore[operator]
        return
    raise UnsupportedOffset(key)
