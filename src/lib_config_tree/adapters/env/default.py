"""Environment variable override adapter.

Purpose
-------
Translate process environment variables into per-key override mappings for the
root configuration tree. It implements
:class:`lib_config_tree.application.ports.OverrideSource` and outranks every
other override source wired by :mod:`lib_config_tree.core`.

Key behaviours
--------------
* Enforces a configurable prefix (``default_env_prefix``) so only relevant keys
  are captured.
* Supports ``__`` as a nesting delimiter
  (``DEMO_DATABASE__HOST`` → ``{"database": {"host": ...}}``).
* Matches the top-level key case-insensitively but returns it spelled the way
  the tree asked for it.
* Performs light type coercion for common scalar types (bools, ints, floats,
  ``null``/``none``).
"""

from __future__ import annotations

import os
from typing import Mapping

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error, make_event


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-config-tree')
    'LIB_CONFIG_TREE'
    """

    return slug.replace("-", "_").upper()


class EnvOverrideSource:
    """Serve overrides for a top-level key from prefixed environment variables."""

    def __init__(self, prefix: str, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the source with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        prefix:
            Prefix filter (upper-case). The source appends ``_`` if missing.
        environ:
            Mapping to read from. Defaults to :data:`os.environ`, read at lookup
            time.
        """

        self._prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        self._environ = environ if environ is not None else os.environ

    def lookup(self, key: str) -> dict[str, object] | None:
        """Return ``{key: value}`` assembled from matching variables, or ``None``.

        Raises
        ------
        InvalidFormat
            When one variable sets a scalar where another one nests below it.

        Examples
        --------
        >>> env = {
        ...     'DEMO_DATABASE__HOST': 'db.example.com',
        ...     'DEMO_DATABASE__PORT': '5432',
        ...     'DEMO_DEBUG': 'true',
        ... }
        >>> source = EnvOverrideSource('DEMO', environ=env)
        >>> source.lookup('database')
        {'database': {'host': 'db.example.com', 'port': 5432}}
        >>> source.lookup('debug')
        {'debug': True}
        >>> source.lookup('mail') is None
        True
        """

        wanted = key.lower()
        collected: dict[str, object] = {}
        for name, value in self._environ.items():
            if self._prefix and not name.startswith(self._prefix):
                continue
            stripped = name[len(self._prefix) :] if self._prefix else name
            if stripped.split("__", 1)[0].lower() != wanted:
                continue
            try:
                assign_nested(collected, stripped, _coerce(value))
            except InvalidFormat as exc:
                log_error("env_override_conflict", **make_event("env", key, {"variable": name, "error": str(exc)}))
                raise
        if not collected:
            return None
        log_debug("env_override_found", **make_event("env", key, {"variables": len(collected)}))
        return {key: next(iter(collected.values()))}


def assign_nested(target: dict[str, object], key: str, value: object) -> None:
    """Assign ``value`` inside ``target`` using ``__`` as a nesting delimiter.

    Examples
    --------
    >>> data: dict[str, object] = {}
    >>> assign_nested(data, 'SERVICE__TIMEOUT', 5)
    >>> data
    {'service': {'timeout': 5}}
    """

    parts = key.split("__")
    cursor = target
    for part in parts[:-1]:
        cursor = _ensure_child_mapping(cursor, part)
    final_key = _resolve_key(cursor, parts[-1])
    if isinstance(cursor.get(final_key), dict):
        raise InvalidFormat(f"Cannot override mapping with scalar for key {key}")
    cursor[final_key] = value


def _resolve_key(mapping: dict[str, object], key: str) -> str:
    """Return an existing key that matches ``key`` (case-insensitive) or a new lowercase key."""

    lower = key.lower()
    for existing in mapping.keys():
        if existing.lower() == lower:
            return existing
    return lower


def _ensure_child_mapping(mapping: dict[str, object], key: str) -> dict[str, object]:
    """Ensure ``mapping[key]`` is a ``dict``, creating it when absent."""

    resolved = _resolve_key(mapping, key)
    if resolved not in mapping:
        mapping[resolved] = {}
    child = mapping[resolved]
    if not isinstance(child, dict):
        raise InvalidFormat(f"Cannot override scalar with mapping for key {key}")
    return child


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('3.5'), _coerce('hello')
    (True, 10, 3.5, 'hello')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        return float(value)
    except ValueError:
        return value
