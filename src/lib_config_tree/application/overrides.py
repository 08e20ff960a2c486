"""Pure override sources composed by the application layer.

Purpose
-------
Provide :class:`~lib_config_tree.application.ports.OverrideSource`
implementations that need no I/O: a static mapping injected at construction and
a chain that consults several sources in precedence order.

Contents
    - ``MappingOverrideSource``: serves overrides from a plain mapping.
    - ``ChainedOverrideSource``: returns the first override any source offers.

System Role
-----------
:mod:`lib_config_tree.core` puts explicit overrides in a
:class:`MappingOverrideSource` and chains it ahead of the environment and dotenv
adapters with :class:`ChainedOverrideSource`.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..domain.errors import InvalidFormat
from .ports import OverrideSource


class MappingOverrideSource:
    """Serve overrides from a mapping keyed by top-level configuration key.

    Examples
    --------
    >>> source = MappingOverrideSource({"missing": {"two": "Overridden string"}})
    >>> source.lookup("missing")
    {'missing': {'two': 'Overridden string'}}
    >>> source.lookup("other") is None
    True
    """

    def __init__(self, overrides: Mapping[str, object]) -> None:
        self._overrides = dict(overrides)

    def lookup(self, key: str) -> Mapping[str, object] | None:
        if key not in self._overrides:
            return None
        return {key: self._overrides[key]}


class ChainedOverrideSource:
    """Consult *sources* in order and return the first override found.

    Why
    ----
    Environment variables outrank ``.env`` files, which outrank nothing. Chaining
    keeps that precedence outside the tree. A malformed source (conflicting
    variables, an unreadable ``.env``) only loses its own turn.

    Examples
    --------
    >>> env = MappingOverrideSource({"service": {"timeout": 20}})
    >>> dotenv = MappingOverrideSource({"service": {"timeout": 15}, "feature": True})
    >>> chain = ChainedOverrideSource(env, dotenv)
    >>> chain.lookup("service")
    {'service': {'timeout': 20}}
    >>> chain.lookup("feature")
    {'feature': True}
    """

    def __init__(self, *sources: OverrideSource) -> None:
        self._sources = sources

    def lookup(self, key: str) -> Mapping[str, object] | None:
        """Return the first override found; a source raising ``InvalidFormat`` is skipped."""

        for source in self._sources:
            try:
                found = source.lookup(key)
            except InvalidFormat:
                continue
            if found is not None:
                return found
        return None
