"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts a :class:`~lib_config_tree.domain.tree.ConfigTree`
relies on, so the tree can lazily populate itself without knowing where
configuration actually lives.

Contents
--------
* :class:`FileLoader` – turns an identifier into a nested mapping.
* :class:`DocumentLoader` – parses one structured file by path.
* :class:`OverrideSource` – supplies externally defined overrides per key.

System Role
-----------
These protocols enforce Dependency Inversion (DIP). Adapters implement them and
the composition root injects them into the root tree.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable


@runtime_checkable
class FileLoader(Protocol):
    """Resolve a configuration identifier into a mapping.

    Why
    ----
    The tree asks for ``"database"`` and should not care whether that becomes
    ``/etc/demo/conf.database.toml`` or a fixture in a test.

    Contract
    --------
    Raise :class:`~lib_config_tree.domain.errors.NotFound` when nothing matches
    the identifier and :class:`~lib_config_tree.domain.errors.InvalidFormat`
    when the match is not a mapping.
    """

    def load(self, identifier: str) -> Mapping[str, object]:
        """Return the mapping identified by *identifier*."""


@runtime_checkable
class DocumentLoader(Protocol):
    """Parse a structured configuration file into a mapping.

    Why
    ----
    Segregate parsing concerns (TOML/JSON/YAML) from identifier resolution.
    """

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""


@runtime_checkable
class OverrideSource(Protocol):
    """Supply override values for a single top-level key.

    Why
    ----
    Operators override configuration through the environment (or any other
    channel) without touching files. The tree consults this port before the
    file loader.

    Contract
    --------
    Return the single-key mapping ``{key: value}`` to merge, or ``None`` when no
    override exists for *key*.
    """

    def lookup(self, key: str) -> Mapping[str, object] | None:
        """Return the override mapping for *key* or ``None``."""
