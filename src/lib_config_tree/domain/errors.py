"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by the configuration tree, the
adapters that feed it, and consuming applications. The hierarchy lives in the
domain layer so outer layers may depend on it without the tree depending on
them.

Contents
--------
* :class:`ConfigError` – umbrella base class for all configuration-related
  issues.
* :class:`UnsupportedOffset` – a key that is neither a string nor a
  non-negative integer was used to address a tree.
* :class:`InvalidFormat` – a source produced content that is not a mapping or
  could not be parsed.
* :class:`NotFound` – a requested configuration resource does not exist.

System Role
-----------
Loaders and override sources raise :class:`NotFound` and
:class:`InvalidFormat`; :class:`lib_config_tree.domain.tree.ConfigTree`
absorbs both and leaves its state unchanged. :class:`UnsupportedOffset` always
reaches the caller.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_config_tree``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """


class UnsupportedOffset(ConfigError, TypeError):
    """Raised when a tree is addressed with a key it cannot store.

    Why
    ----
    Keys are strings or non-negative integers. Anything else (``True``,
    ``-1``, ``3.5``, tuples) is a programming error and fails before any state
    changes.

    Examples
    --------
    >>> raise UnsupportedOffset(True)
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.UnsupportedOffset: Unsupported offset: True
    """

    def __init__(self, offset: object) -> None:
        super().__init__(f"Unsupported offset: {offset!r}")
        self.offset = offset


class InvalidFormat(ConfigError):
    """Raised when a source cannot be turned into a configuration mapping.

    Why
    ----
    Distinguish between missing files and malformed content so callers can warn
    about the former and quietly ignore the latter.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`), dotenv
    parsing, and conflicting environment variables.
    """


class NotFound(ConfigError):
    """Represents missing-but-optional resources (files, directories, etc.).

    Why
    ----
    Allow loaders to signal absence without aborting the lookup that triggered
    them. The tree treats this as a non-fatal condition.
    """
