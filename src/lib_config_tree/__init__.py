"""Public package surface for the lazily populated configuration tree.

``read_config`` wires the default adapters into a root
:class:`~lib_config_tree.domain.tree.ConfigTree`; the tree, its helpers, the
error taxonomy, and the logging hooks are re-exported so consumers never import
from internal layers.
"""

from __future__ import annotations

from .core import (
    ConfigError,
    ConfigTree,
    InvalidFormat,
    NotFound,
    UnsupportedOffset,
    build_override_source,
    convert_mapping,
    default_env_prefix,
    merge_into,
    read_config,
)
from .observability import bind_trace_id, get_logger

__all__ = [
    "ConfigError",
    "ConfigTree",
    "InvalidFormat",
    "NotFound",
    "UnsupportedOffset",
    "bind_trace_id",
    "build_override_source",
    "convert_mapping",
    "default_env_prefix",
    "get_logger",
    "merge_into",
    "read_config",
]
