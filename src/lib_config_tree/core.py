"""Composition root for ``lib_config_tree``.

Purpose
-------
Provide the single entry point that wires path resolution, include-path file
loading, and the override chain (explicit mapping → environment → ``.env``)
into a root :class:`~lib_config_tree.domain.tree.ConfigTree`. Nothing is read
here; files and overrides are consulted lazily by the tree.

Contents
--------
* :func:`read_config` – high-level API returning a root tree.
* :func:`build_override_source` – the precedence chain used by the root tree.

System Role
-----------
This module connects adapters (filesystem, environment, dotenv) with the domain
tree while emitting structured observability signals. It is the canonical
location for adjusting override precedence or wiring new adapters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, Sequence

from .adapters.dotenv.default import DotEnvOverrideSource
from .adapters.env.default import EnvOverrideSource, default_env_prefix
from .adapters.file_loaders.include_path import IncludePathFileLoader
from .adapters.path_resolvers.default import DefaultPathResolver
from .application.overrides import ChainedOverrideSource, MappingOverrideSource
from .application.ports import OverrideSource
from .domain.errors import ConfigError, InvalidFormat, NotFound, UnsupportedOffset
from .domain.tree import ConfigTree, convert_mapping, merge_into
from .observability import bind_trace_id, log_info, make_event


def read_config(
    *,
    vendor: str,
    app: str,
    slug: str,
    initial: Mapping[str, Any] | None = None,
    overrides: Mapping[str, Any] | None = None,
    search_dirs: Iterable[str | Path] | None = None,
    prefer: Sequence[str] | None = None,
    start_dir: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> ConfigTree:
    """Return a root :class:`ConfigTree` that autoloads from files and overrides.

    Why
    ----
    Consumers need one call that hides adapter wiring and precedence rules,
    while still paying for configuration only when a key is first read.

    Parameters
    ----------
    vendor / app / slug:
        Naming context propagated to the path resolver and the environment
        prefix (``slug`` → ``SLUG_``).
    initial:
        Bootstrap mapping present before any autoload.
    overrides:
        In-process overrides outranking environment variables and ``.env``.
    search_dirs:
        Explicit include path. Defaults to the resolver's platform directories.
    prefer:
        Preferred file suffixes (e.g. ``("yaml", "toml")``) when one directory
        holds several formats for the same identifier.
    start_dir:
        Working directory for the include path and the ``.env`` upward search.
    environ:
        Environment mapping; defaults to :data:`os.environ`.

    Side Effects
    ------------
    Clears the active trace identifier via :func:`bind_trace_id` and emits a
    ``configuration_root_ready`` info event.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> _ = (Path(tmp.name) / 'conf.service.toml').write_text('[service]\\nname = "demo"\\n', encoding='utf-8')
    >>> config = read_config(vendor='Acme', app='Demo', slug='demo', search_dirs=[tmp.name], environ={}, start_dir=tmp.name)
    >>> config['service']['name']
    'demo'
    >>> sorted(config.loaded_keys)
    ['service']
    >>> tmp.cleanup()
    """

    bind_trace_id(None)
    if search_dirs is None:
        resolver = DefaultPathResolver(
            vendor=vendor,
            app=app,
            slug=slug,
            cwd=Path(start_dir) if start_dir else None,
            env=dict(environ) if environ is not None else None,
        )
        search_dirs = resolver.include_path()
    file_loader = IncludePathFileLoader(search_dirs, prefer=prefer)
    override = build_override_source(slug=slug, overrides=overrides, start_dir=start_dir, environ=environ)
    tree = ConfigTree(initial, is_root=True, file_loader=file_loader, override=override)
    log_info(
        "configuration_root_ready",
        **make_event("core", None, {"search_path": file_loader.search_dirs, "entries": tree.size()}),
    )
    return tree


def build_override_source(
    *,
    slug: str,
    overrides: Mapping[str, Any] | None = None,
    start_dir: str | None = None,
    environ: Mapping[str, str] | None = None,
) -> OverrideSource:
    """Return the override chain consulted by the root tree before files.

    Precedence: explicit *overrides*, then ``<SLUG>_*`` environment variables,
    then the nearest ``.env`` file.

    Examples
    --------
    >>> source = build_override_source(slug='demo', overrides={'feature': True}, environ={'DEMO_FEATURE': 'false'})
    >>> source.lookup('feature')
    {'feature': True}
    """

    sources: list[OverrideSource] = []
    if overrides:
        sources.append(MappingOverrideSource(overrides))
    sources.append(EnvOverrideSource(default_env_prefix(slug), environ=environ))
    sources.append(DotEnvOverrideSource(start_dir))
    return ChainedOverrideSource(*sources)


__all__ = [
    "ConfigTree",
    "ConfigError",
    "InvalidFormat",
    "NotFound",
    "UnsupportedOffset",
    "build_override_source",
    "convert_mapping",
    "default_env_prefix",
    "merge_into",
    "read_config",
]
