"""Identifier-based file loader walking an include path.

Purpose
-------
Implement :class:`lib_config_tree.application.ports.FileLoader`: given an
identifier such as ``"database"``, find ``conf.database.<ext>`` in the first
directory of the include path that has one and parse it with the matching
structured loader.

Contents
--------
* :data:`FILE_PREFIX` – prefix every configuration file name starts with.
* :class:`IncludePathFileLoader` – resolves identifiers and delegates parsing.
* :func:`_order_suffixes` – stable ordering of suffixes by caller preference.

System Role
-----------
Constructed by :func:`lib_config_tree.core.read_config` from the directories
yielded by :class:`~lib_config_tree.adapters.path_resolvers.default.DefaultPathResolver`
and injected into the root tree, which calls it for explicit loads and on
autoload misses.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping, Sequence

from ...domain.errors import NotFound
from ...observability import log_debug, log_warning, make_event
from .structured import SUFFIX_FORMATS, StructuredFileLoader

FILE_PREFIX = "conf."


class IncludePathFileLoader:
    """Resolve configuration identifiers against an ordered list of directories.

    Why
    ----
    Deployments keep one file per configuration area (``conf.database.toml``,
    ``conf.mail.yaml``) and stack directories so a project-local file shadows
    the system-wide one. The first match wins; files are never combined.

    Parameters
    ----------
    search_dirs:
        Directories searched in order.
    prefer:
        Optional sequence of preferred suffixes (e.g. ``("yaml", "toml")``)
        deciding which format wins when one directory holds several.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> _ = (Path(tmp.name) / 'conf.load.json').write_text('{"load": {"one": "Value"}}', encoding='utf-8')
    >>> loader = IncludePathFileLoader([tmp.name])
    >>> loader.load('load')["load"]["one"]
    'Value'
    >>> tmp.cleanup()
    """

    def __init__(self, search_dirs: Iterable[str | Path], *, prefer: Sequence[str] | None = None) -> None:
        self._search_dirs = [Path(directory) for directory in search_dirs]
        self._suffixes = _order_suffixes(SUFFIX_FORMATS, prefer)

    @property
    def search_dirs(self) -> list[str]:
        """Return the include path as strings, in lookup order."""

        return [str(directory) for directory in self._search_dirs]

    def resolve(self, identifier: str) -> Path | None:
        """Return the file *identifier* refers to, or ``None`` when nothing matches.

        Identifiers containing path separators or ``..`` never resolve so a key
        cannot reach outside the include path.
        """

        if not _is_plain_identifier(identifier):
            return None
        for directory in self._search_dirs:
            for suffix in self._suffixes:
                candidate = directory / f"{FILE_PREFIX}{identifier}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    def load(self, identifier: str) -> Mapping[str, object]:
        """Return the mapping stored in the file *identifier* resolves to.

        Raises
        ------
        NotFound
            When no directory holds a matching file. A
            ``config_file_not_found`` warning naming the identifier and the
            include path is emitted first.
        InvalidFormat
            When the matching file cannot be parsed or is not a mapping.
        """

        path = self.resolve(identifier)
        if path is None:
            search_path = self.search_dirs
            log_warning(
                "config_file_not_found",
                **make_event("file", identifier, {"search_path": search_path}),
            )
            raise NotFound(
                f"Failed opening '{FILE_PREFIX}{identifier}.*' for inclusion (search path: {search_path})"
            )
        log_debug("config_file_resolved", **make_event("file", identifier, {"path": str(path)}))
        return StructuredFileLoader.for_path(path).load(str(path))


def _is_plain_identifier(identifier: str) -> bool:
    """Return ``True`` when *identifier* names a file, not a path.

    Examples
    --------
    >>> _is_plain_identifier('database'), _is_plain_identifier('../etc/passwd'), _is_plain_identifier('')
    (True, False, False)
    """

    if not identifier or ".." in identifier:
        return False
    return "/" not in identifier and "\\" not in identifier


def _order_suffixes(suffixes: Iterable[str], prefer: Sequence[str] | None) -> list[str]:
    """Order *suffixes* so preferred ones come first (stable sort).

    Examples
    --------
    >>> _order_suffixes([".toml", ".json", ".yaml"], ["yaml", ".json"])
    ['.yaml', '.json', '.toml']
    """

    suffix_list = list(suffixes)
    if not prefer:
        return suffix_list
    ranking = {value.lower().lstrip("."): idx for idx, value in enumerate(prefer)}
    return sorted(suffix_list, key=lambda suffix: ranking.get(suffix.lstrip("."), len(ranking)))
