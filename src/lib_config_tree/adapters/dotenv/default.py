"""`.env` override adapter.

Purpose
-------
Implement :class:`lib_config_tree.application.ports.OverrideSource` on top of a
``.env`` file found by walking up from a start directory. The file is parsed
once, on the first lookup, and then serves every key it defines.

Contents
--------
* :class:`DotEnvOverrideSource` – lazy, cached override source.
* Helper functions (`_iter_candidates`, `_parse_dotenv`, `_strip_quotes`) that
  perform discovery and parsing. Nesting reuses
  :func:`lib_config_tree.adapters.env.default.assign_nested` so ``.env`` keys
  mirror environment variable semantics.

System Role
-----------
Chained behind :class:`~lib_config_tree.adapters.env.default.EnvOverrideSource`
by :func:`lib_config_tree.core.read_config`: real environment variables win
over ``.env`` entries.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_error, make_event
from ..env.default import assign_nested


class DotEnvOverrideSource:
    """Serve overrides from the first ``.env`` file discovered in the search order.

    Why
    ----
    `.env` files supply secrets and developer overrides next to a project. They
    need deterministic discovery and the same nesting semantics as environment
    variables.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / '.env'
    >>> _ = path.write_text('SERVICE__TOKEN=secret', encoding='utf-8')
    >>> source = DotEnvOverrideSource(tmp.name)
    >>> source.lookup('service')
    {'service': {'token': 'secret'}}
    >>> source.last_loaded_path == str(path)
    True
    >>> tmp.cleanup()
    """

    def __init__(self, start_dir: str | None = None, *, extras: Iterable[str] | None = None) -> None:
        """Initialise the source with a start directory and optional *extras*.

        Parameters
        ----------
        start_dir:
            Directory that seeds the upward search. Defaults to the working
            directory at first lookup.
        extras:
            Additional absolute paths appended to the search order.
        """

        self._start_dir = start_dir
        self._extras = [Path(p) for p in extras or []]
        self._data: dict[str, object] | None = None
        self.last_loaded_path: str | None = None

    def lookup(self, key: str) -> Mapping[str, object] | None:
        """Return ``{key: value}`` when the ``.env`` file defines *key* (case-insensitive)."""

        data = self._load()
        wanted = key.lower()
        for existing, value in data.items():
            if existing.lower() == wanted:
                return {key: value}
        return None

    def _load(self) -> dict[str, object]:
        """Parse the first discovered file once and cache the result.

        A malformed file raises :class:`InvalidFormat` on every lookup until it
        is fixed; it is not cached.
        """

        if self._data is not None:
            return self._data
        candidates = list(_iter_candidates(self._start_dir)) + self._extras
        for candidate in candidates:
            if candidate.is_file():
                data = _parse_dotenv(candidate)
                self.last_loaded_path = str(candidate)
                log_debug("dotenv_loaded", **make_event("dotenv", None, {"path": self.last_loaded_path}))
                self._data = data
                return data
        log_debug("dotenv_not_found", **make_event("dotenv", None))
        self._data = {}
        return self._data


def _iter_candidates(start_dir: str | None) -> Iterable[Path]:
    """Yield candidate dotenv paths walking from ``start_dir`` to filesystem root.

    Examples
    --------
    >>> next(_iter_candidates('.')).name
    '.env'
    """

    base = Path(start_dir) if start_dir else Path.cwd()
    for directory in [base, *base.parents]:
        yield directory / ".env"


def _parse_dotenv(path: Path) -> dict[str, object]:
    """Parse ``path`` into a nested dictionary, raising ``InvalidFormat`` on malformed lines."""

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log_error("dotenv_unreadable", source="dotenv", path=str(path), error=str(exc))
        raise InvalidFormat(f"Cannot read {path}: {exc}") from exc
    result: dict[str, object] = {}
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        if "=" not in line:
            log_error("dotenv_invalid_line", source="dotenv", path=str(path), line=line_number)
            raise InvalidFormat(f"Malformed line {line_number} in {path}")
        key, value = line.split("=", 1)
        assign_nested(result, key.strip(), _strip_quotes(value.strip()))
    return result


def _strip_quotes(value: str) -> str:
    """Trim surrounding quotes and inline comments from ``value``.

    Examples
    --------
    >>> _strip_quotes('"token"')
    'token'
    >>> _strip_quotes("value # comment")
    'value'
    """

    if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
        return value[1:-1]
    if value.startswith("#"):
        return ""
    if " #" in value:
        return value.split(" #", 1)[0].strip()
    return value
