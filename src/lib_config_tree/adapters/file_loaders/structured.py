"""Structured document parsing for ``conf.<identifier>`` files.

Purpose
-------
Turn one TOML, JSON, or YAML file into a mapping the configuration tree can
merge. Parsing is dispatched on the file suffix; reading, decoding, and key
validation are shared so every format fails the same way.

Contents
--------
* :class:`StructuredFileLoader` – :class:`~lib_config_tree.application.ports.DocumentLoader`
  for one format.
* :data:`SUFFIX_FORMATS` – suffix → format name, in default lookup preference.
* :func:`validate_keys` – rejects keys a tree cannot address.

System Role
-----------
:class:`~lib_config_tree.adapters.file_loaders.include_path.IncludePathFileLoader`
resolves an identifier to a path and hands it to the loader for its suffix.
Every failure surfaces as :class:`NotFound` or :class:`InvalidFormat`, which the
tree absorbs.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Mapping, NoReturn

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[assignment]

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


def _parse_toml(text: str) -> Any:
    return tomllib.loads(text)


def _parse_json(text: str) -> Any:
    return json.loads(text)


def _parse_yaml(text: str) -> Any:
    if yaml is None:
        raise NotFound("PyYAML is required for YAML configuration support")
    data = yaml.safe_load(text)  # type: ignore[attr-defined]
    return {} if data is None else data


def _parse_errors() -> tuple[type[BaseException], ...]:
    errors: list[type[BaseException]] = [tomllib.TOMLDecodeError, json.JSONDecodeError]
    if yaml is not None:
        errors.append(yaml.YAMLError)  # type: ignore[attr-defined]
    return tuple(errors)


_PARSERS: dict[str, Callable[[str], Any]] = {
    "toml": _parse_toml,
    "json": _parse_json,
    "yaml": _parse_yaml,
}

SUFFIX_FORMATS: dict[str, str] = {
    ".toml": "toml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
}


class StructuredFileLoader:
    """Parse files of one structured format into mappings.

    Why
    ----
    A configuration file is only useful to the tree when it decodes, holds a
    mapping at the top level, and uses keys the tree can address. Checking all
    three here keeps malformed input out of the domain layer.

    Parameters
    ----------
    fmt:
        ``"toml"``, ``"json"``, or ``"yaml"``.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> path = Path(tmp.name) / 'conf.demo.toml'
    >>> _ = path.write_text('[demo]\\nkey = "value"\\n', encoding='utf-8')
    >>> StructuredFileLoader.for_path(path).load(str(path))
    {'demo': {'key': 'value'}}
    >>> tmp.cleanup()
    """

    def __init__(self, fmt: str) -> None:
        if fmt not in _PARSERS:
            raise ValueError(f"Unsupported configuration format: {fmt!r}")
        self.format = fmt

    @classmethod
    def for_path(cls, path: str | Path) -> StructuredFileLoader:
        """Return the loader matching the suffix of *path*."""

        suffix = Path(path).suffix.lower()
        if suffix not in SUFFIX_FORMATS:
            raise ValueError(f"No configuration format for suffix {suffix!r}")
        return cls(SUFFIX_FORMATS[suffix])

    def load(self, path: str) -> Mapping[str, object]:
        """Return the mapping stored in *path*.

        Raises
        ------
        NotFound
            When *path* is not a file (or YAML support is not installed).
        InvalidFormat
            When the file cannot be read, is not UTF-8, fails to parse, is not
            a mapping, or uses keys a tree cannot address.
        """

        text = self._read_text(path)
        try:
            data = _PARSERS[self.format](text)
        except _parse_errors() as exc:
            self._fail(path, f"Invalid {self.format.upper()} in {path}: {exc}", exc)
        if not isinstance(data, Mapping):
            self._fail(path, f"File {path} did not produce a mapping")
        try:
            validate_keys(data)
        except InvalidFormat as exc:
            self._fail(path, f"File {path}: {exc}", exc)
        log_debug("config_file_loaded", source="file", path=path, format=self.format)
        return data

    def _read_text(self, path: str) -> str:
        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"Configuration file not found: {path}")
        try:
            payload = file_path.read_bytes()
            return payload.decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._fail(path, f"Cannot read {path}: {exc}", exc)

    def _fail(self, path: str, message: str, cause: BaseException | None = None) -> NoReturn:
        log_error("config_file_invalid", source="file", path=path, format=self.format, error=message)
        raise InvalidFormat(message) from cause


def validate_keys(data: Mapping[Any, Any], *, prefix: str = "") -> None:
    """Raise :class:`InvalidFormat` unless every nested key is a string or a non-negative integer.

    YAML turns unquoted ``on``/``off``/``yes``/``no`` into booleans and allows
    float or negative keys; none of them can be looked up in a tree.

    Examples
    --------
    >>> validate_keys({"feature": {"enabled": 1, 0: "first"}})
    >>> validate_keys({"feature": {True: 1}})
    Traceback (most recent call last):
    ...
    lib_config_tree.domain.errors.InvalidFormat: Unsupported key True at 'feature'
    """

    for key, value in data.items():
        if isinstance(key, bool) or not (isinstance(key, str) or (isinstance(key, int) and key >= 0)):
            raise InvalidFormat(f"Unsupported key {key!r} at {prefix or '<root>'!r}")
        if isinstance(value, Mapping):
            validate_keys(value, prefix=f"{prefix}.{key}" if prefix else str(key))
