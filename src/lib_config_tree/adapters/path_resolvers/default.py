"""Filesystem include-path resolution.

Purpose
-------
Encapsulate the OS-specific rules that decide where configuration files live.
The adapter is the only component that understands filesystem conventions; it
hands an ordered list of directories to
:class:`~lib_config_tree.adapters.file_loaders.include_path.IncludePathFileLoader`.

Contents
--------
* :class:`DefaultPathResolver` – yields the include path for a vendor/app/slug.

System Role
-----------
Feeds deterministic directory lists into :func:`lib_config_tree.core.read_config`.
It respects environment overrides (for tests and custom deployments) while
emitting observability events about the directories it found.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Iterable, Mapping

from ...observability import log_debug
from ..env.default import default_env_prefix


class DefaultPathResolver:
    """Resolve the ordered include path for one application.

    Why
    ----
    Centralise directory discovery so the composition root stays
    platform-agnostic and easy to test.

    Order
    -----
    1. ``<PREFIX>_CONFIG_PATH`` entries (``os.pathsep`` separated).
    2. The working directory.
    3. The per-user configuration directory.
    4. The system-wide configuration directory.

    Directories that do not exist are skipped; duplicates keep their first
    position.
    """

    def __init__(
        self,
        *,
        vendor: str,
        app: str,
        slug: str,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        platform: str | None = None,
    ) -> None:
        """Store context required to resolve filesystem locations.

        Parameters
        ----------
        vendor / app / slug:
            Naming context injected into platform-specific directory structures.
        cwd:
            Working directory placed on the include path.
        env:
            Optional environment mapping that overrides ``os.environ`` values
            (useful for deterministic tests).
        platform:
            Platform identifier (``sys.platform`` clone). Defaults to the
            current interpreter platform.
        """

        self.vendor = vendor
        self.application = app
        self.slug = slug
        self.cwd = cwd or Path.cwd()
        self.env = {**os.environ, **(env or {})}
        self.platform = platform or sys.platform

    def include_path(self) -> list[str]:
        """Return existing directories in lookup order.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> etc = Path(tmp.name) / 'etc'
        >>> (etc / 'demo').mkdir(parents=True)
        >>> resolver = DefaultPathResolver(
        ...     vendor='Acme', app='Demo', slug='demo', cwd=Path(tmp.name),
        ...     env={'LIB_CONFIG_TREE_ETC': str(etc), 'XDG_CONFIG_HOME': str(Path(tmp.name) / 'xdg')},
        ...     platform='linux',
        ... )
        >>> [Path(p).name for p in resolver.include_path()] == [Path(tmp.name).name, 'demo']
        True
        >>> tmp.cleanup()
        """

        candidates = [*self._explicit(), self.cwd, *self._user(), *self._app()]
        seen: set[Path] = set()
        resolved: list[str] = []
        for candidate in candidates:
            if candidate in seen or not candidate.is_dir():
                continue
            seen.add(candidate)
            resolved.append(str(candidate))
        log_debug("include_path_resolved", source="path", identifier=None, count=len(resolved))
        return resolved

    @property
    def _is_linux(self) -> bool:
        return self.platform.startswith("linux")

    @property
    def _is_macos(self) -> bool:
        return self.platform == "darwin"

    @property
    def _is_windows(self) -> bool:
        return self.platform.startswith("win")

    def _explicit(self) -> Iterable[Path]:
        """Yield directories listed in ``<PREFIX>_CONFIG_PATH``."""

        raw = self.env.get(f"{default_env_prefix(self.slug)}_CONFIG_PATH", "")
        for entry in raw.split(os.pathsep):
            if entry.strip():
                yield Path(entry.strip())

    def _user(self) -> Iterable[Path]:
        """Yield the per-user directory (XDG, Application Support, AppData)."""

        if self._is_linux:
            xdg = self.env.get("XDG_CONFIG_HOME")
            base = Path(xdg) if xdg else Path.home() / ".config"
            yield base / self.slug
        elif self._is_macos:
            home_default = Path.home() / "Library/Application Support"
            yield Path(self.env.get("LIB_CONFIG_TREE_MAC_HOME_ROOT", home_default)) / self.vendor / self.application
        elif self._is_windows:
            appdata = Path(
                self.env.get("LIB_CONFIG_TREE_APPDATA", self.env.get("APPDATA", Path.home() / "AppData" / "Roaming"))
            )
            local = Path(
                self.env.get(
                    "LIB_CONFIG_TREE_LOCALAPPDATA", self.env.get("LOCALAPPDATA", Path.home() / "AppData" / "Local")
                )
            )
            yield appdata / self.vendor / self.application
            yield local / self.vendor / self.application

    def _app(self) -> Iterable[Path]:
        """Yield the system-wide directory (``/etc``, Application Support, ProgramData)."""

        if self._is_linux:
            yield Path(self.env.get("LIB_CONFIG_TREE_ETC", "/etc")) / self.slug
        elif self._is_macos:
            default_root = Path("/Library/Application Support")
            yield Path(self.env.get("LIB_CONFIG_TREE_MAC_APP_ROOT", default_root)) / self.vendor / self.application
        elif self._is_windows:
            program_data = Path(
                self.env.get("LIB_CONFIG_TREE_PROGRAMDATA", self.env.get("ProgramData", r"C:\ProgramData"))
            )
            yield program_data / self.vendor / self.application
