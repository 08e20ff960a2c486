"""Shared fixtures for the test suite.

Provides a filesystem sandbox that mirrors the include-path layout of each
platform, plus recording fakes for the tree's collaborators so tests can assert
how often files and overrides were consulted.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from lib_config_tree.domain.errors import NotFound

BASE_CONFIG: dict[str, Any] = {"test1": "String", "test2": {"test3": 1, "test4": False}}

FIXTURE_FILES: dict[str, Any] = {
    "correct": {"load": {"one": "Value", "two": "String"}},
    "overwrite": {"test1": "Value"},
    "merge": {"test2": {"test5": "Value"}},
    "not_array": "not a mapping",
    "autoload": {"autoload": {"one": "Value"}},
}


class RecordingFileLoader:
    """FileLoader fake serving payloads from a dict and recording every call.

    A payload that is an exception instance is raised instead of returned.
    """

    def __init__(self, files: Mapping[str, Any] | None = None) -> None:
        self.files = dict(FIXTURE_FILES if files is None else files)
        self.calls: list[str] = []

    def load(self, identifier: str) -> Any:
        self.calls.append(identifier)
        if identifier not in self.files:
            raise NotFound(f"conf.{identifier} not found")
        payload = self.files[identifier]
        if isinstance(payload, Exception):
            raise payload
        return payload


class RecordingOverrideSource:
    """OverrideSource fake answering from a dict and recording every lookup."""

    def __init__(self, overrides: Mapping[str, Any] | None = None) -> None:
        self.overrides = dict(overrides or {})
        self.calls: list[str] = []

    def lookup(self, key: str) -> Mapping[str, Any] | None:
        self.calls.append(key)
        if key not in self.overrides:
            return None
        return {key: self.overrides[key]}


@dataclass
class ConfigSandbox:
    """Temporary include-path layout for one vendor/app/slug on one platform."""

    vendor: str
    app: str
    slug: str
    platform: str
    start_dir: Path
    roots: dict[str, Path]
    env: dict[str, str] = field(default_factory=dict)

    def write(self, layer: str, relative: str, *, content: str) -> Path:
        """Write *content* below the *layer* root (``"app"``, ``"user"``, ``"cwd"``)."""

        path = self.roots[layer] / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def apply_env(self, monkeypatch) -> None:
        for key, value in self.env.items():
            monkeypatch.setenv(key, value)


def create_config_sandbox(
    tmp_path: Path,
    *,
    vendor: str,
    app: str,
    slug: str,
    platform: str | None = None,
) -> ConfigSandbox:
    """Return a sandbox whose ``env`` redirects every platform root into *tmp_path*."""

    platform = platform or sys.platform
    env: dict[str, str] = {}
    if platform.startswith("win"):
        program_data = tmp_path / "ProgramData"
        appdata = tmp_path / "AppData" / "Roaming"
        env["LIB_CONFIG_TREE_PROGRAMDATA"] = str(program_data)
        env["LIB_CONFIG_TREE_APPDATA"] = str(appdata)
        env["LIB_CONFIG_TREE_LOCALAPPDATA"] = str(tmp_path / "AppData" / "Local")
        app_dir = program_data / vendor / app
        user_dir = appdata / vendor / app
    elif platform == "darwin":
        app_support = tmp_path / "Library" / "Application Support"
        home_support = tmp_path / "HomeLibrary" / "Application Support"
        env["LIB_CONFIG_TREE_MAC_APP_ROOT"] = str(app_support)
        env["LIB_CONFIG_TREE_MAC_HOME_ROOT"] = str(home_support)
        app_dir = app_support / vendor / app
        user_dir = home_support / vendor / app
    else:
        etc_root = tmp_path / "etc"
        xdg_root = tmp_path / "xdg"
        env["LIB_CONFIG_TREE_ETC"] = str(etc_root)
        env["XDG_CONFIG_HOME"] = str(xdg_root)
        app_dir = etc_root / slug
        user_dir = xdg_root / slug
    start_dir = tmp_path / "project"
    for directory in (app_dir, user_dir, start_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return ConfigSandbox(
        vendor=vendor,
        app=app,
        slug=slug,
        platform=platform,
        start_dir=start_dir,
        roots={"app": app_dir, "user": user_dir, "cwd": start_dir},
        env=env,
    )
