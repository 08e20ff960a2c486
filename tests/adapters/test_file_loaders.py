from __future__ import annotations

import json
from pathlib import Path

import pytest

from lib_config_tree.adapters.file_loaders import structured as structured_module
from lib_config_tree.adapters.file_loaders.include_path import IncludePathFileLoader
from lib_config_tree.adapters.file_loaders.structured import StructuredFileLoader, validate_keys
from lib_config_tree.domain.errors import InvalidFormat, NotFound


def test_toml_loader(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[db]\nport = 5432\n")
    data = StructuredFileLoader("toml").load(str(path))
    assert data["db"]["port"] == 5432


def test_toml_loader_missing_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound):
        StructuredFileLoader("toml").load(str(tmp_path / "missing.toml"))


def test_toml_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[db\n")
    with pytest.raises(InvalidFormat):
        StructuredFileLoader("toml").load(str(path))


def test_json_loader_invalid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid}")
    with pytest.raises(InvalidFormat):
        StructuredFileLoader("json").load(str(path))


def test_json_loader_rejects_non_mapping(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(InvalidFormat, match="did not produce a mapping"):
        StructuredFileLoader("json").load(str(path))


def test_json_loader_valid(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"feature": True}), encoding="utf-8")
    data = StructuredFileLoader("json").load(str(path))
    assert data["feature"] is True


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_loader_handles_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("# empty file\n")
    assert StructuredFileLoader("yaml").load(str(path)) == {}


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_boolean_keys_are_rejected(tmp_path: Path) -> None:
    """Unquoted `on` parses to True in YAML, which no lookup can address."""

    path = tmp_path / "conf.feature.yaml"
    path.write_text("feature:\n  on: 1\n", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="Unsupported key True at 'feature'"):
        StructuredFileLoader("yaml").load(str(path))


@pytest.mark.skipif(structured_module.yaml is None, reason="PyYAML not available")
def test_yaml_quoted_keys_load(tmp_path: Path) -> None:
    path = tmp_path / "conf.feature.yaml"
    path.write_text("feature:\n  \"on\": 1\n  0: first\n", encoding="utf-8")
    assert StructuredFileLoader("yaml").load(str(path)) == {"feature": {"on": 1, 0: "first"}}


@pytest.mark.parametrize("key", [True, -2, 1.5, None, (1, 2)])
def test_validate_keys_rejects_unaddressable_keys(key) -> None:
    with pytest.raises(InvalidFormat):
        validate_keys({"outer": {"inner": {key: "value"}}})


def test_non_utf8_file_is_invalid(tmp_path: Path) -> None:
    path = tmp_path / "conf.service.toml"
    path.write_bytes(b"name = \"\xff\xfe\"\n")
    with pytest.raises(InvalidFormat, match="Cannot read"):
        StructuredFileLoader("toml").load(str(path))


def test_loader_for_path_dispatches_on_suffix(tmp_path: Path) -> None:
    assert StructuredFileLoader.for_path(tmp_path / "conf.a.YML").format == "yaml"
    assert StructuredFileLoader.for_path("conf.a.json").format == "json"
    with pytest.raises(ValueError):
        StructuredFileLoader.for_path("conf.a.ini")


def test_include_path_first_directory_wins(tmp_path: Path) -> None:
    local = tmp_path / "local"
    system = tmp_path / "system"
    local.mkdir()
    system.mkdir()
    (local / "conf.database.toml").write_text('[database]\nhost = "local"\n', encoding="utf-8")
    (system / "conf.database.toml").write_text('[database]\nhost = "system"\nport = 5432\n', encoding="utf-8")

    loader = IncludePathFileLoader([local, system])

    assert loader.load("database") == {"database": {"host": "local"}}
    assert loader.resolve("database") == local / "conf.database.toml"


def test_include_path_falls_through_to_later_directories(tmp_path: Path) -> None:
    empty = tmp_path / "empty"
    system = tmp_path / "system"
    empty.mkdir()
    system.mkdir()
    (system / "conf.mail.json").write_text('{"mail": {"port": 25}}', encoding="utf-8")

    loader = IncludePathFileLoader([str(empty), str(system)])

    assert loader.load("mail")["mail"]["port"] == 25
    assert loader.search_dirs == [str(empty), str(system)]


def test_include_path_prefer_orders_formats(tmp_path: Path) -> None:
    (tmp_path / "conf.service.toml").write_text('[service]\nformat = "toml"\n', encoding="utf-8")
    (tmp_path / "conf.service.json").write_text('{"service": {"format": "json"}}', encoding="utf-8")

    assert IncludePathFileLoader([tmp_path]).load("service")["service"]["format"] == "toml"
    assert IncludePathFileLoader([tmp_path], prefer=["json"]).load("service")["service"]["format"] == "json"


@pytest.mark.parametrize("identifier", ["../secret", "nested/name", "nested\\name", ""])
def test_include_path_rejects_path_like_identifiers(tmp_path: Path, identifier: str) -> None:
    (tmp_path / "conf.secret.toml").write_text("leak = true\n", encoding="utf-8")
    child = tmp_path / "child"
    child.mkdir()
    loader = IncludePathFileLoader([child])
    assert loader.resolve(identifier) is None
    with pytest.raises(NotFound):
        loader.load(identifier)


def test_include_path_missing_names_identifier(tmp_path: Path) -> None:
    loader = IncludePathFileLoader([tmp_path])
    with pytest.raises(NotFound, match="conf.not_exists"):
        loader.load("not_exists")


def test_include_path_propagates_invalid_format(tmp_path: Path) -> None:
    (tmp_path / "conf.not_array.json").write_text('"just a string"', encoding="utf-8")
    with pytest.raises(InvalidFormat):
        IncludePathFileLoader([tmp_path]).load("not_array")
