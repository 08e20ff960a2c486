from __future__ import annotations

from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from lib_config_tree.adapters.dotenv.default import DotEnvOverrideSource
from lib_config_tree.domain.errors import InvalidFormat


def test_dotenv_parses_nested(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "DB__HOST=localhost\nDB__PASSWORD='s3cret'\nexport FEATURE=true # comment\n",
        encoding="utf-8",
    )
    source = DotEnvOverrideSource(str(tmp_path))
    assert source.lookup("db") == {"db": {"host": "localhost", "password": "s3cret"}}
    assert source.lookup("FEATURE") == {"FEATURE": "true"}
    assert source.last_loaded_path == str(env_file)


def test_dotenv_found_in_parent_directory(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("SERVICE__TOKEN=abc\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert DotEnvOverrideSource(str(nested)).lookup("service") == {"service": {"token": "abc"}}


def test_dotenv_extras_are_searched_last(tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    extra = tmp_path / "extra.env"
    extra.write_text("MAIL__PORT=25\n", encoding="utf-8")
    source = DotEnvOverrideSource(str(project), extras=[str(extra)])
    assert source.lookup("mail") == {"mail": {"port": "25"}}


def test_dotenv_is_parsed_once(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("FIRST=1\n", encoding="utf-8")
    source = DotEnvOverrideSource(str(tmp_path))
    assert source.lookup("first") == {"first": "1"}
    env_file.write_text("SECOND=2\n", encoding="utf-8")
    assert source.lookup("second") is None
    assert source.lookup("first") == {"first": "1"}


def test_dotenv_malformed_line(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("VALID=1\nnot a pair\n", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="Malformed line 2"):
        DotEnvOverrideSource(str(tmp_path)).lookup("valid")


SEGMENT = st.text(min_size=1, max_size=5, alphabet=st.characters(min_codepoint=65, max_codepoint=90))
DOTENV_VALUE = st.text(min_size=1, max_size=8, alphabet=st.characters(min_codepoint=97, max_codepoint=122))


def _no_prefix(paths):
    seen = []
    for parts in paths:
        for existing in seen:
            if parts[: len(existing)] == existing or existing[: len(parts)] == parts:
                return False
        seen.append(parts)
    return True


@st.composite
def dotenv_entries(draw):
    path_lists = draw(st.lists(st.lists(SEGMENT, min_size=1, max_size=3), min_size=1, max_size=5).filter(_no_prefix))
    values = draw(st.lists(DOTENV_VALUE, min_size=len(path_lists), max_size=len(path_lists)))
    return {"__".join(parts): value for parts, value in zip(path_lists, values)}


@settings(suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(entries=dotenv_entries())
def test_dotenv_handles_random_namespace(entries, tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    lines = [f"{key}={value}" for key, value in entries.items()]
    env_file.write_text("\n".join(lines) + "\n", encoding="utf-8")

    source = DotEnvOverrideSource(str(tmp_path))

    for raw_key, value in entries.items():
        parts = [part.lower() for part in raw_key.split("__")]
        found = source.lookup(parts[0])
        assert found is not None
        cursor = found[parts[0]]
        for part in parts[1:]:
            assert isinstance(cursor, dict)
            cursor = cursor[part]
        assert cursor == value


def test_dotenv_not_utf8_is_invalid(tmp_path: Path) -> None:
    """An undecodable file surfaces as InvalidFormat, like any malformed ``.env``."""

    (tmp_path / ".env").write_bytes(b"SERVICE__TOKEN=\xff\xfe\n")
    with pytest.raises(InvalidFormat, match="Cannot read"):
        DotEnvOverrideSource(str(tmp_path)).lookup("service")
