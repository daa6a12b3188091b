"""Tests for the command line commands."""

from io import StringIO
from json import dumps, loads
from pathlib import Path
from sqlite3 import connect
from typing import Any

import pytest

from schema_studio import cli


@pytest.fixture(name="output")
def captured_stdout(monkeypatch: pytest.MonkeyPatch) -> StringIO:
    """Replace the data stream written by the commands."""
    buffer = StringIO()
    monkeypatch.setattr(cli, "stdout", buffer)
    return buffer


@pytest.fixture(name="payload")
def model_payload() -> dict[str, Any]:
    """Minimal model with one table."""
    return {
        "version": 1,
        "schemas": [{"id": "s1", "name": "public"}],
        "tables": [
            {
                "id": "users",
                "schema_id": "s1",
                "name": "users",
                "columns": [
                    {
                        "id": "users.id",
                        "name": "id",
                        "type": "uuid",
                        "nullable": False,
                        "is_primary_key": True,
                        "is_unique": True,
                        "is_indexed": False,
                    },
                ],
                "foreign_keys": [],
            },
        ],
        "types": [],
    }


def write_model(tmp_path: Path, payload: dict[str, Any]) -> Path:
    """Write a payload to a model file."""
    location = tmp_path / "model.json"
    location.write_text(dumps(payload), encoding="utf-8")
    return location


def test_ddl_writes_sql(
    tmp_path: Path,
    payload: dict[str, Any],
    output: StringIO,
) -> None:
    """Test that the DDL script goes to stdout."""
    cli.ddl(write_model(tmp_path, payload))
    assert output.getvalue().startswith('CREATE TABLE "public"."users"')


def test_ddl_writes_html(
    tmp_path: Path,
    payload: dict[str, Any],
    output: StringIO,
) -> None:
    """Test the HTML preview format."""
    cli.ddl(write_model(tmp_path, payload), fmt="html")
    assert "<title>model</title>" in output.getvalue()


def test_check_without_problems(tmp_path: Path, payload: dict[str, Any]) -> None:
    """Test that a consistent model passes."""
    cli.check(write_model(tmp_path, payload))


def test_check_with_problems(tmp_path: Path, payload: dict[str, Any]) -> None:
    """Test that problems make the command fail."""
    payload["tables"].append({**payload["tables"][0], "id": "users-2"})
    with pytest.raises(SystemExit) as excinfo:
        cli.check(write_model(tmp_path, payload))
    assert excinfo.value.code == 1


def test_invalid_model_fails(tmp_path: Path) -> None:
    """Test that malformed JSON is reported as an error."""
    location = tmp_path / "model.json"
    location.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.ddl(location)
    assert excinfo.value.code == 1


def test_missing_file_fails(tmp_path: Path) -> None:
    """Test that a missing input file is reported."""
    with pytest.raises(SystemExit):
        cli.relationships(tmp_path / "missing.json")


def test_wrong_extension_fails(tmp_path: Path) -> None:
    """Test that only known file extensions are accepted."""
    location = tmp_path / "model.txt"
    location.write_text("{}", encoding="utf-8")
    with pytest.raises(SystemExit):
        cli.check(location)


def test_reflect_writes_model(tmp_path: Path, output: StringIO) -> None:
    """Test that a SQLite database is printed as a model."""
    location = tmp_path / "shop.sqlite"
    conn = connect(location)
    conn.execute("CREATE TABLE tags (id INTEGER PRIMARY KEY, label TEXT)")
    conn.commit()
    conn.close()

    cli.reflect(location)
    model = loads(output.getvalue())
    assert [table["name"] for table in model["tables"]] == ["tags"]
