"""Validation of models arriving from outside the editor."""

from __future__ import annotations

from collections import Counter
from copy import deepcopy
from logging import getLogger
from math import isfinite
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from dbmodel.cardinality import normalize_hint
from dbmodel.errors import ModelValidationError, Problem
from dbmodel.naming import ensure_unique_constraint_name, sanitize_constraint_name
from dbmodel.types import Model

if TYPE_CHECKING:
    from collections.abc import Iterator

    from dbmodel.types import ForeignKey, Table

logger = getLogger(__name__)

MODEL_ADAPTER: TypeAdapter[Model] = TypeAdapter(Model)


def fallback_constraint_name(fk_id: str) -> str:
    """Deterministic constraint name derived from the foreign key id."""
    return f"fk_{fk_id[:8]}"


def _location(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc)


def _shape_problems(model: Model) -> Iterator[Problem]:
    """Constraints the TypedDict annotations cannot express."""
    if not model["schemas"]:
        yield Problem("schemas", "At least one schema is required")

    for index, table in enumerate(model["tables"]):
        position = table.get("position")
        if position and not (isfinite(position["x"]) and isfinite(position["y"])):
            yield Problem(f"tables.{index}.position", "Coordinates must be finite")

    for index, custom_type in enumerate(model["types"]):
        if not custom_type["values"]:
            yield Problem(f"types.{index}.values", "Enum needs at least one value")
        elif not all(custom_type["values"]):
            yield Problem(f"types.{index}.values", "Enum values must not be empty")


def parse_model(payload: object) -> Model:
    """Validate the shape of an untrusted payload and return a fresh Model."""
    try:
        model = MODEL_ADAPTER.validate_python(payload)
    except ValidationError as err:
        raise ModelValidationError(
            Problem(_location(error["loc"]), error["msg"]) for error in err.errors()
        ) from err

    if problems := list(_shape_problems(model)):
        raise ModelValidationError(problems)
    return model


def _duplicates(values: Iterator[str]) -> set[str]:
    return {value for value, count in Counter(values).items() if count > 1}


def _all_ids(model: Model) -> Iterator[str]:
    yield from (schema["id"] for schema in model["schemas"])
    yield from (custom_type["id"] for custom_type in model["types"])
    for table in model["tables"]:
        yield table["id"]
        yield from (column["id"] for column in table["columns"])
        yield from (fk["id"] for fk in table["foreign_keys"])


def _foreign_key_problems(
    fk: ForeignKey,
    path: str,
    table: Table,
    tables: dict[str, Table],
) -> Iterator[Problem]:
    if not any(col["id"] == fk["from_column_id"] for col in table["columns"]):
        yield Problem(f"{path}.from_column_id", f'Unknown column for "{fk["name"]}"')

    target = tables.get(fk["to_table_id"])
    if target is None:
        yield Problem(f"{path}.to_table_id", f'Unknown table for "{fk["name"]}"')
    elif not any(col["id"] == fk["to_column_id"] for col in target["columns"]):
        yield Problem(f"{path}.to_column_id", f'Unknown column for "{fk["name"]}"')


def find_problems(model: Model) -> list[Problem]:
    """List every broken cross-reference and name collision in a model."""
    problems: list[Problem] = []
    schema_ids = {schema["id"] for schema in model["schemas"]}
    tables = {table["id"]: table for table in model["tables"]}

    problems.extend(
        Problem("id", f"Duplicate id {entity_id}")
        for entity_id in sorted(_duplicates(_all_ids(model)))
    )
    problems.extend(
        Problem("schemas", f'Duplicate schema name "{name}"')
        for name in sorted(_duplicates(schema["name"] for schema in model["schemas"]))
    )
    problems.extend(
        Problem("tables", f'Duplicate table name "{name}"')
        for name in sorted(
            _duplicates(
                f"{table['schema_id']}.{table['name']}" for table in model["tables"]
            ),
        )
    )

    for index, table in enumerate(model["tables"]):
        path = f"tables.{index}"
        if table["schema_id"] not in schema_ids:
            problems.append(
                Problem(f"{path}.schema_id", f'Unknown schema for "{table["name"]}"'),
            )

        column_names = (column["name"].lower() for column in table["columns"])
        problems.extend(
            Problem(f"{path}.columns", f'Duplicate column name "{name}"')
            for name in sorted(_duplicates(column_names))
        )

        fk_names = (fk["name"] for fk in table["foreign_keys"])
        problems.extend(
            Problem(f"{path}.foreign_keys", f'Duplicate constraint name "{name}"')
            for name in sorted(_duplicates(fk_names))
        )

        for fk_index, fk in enumerate(table["foreign_keys"]):
            fk_path = f"{path}.foreign_keys.{fk_index}"
            problems.extend(_foreign_key_problems(fk, fk_path, table, tables))

    for index, custom_type in enumerate(model["types"]):
        if custom_type["schema_id"] not in schema_ids:
            problems.append(
                Problem(
                    f"types.{index}.schema_id",
                    f'Unknown schema for "{custom_type["name"]}"',
                ),
            )

    return problems


def _resolves(fk: ForeignKey, table: Table, tables: dict[str, Table]) -> bool:
    return not any(_foreign_key_problems(fk, "", table, tables))


def _sanitize_foreign_keys(table: Table, tables: dict[str, Table]) -> None:
    used: list[str] = []
    kept: list[ForeignKey] = []
    for fk in table["foreign_keys"]:
        if not _resolves(fk, table, tables):
            logger.warning(
                "Dropping unresolved foreign key %s on table %s",
                fk["name"],
                table["name"],
            )
            continue

        base = sanitize_constraint_name(fk["name"], fallback_constraint_name(fk["id"]))
        fk["name"] = ensure_unique_constraint_name(base, used)
        used.append(fk["name"])

        for key in ("start_cardinality", "end_cardinality"):
            if key in fk:
                fk[key] = normalize_hint(fk[key])
        kept.append(fk)

    table["foreign_keys"] = kept


def sanitize_model(model: Model) -> Model:
    """Return a corrected copy safe to become the live model.

    Tables or types in unknown schemas are rejected outright. Foreign keys
    that do not resolve are dropped and constraint names are re-derived so
    they are valid and unique within their table.
    """
    sanitized = deepcopy(model)
    schema_ids = {schema["id"] for schema in sanitized["schemas"]}
    orphans = [
        problem
        for problem in find_problems(sanitized)
        if problem.path.endswith(".schema_id")
    ]
    if orphans or not schema_ids:
        raise ModelValidationError(
            orphans or [Problem("schemas", "At least one schema is required")],
        )

    tables = {table["id"]: table for table in sanitized["tables"]}
    for table in sanitized["tables"]:
        _sanitize_foreign_keys(table, tables)
    return sanitized


def load_model(payload: object) -> Model:
    """Parse and sanitize an untrusted payload."""
    return sanitize_model(parse_model(payload))
