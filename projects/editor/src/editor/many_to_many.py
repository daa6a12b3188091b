"""Rewrite a foreign key into a junction table with two foreign keys."""

from collections.abc import Callable
from copy import deepcopy
from typing import NamedTuple

from dbmodel.naming import (
    build_constraint_name,
    ensure_unique_constraint_name,
    ensure_unique_name,
    new_id,
    to_snake_case,
)
from dbmodel.types import Column, ForeignKey, Model, Table

from editor.cascade import drop_column_references

FALLBACK_JUNCTION_NAME = "relationship"
FALLBACK_COLUMN_SUFFIX = "id"


class ManyToMany(NamedTuple):
    """Outcome of a successful conversion."""

    model: Model
    source_id: str  # Table that held the original foreign key
    target_id: str
    junction_id: str
    left_column_id: str


def pick_reference_column(
    table: Table,
    preferred_id: str | None = None,
    exclude: frozenset[str] = frozenset(),
) -> Column | None:
    """Choose the column a junction should reference on `table`.

    Preference order: `preferred_id`, the primary key, any unique column,
    then any column at all.
    """
    candidates = [col for col in table["columns"] if col["id"] not in exclude]
    checks: list[Callable[[Column], bool]] = [
        lambda col: col["id"] == preferred_id,
        lambda col: col["is_primary_key"],
        lambda col: col["is_unique"],
        lambda _: True,
    ]
    for check in checks:
        if column := next((col for col in candidates if check(col)), None):
            return column
    return None


def _name_order(name: str) -> tuple[str, str]:
    return (name.casefold(), name)


def junction_table_name(source_name: str, target_name: str) -> str:
    """Order-independent snake_case name for the junction of two tables."""
    left, right = sorted((source_name, target_name), key=_name_order)
    name = to_snake_case(f"{left}_{right}")
    if not name:
        name = "_".join(
            token for token in (to_snake_case(left), to_snake_case(right)) if token
        )
    return name or FALLBACK_JUNCTION_NAME


def _junction_column_name(table_name: str, column_name: str, used: list[str]) -> str:
    label = to_snake_case(f"fk_{table_name}")
    base = "_".join(token for token in (label, to_snake_case(column_name)) if token)
    if base == label:
        base = f"{label}_{FALLBACK_COLUMN_SUFFIX}"
    name = ensure_unique_name(base, used, ignore_case=True)
    used.append(name)
    return name


def _junction_column(name: str, reference: Column) -> Column:
    return {
        "id": new_id(),
        "name": name,
        "type": reference["type"],
        "nullable": False,
        "is_primary_key": True,
        "is_unique": False,
        "is_indexed": False,
    }


def _junction_foreign_key(
    junction_name: str,
    column: Column,
    target: Table,
    reference: Column,
    used: list[str],
) -> ForeignKey:
    fk_id = new_id()
    base = build_constraint_name(
        [junction_name, column["name"], target["name"], "fk"],
        f"fk_{fk_id[:8]}",
    )
    name = ensure_unique_constraint_name(base, used)
    used.append(name)
    return {
        "id": fk_id,
        "name": name,
        "from_column_id": column["id"],
        "to_table_id": target["id"],
        "to_column_id": reference["id"],
        "start_cardinality": "many",
        "end_cardinality": "one",
    }


def convert_to_many_to_many(
    model: Model,
    table_id: str,
    fk_id: str,
) -> ManyToMany | None:
    """Replace a foreign key of `table_id` with a junction table.

    Works on a copy of `model` and returns ``None``, leaving `model`
    untouched, when the foreign key or one of its endpoints does not resolve
    or no reference column can be chosen. Positions are not considered.
    """
    draft = deepcopy(model)
    tables = draft["tables"]
    table_index = next(
        (index for index, table in enumerate(tables) if table["id"] == table_id),
        None,
    )
    if table_index is None:
        return None
    source = tables[table_index]

    fk = next((item for item in source["foreign_keys"] if item["id"] == fk_id), None)
    if fk is None:
        return None
    source_column = next(
        (col for col in source["columns"] if col["id"] == fk["from_column_id"]),
        None,
    )
    target = next((item for item in tables if item["id"] == fk["to_table_id"]), None)
    if source_column is None or target is None:
        return None
    if not any(col["id"] == fk["to_column_id"] for col in target["columns"]):
        return None

    # Primary key columns are never deleted
    drop_source = not source_column["is_primary_key"]
    excluded = frozenset({source_column["id"]}) if drop_source else frozenset()

    source_reference = pick_reference_column(source, source_column["id"], excluded)
    target_reference = pick_reference_column(
        target,
        fk["to_column_id"],
        excluded if target is source else frozenset(),
    )
    if source_reference is None or target_reference is None:
        return None

    sibling_names = [
        table["name"] for table in tables if table["schema_id"] == source["schema_id"]
    ]
    junction_name = ensure_unique_name(
        junction_table_name(source["name"], target["name"]),
        sibling_names,
    )

    column_names: list[str] = []
    left = _junction_column(
        _junction_column_name(source["name"], source_reference["name"], column_names),
        source_reference,
    )
    right = _junction_column(
        _junction_column_name(target["name"], target_reference["name"], column_names),
        target_reference,
    )

    fk_names: list[str] = []
    junction: Table = {
        "id": new_id(),
        "schema_id": source["schema_id"],
        "name": junction_name,
        "columns": [left, right],
        "foreign_keys": [
            _junction_foreign_key(
                junction_name, left, source, source_reference, fk_names,
            ),
            _junction_foreign_key(
                junction_name, right, target, target_reference, fk_names,
            ),
        ],
    }

    source["foreign_keys"] = [item for item in source["foreign_keys"] if item is not fk]
    if drop_source:
        source["columns"] = [
            col for col in source["columns"] if col["id"] != source_column["id"]
        ]
        drop_column_references(tables, source, source_column["id"])

    tables.insert(table_index + 1, junction)
    return ManyToMany(
        model=draft,
        source_id=source["id"],
        target_id=target["id"],
        junction_id=junction["id"],
        left_column_id=left["id"],
    )
