"""Import a model by reflecting an existing SQLite database."""

from pathlib import Path
from typing import get_args
from warnings import catch_warnings, filterwarnings

from sqlalchemy import Connection, Engine, Inspector, create_engine, inspect
from sqlalchemy.engine.interfaces import ReflectedColumn, ReflectedForeignKeyConstraint
from sqlalchemy.exc import CompileError, SAWarning

from dbmodel.enum_detection import detect_enum_values, enum_type_name
from dbmodel.naming import new_id
from dbmodel.types import (
    Column,
    EnumType,
    ForeignKey,
    Model,
    ReferentialAction,
    Table,
)
from dbmodel.validation import sanitize_model

DEFAULT_SCHEMA = "public"
FALLBACK_TYPE = "text"

REFERENTIAL_ACTIONS: frozenset[str] = frozenset(get_args(ReferentialAction.__value__))

# Action SQLite reports for constraints declared without one
DEFAULT_ACTION = "NO ACTION"

# (referred table, source column) -> (on_delete, on_update)
type PragmaActions = dict[tuple[str, str], tuple[str | None, str | None]]


def read_only_sqlite(sqlite_location: Path) -> Engine:
    """Create a read-only SQLAlchemy engine for SQLite database."""
    connection_string = f"sqlite:///{sqlite_location}?mode=ro"
    return create_engine(connection_string, connect_args={"uri": True})


def _type_name(col_info: ReflectedColumn) -> str:
    try:
        return str(col_info["type"])
    except CompileError:
        # Columns declared without a type reflect as NullType
        return FALLBACK_TYPE


def _referential_action(value: object) -> ReferentialAction | None:
    action = " ".join(str(value).upper().split()) if value else ""
    return action if action in REFERENTIAL_ACTIONS else None  # type: ignore[return-value]


def _pragma_actions(connection: Connection, table_name: str) -> PragmaActions:
    """Referential actions of a table as recorded by SQLite itself.

    The inspector only parses actions of table-level FOREIGN KEY clauses, while
    ``PRAGMA foreign_key_list`` also knows those of column-level REFERENCES.
    """
    quoted = table_name.replace('"', '""')
    rows = connection.exec_driver_sql(f'PRAGMA foreign_key_list("{quoted}")')
    actions: PragmaActions = {}
    for row in rows.mappings():
        if row["seq"] != 0:
            continue
        actions.setdefault(
            (row["table"], row["from"]),
            (
                None if row["on_delete"] == DEFAULT_ACTION else row["on_delete"],
                None if row["on_update"] == DEFAULT_ACTION else row["on_update"],
            ),
        )
    return actions


def _single_columns(groups: list[list[str | None]]) -> set[str]:
    return {group[0] for group in groups if len(group) == 1 and group[0]}


def _build_column(
    col_info: ReflectedColumn,
    primary_keys: list[str],
    unique: set[str],
    indexed: set[str],
) -> Column:
    """Build a column from SQLAlchemy column info."""
    name = col_info["name"]
    column: Column = {
        "id": new_id(),
        "name": name,
        "type": _type_name(col_info),
        "nullable": bool(col_info["nullable"]) and name not in primary_keys,
        "is_primary_key": name in primary_keys,
        "is_unique": name in unique,
        "is_indexed": name in indexed,
    }
    if default := col_info.get("default"):
        column["default_value"] = str(default)
    if comment := col_info.get("comment"):
        column["comment"] = comment
    return column


def _build_table(inspector: Inspector, table_name: str, schema_id: str) -> Table:
    """Build a table, without foreign keys, from database introspection."""
    primary_keys = inspector.get_pk_constraint(table_name)["constrained_columns"]
    indexes = inspector.get_indexes(table_name)
    unique = _single_columns(
        [
            list(uc["column_names"])
            for uc in inspector.get_unique_constraints(table_name)
        ]
        + [list(ix["column_names"]) for ix in indexes if ix["unique"]],
    )
    indexed = _single_columns(
        [list(ix["column_names"]) for ix in indexes if not ix["unique"]],
    )

    return {
        "id": new_id(),
        "schema_id": schema_id,
        "name": table_name,
        "columns": [
            _build_column(col_info, primary_keys, unique, indexed)
            for col_info in inspector.get_columns(table_name)
        ],
        "foreign_keys": [],
    }


def _detect_enums(
    inspector: Inspector,
    table: Table,
    schema_id: str,
) -> list[EnumType]:
    """Turn ``CHECK (column IN (...))`` constraints into enum types."""
    constraints = [
        check["sqltext"] for check in inspector.get_check_constraints(table["name"])
    ]
    types: list[EnumType] = []
    for column in table["columns"]:
        for constraint in constraints:
            values = detect_enum_values(constraint, column["name"])
            if values and all(values):
                name = enum_type_name(table["name"], column["name"])
                types.append(
                    {
                        "id": new_id(),
                        "schema_id": schema_id,
                        "name": name,
                        "kind": "enum",
                        "values": values,
                    },
                )
                column["type"] = name
                break
    return types


def _build_foreign_key(
    fk_info: ReflectedForeignKeyConstraint,
    table: Table,
    tables: dict[str, Table],
    pragma_actions: PragmaActions,
) -> ForeignKey | None:
    """Map the first column pair of a reflected constraint onto the model."""
    target = tables.get(fk_info["referred_table"])
    if target is None or not fk_info["constrained_columns"]:
        return None

    source_name = fk_info["constrained_columns"][0]
    if fk_info["referred_columns"]:
        target_name = fk_info["referred_columns"][0]
    else:
        # REFERENCES without a column list points at the primary key
        target_name = next(
            (col["name"] for col in target["columns"] if col["is_primary_key"]),
            None,
        )

    source = next((c for c in table["columns"] if c["name"] == source_name), None)
    target_column = next(
        (c for c in target["columns"] if c["name"] == target_name),
        None,
    )
    if source is None or target_column is None:
        return None

    options = fk_info.get("options", {})
    pragma_delete, pragma_update = pragma_actions.get(
        (fk_info["referred_table"], source_name),
        (None, None),
    )
    foreign_key: ForeignKey = {
        "id": new_id(),
        "name": fk_info.get("name") or f"fk_{table['name']}_{source_name}",
        "from_column_id": source["id"],
        "to_table_id": target["id"],
        "to_column_id": target_column["id"],
    }
    if on_delete := _referential_action(options.get("ondelete") or pragma_delete):
        foreign_key["on_delete"] = on_delete
    if on_update := _referential_action(options.get("onupdate") or pragma_update):
        foreign_key["on_update"] = on_update
    return foreign_key


def sqlite_to_model(sqlite_database: Engine) -> Model:
    """Reflect a SQLite database into a sanitized Model."""
    inspector = inspect(sqlite_database)
    schema_id = new_id()

    with catch_warnings():
        filterwarnings("ignore", category=SAWarning)
        tables = {
            name: _build_table(inspector, name, schema_id)
            for name in inspector.get_table_names()
        }
        types = [
            enum
            for table in tables.values()
            for enum in _detect_enums(inspector, table, schema_id)
        ]
        with sqlite_database.connect() as connection:
            for name, table in tables.items():
                actions = _pragma_actions(connection, name)
                table["foreign_keys"] = [
                    fk
                    for fk_info in inspector.get_foreign_keys(name)
                    if (fk := _build_foreign_key(fk_info, table, tables, actions))
                ]

    model: Model = {
        "version": 1,
        "schemas": [{"id": schema_id, "name": DEFAULT_SCHEMA}],
        "tables": list(tables.values()),
        "types": types,
    }
    return sanitize_model(model)
