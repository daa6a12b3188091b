"""PostgreSQL DDL generation from the relational model."""

from logging import getLogger

from dbmodel.naming import ensure_unique_constraint_name, to_snake_case
from dbmodel.types import Column, CustomType, ForeignKey, Model, Table

from ddl.ordering import topological_order

logger = getLogger(__name__)

# Schema that exists in every database and is never created
DEFAULT_SCHEMA = "public"

# A table statement is written on one line up to these limits
INLINE_CLAUSE_LIMIT = 3
INLINE_LENGTH_LIMIT = 120

INDENT = "  "


def quote_ident(value: str) -> str:
    """Double-quote an identifier, escaping embedded quotes."""
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


def quote_literal(value: str) -> str:
    """Single-quote a string literal, escaping embedded quotes."""
    escaped = value.replace("'", "''")
    return f"'{escaped}'"


def qualify(schema: str, name: str) -> str:
    """Schema-qualified identifier."""
    return f"{quote_ident(schema)}.{quote_ident(name)}"


class _Resolver:
    """Lookups shared by every statement of one generation run."""

    def __init__(self, model: Model) -> None:
        self.schemas = {schema["id"]: schema["name"] for schema in model["schemas"]}
        self.tables = {table["id"]: table for table in model["tables"]}

    def schema_name(self, schema_id: str) -> str:
        return self.schemas.get(schema_id, DEFAULT_SCHEMA)

    def table_name(self, table: Table) -> str:
        return qualify(self.schema_name(table["schema_id"]), table["name"])


def column_definition(column: Column) -> str:
    """Render ``"name" type [NOT NULL] [DEFAULT expr]``."""
    parts = [quote_ident(column["name"]), column["type"]]
    if not column["nullable"]:
        parts.append("NOT NULL")
    if default := (column.get("default_value") or "").strip():
        # Defaults are SQL expressions and are emitted verbatim
        parts.append(f"DEFAULT {default}")
    return " ".join(parts)


def foreign_key_clause(fk: ForeignKey, table: Table, resolver: _Resolver) -> str | None:
    """Render a FOREIGN KEY constraint, or ``None`` if it does not resolve."""
    source = next(
        (col for col in table["columns"] if col["id"] == fk["from_column_id"]),
        None,
    )
    target_table = resolver.tables.get(fk["to_table_id"])
    target = (
        next(
            (col for col in target_table["columns"] if col["id"] == fk["to_column_id"]),
            None,
        )
        if target_table
        else None
    )
    if source is None or target_table is None or target is None:
        logger.debug("Skipping unresolved foreign key %s", fk["name"])
        return None

    reference = f"{resolver.table_name(target_table)} ({quote_ident(target['name'])})"
    clauses = [
        f"CONSTRAINT {quote_ident(fk['name'])}",
        f"FOREIGN KEY ({quote_ident(source['name'])})",
        f"REFERENCES {reference}",
    ]
    if on_delete := fk.get("on_delete"):
        clauses.append(f"ON DELETE {on_delete}")
    if on_update := fk.get("on_update"):
        clauses.append(f"ON UPDATE {on_update}")
    return " ".join(clauses)


def table_definitions(table: Table, resolver: _Resolver) -> list[str]:
    """Column definitions followed by table-level constraints."""
    definitions = [column_definition(column) for column in table["columns"]]

    primary_keys = [
        quote_ident(column["name"])
        for column in table["columns"]
        if column["is_primary_key"]
    ]
    if primary_keys:
        definitions.append(f"PRIMARY KEY ({', '.join(primary_keys)})")

    definitions.extend(
        f"UNIQUE ({quote_ident(column['name'])})"
        for column in table["columns"]
        if column["is_unique"] and not column["is_primary_key"]
    )
    definitions.extend(
        clause
        for fk in table["foreign_keys"]
        if (clause := foreign_key_clause(fk, table, resolver))
    )
    return definitions


def create_table(table: Table, resolver: _Resolver) -> str:
    """Render CREATE TABLE inline when short, indented otherwise."""
    name = resolver.table_name(table)
    definitions = table_definitions(table, resolver)

    inline = ", ".join(definitions)
    if len(definitions) <= INLINE_CLAUSE_LIMIT and len(inline) <= INLINE_LENGTH_LIMIT:
        return f"CREATE TABLE {name} ({inline});"

    body = f",\n{INDENT}".join(definitions)
    return f"CREATE TABLE {name} (\n{INDENT}{body}\n);"


def comment_statements(table: Table, resolver: _Resolver) -> list[str]:
    """COMMENT ON TABLE/COLUMN statements for one table."""
    name = resolver.table_name(table)
    statements = []
    if comment := table.get("comment"):
        statements.append(f"COMMENT ON TABLE {name} IS {quote_literal(comment)};")
    statements.extend(
        f"COMMENT ON COLUMN {name}.{quote_ident(column['name'])} "
        f"IS {quote_literal(comment)};"
        for column in table["columns"]
        if (comment := column.get("comment"))
    )
    return statements


def index_name(table: Table, column: Column, used: list[str]) -> str:
    """``idx_<table>_<column>``, snake-cased and unique within the table."""
    base = to_snake_case(f"idx_{table['name']}_{column['name']}")
    if not base:
        base = f"idx_{column['id'][:8]}"
    elif not base.startswith("idx_"):
        base = f"idx_{base}"
    name = ensure_unique_constraint_name(base, used)
    used.append(name)
    return name


def index_statements(table: Table, resolver: _Resolver) -> list[str]:
    """CREATE INDEX for indexed columns not already covered by a constraint."""
    used: list[str] = []
    name = resolver.table_name(table)
    return [
        f"CREATE INDEX {quote_ident(index_name(table, column, used))} "
        f"ON {name} ({quote_ident(column['name'])});"
        for column in table["columns"]
        if column["is_indexed"]
        and not column["is_primary_key"]
        and not column["is_unique"]
    ]


def create_type(custom_type: CustomType, schema_name: str) -> str:
    """Render CREATE TYPE ... AS ENUM with values in stored order."""
    values = ", ".join(quote_literal(value) for value in custom_type["values"])
    name = qualify(schema_name, custom_type["name"])
    return f"CREATE TYPE {name} AS ENUM ({values});"


def model_to_sql(model: Model) -> str:
    """Generate the complete DDL script for a model.

    Order: schemas, enum types grouped by schema, then tables in dependency
    order, each followed by its comments and indexes. Identical models
    always produce identical text.
    """
    resolver = _Resolver(model)
    statements: list[str] = []

    schemas = sorted(model["schemas"], key=lambda schema: schema["name"])
    statements.extend(
        f"CREATE SCHEMA IF NOT EXISTS {quote_ident(schema['name'])};"
        for schema in schemas
        if schema["name"] != DEFAULT_SCHEMA
    )

    for schema in schemas:
        statements.extend(
            create_type(custom_type, schema["name"])
            for custom_type in model["types"]
            if custom_type["schema_id"] == schema["id"]
            and custom_type["kind"] == "enum"
        )

    for table in topological_order(model["tables"], resolver.schema_name):
        statements.append(create_table(table, resolver))
        statements.extend(comment_statements(table, resolver))
        statements.extend(index_statements(table, resolver))

    return "\n".join(statements)
