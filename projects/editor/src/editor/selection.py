"""Selection state of the editor."""

from typing import NamedTuple

from dbmodel.types import Model


class Selection(NamedTuple):
    """Currently selected schema, table and column ids."""

    schema_id: str | None = None
    table_id: str | None = None
    column_id: str | None = None


def initial_selection(model: Model) -> Selection:
    """Select the first schema and table of a freshly loaded model."""
    return Selection(
        schema_id=next((schema["id"] for schema in model["schemas"]), None),
        table_id=next((table["id"] for table in model["tables"]), None),
    )


def repair_selection(model: Model, selection: Selection) -> Selection:
    """Point every part of the selection at an existing entity or ``None``.

    A removed schema or table is replaced by the first remaining one, a
    removed column simply clears the column selection.
    """
    schema_ids = [schema["id"] for schema in model["schemas"]]
    table_ids = [table["id"] for table in model["tables"]]
    column_ids = {
        column["id"] for table in model["tables"] for column in table["columns"]
    }

    schema_id = selection.schema_id
    if schema_id is not None and schema_id not in schema_ids:
        schema_id = schema_ids[0] if schema_ids else None

    table_id = selection.table_id
    if table_id is not None and table_id not in table_ids:
        table_id = table_ids[0] if table_ids else None

    column_id = selection.column_id
    if column_id is not None and column_id not in column_ids:
        column_id = None

    return Selection(schema_id, table_id, column_id)
