"""Removal of foreign keys left dangling by deletions."""

from collections.abc import Iterable

from dbmodel.types import Table


def drop_table_references(tables: Iterable[Table], table_ids: set[str]) -> None:
    """Remove every foreign key that targets one of `table_ids`."""
    for table in tables:
        table["foreign_keys"] = [
            fk for fk in table["foreign_keys"] if fk["to_table_id"] not in table_ids
        ]


def drop_column_references(
    tables: Iterable[Table],
    owner: Table,
    column_id: str,
) -> None:
    """Remove foreign keys using `column_id` as source (on `owner`) or target."""
    owner["foreign_keys"] = [
        fk for fk in owner["foreign_keys"] if fk["from_column_id"] != column_id
    ]
    for table in tables:
        table["foreign_keys"] = [
            fk for fk in table["foreign_keys"] if fk["to_column_id"] != column_id
        ]
