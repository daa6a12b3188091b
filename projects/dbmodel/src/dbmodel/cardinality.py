"""Relationship cardinality inference and normalization."""

from typing import NamedTuple

from dbmodel.types import Cardinality, Column, ForeignKey, Model, Table

MANY_HINTS = frozenset({"many", "one_or_many", "zero_or_many"})
ONE_HINTS = frozenset({"one", "one_and_only_one", "zero_or_one"})


class Kinds(NamedTuple):
    """Cardinality of both ends of a foreign key."""

    start: Cardinality  # Side holding the foreign key column
    end: Cardinality  # Referenced side


# Used when the relationship cannot be resolved against the model
DEFAULT_KINDS = Kinds(start="many", end="one")


def normalize_cardinality(value: object, fallback: Cardinality) -> Cardinality:
    """Collapse any cardinality hint onto the binary one/many domain."""
    if value in MANY_HINTS:
        return "many"
    if value in ONE_HINTS:
        return "one"
    return fallback


def normalize_hint(value: object) -> Cardinality | None:
    """Normalize a stored hint, keeping absence as ``None``."""
    if value in MANY_HINTS:
        return "many"
    if value in ONE_HINTS:
        return "one"
    return None


def infer_cardinality(*, fk_is_unique: bool, ref_is_unique: bool) -> Kinds:
    """Derive both ends from uniqueness facts of the two columns.

    Nullability of the foreign key column is deliberately not an input.
    """
    return Kinds(
        start="one" if fk_is_unique else "many",
        end="one" if ref_is_unique else "many",
    )


def is_effectively_unique(table: Table, column: Column) -> bool:
    """Unique columns and single-column primary keys identify one row."""
    if column["is_unique"]:
        return True
    if not column["is_primary_key"]:
        return False
    return sum(1 for col in table["columns"] if col["is_primary_key"]) == 1


def _find_column(table: Table, column_id: str) -> Column | None:
    return next((col for col in table["columns"] if col["id"] == column_id), None)


def inferred_kinds(model: Model, table: Table, fk: ForeignKey) -> Kinds:
    """Infer cardinality from the model, ignoring stored overrides."""
    source = _find_column(table, fk["from_column_id"])
    target_table = next(
        (item for item in model["tables"] if item["id"] == fk["to_table_id"]),
        None,
    )
    if source is None or target_table is None:
        return DEFAULT_KINDS
    target = _find_column(target_table, fk["to_column_id"])
    if target is None:
        return DEFAULT_KINDS

    return infer_cardinality(
        fk_is_unique=is_effectively_unique(table, source),
        ref_is_unique=is_effectively_unique(target_table, target),
    )


def relationship_kinds(model: Model, table: Table, fk: ForeignKey) -> Kinds:
    """Effective cardinality: stored values win over inference."""
    inferred = inferred_kinds(model, table, fk)
    return Kinds(
        start=normalize_cardinality(fk.get("start_cardinality"), inferred.start),
        end=normalize_cardinality(fk.get("end_cardinality"), inferred.end),
    )
