"""Single-writer store applying mutations to the relational model."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from copy import deepcopy
from logging import getLogger
from typing import TYPE_CHECKING, Any, TypedDict, Unpack

from dbmodel.cardinality import normalize_hint
from dbmodel.errors import UnknownReferenceError
from dbmodel.naming import (
    build_constraint_name,
    ensure_unique_constraint_name,
    ensure_unique_name,
    new_id,
    sanitize_constraint_name,
)
from dbmodel.validation import fallback_constraint_name, load_model

from editor.cascade import drop_column_references, drop_table_references
from editor.history import UndoHistory
from editor.layout import junction_layout
from editor.many_to_many import convert_to_many_to_many
from editor.selection import Selection, initial_selection, repair_selection
from editor.settings import EditorSettings, load_settings

if TYPE_CHECKING:
    from dbmodel.types import (
        CardinalityHint,
        Column,
        CustomType,
        ForeignKey,
        Model,
        Position,
        ReferentialAction,
        Schema,
        Table,
    )

logger = getLogger(__name__)


class SchemaPatch(TypedDict, total=False):
    """Editable schema fields."""

    name: str
    comment: str | None


class TablePatch(TypedDict, total=False):
    """Editable table fields. Columns and foreign keys have their own operations."""

    schema_id: str
    name: str
    comment: str | None
    position: Position | None


class ColumnPatch(TypedDict, total=False):
    """Editable column fields."""

    name: str
    type: str
    nullable: bool
    default_value: str | None
    is_primary_key: bool
    is_unique: bool
    is_indexed: bool
    comment: str | None


class ForeignKeyPatch(TypedDict, total=False):
    """Editable foreign key fields."""

    name: str
    from_column_id: str
    to_table_id: str
    to_column_id: str
    on_delete: ReferentialAction | None
    on_update: ReferentialAction | None
    comment: str | None
    start_cardinality: CardinalityHint | None
    end_cardinality: CardinalityHint | None


class TypePatch(TypedDict, total=False):
    """Editable enum type fields."""

    name: str
    values: list[str]
    comment: str | None


def _check_patch[P: Mapping[str, Any]](patch: P, allowed: type, kind: str) -> P:
    """Reject unknown fields and detach the patch from the caller."""
    if unknown := set(patch) - set(allowed.__annotations__):
        msg = f"Cannot update {kind} fields: {', '.join(sorted(unknown))}"
        raise ValueError(msg)
    return deepcopy(patch)


def new_model(settings: EditorSettings) -> Model:
    """Create an empty model holding only the default schema."""
    return {
        "version": 1,
        "schemas": [{"id": new_id(), "name": settings.default_schema_name}],
        "tables": [],
        "types": [],
    }


class ModelStore:
    """Owner of the live model and the only component allowed to change it.

    Every mutation works on a private draft and replaces the live model only
    once it completed, so a failing operation leaves no trace. Readers get
    deep copies through :attr:`model`.
    """

    def __init__(
        self,
        model: Model | None = None,
        *,
        settings: EditorSettings | None = None,
    ) -> None:
        """Start from `model` (validated as external input) or an empty model."""
        self.settings = settings or load_settings()
        self._history = UndoHistory(self.settings.undo_depth)
        self._model = new_model(self.settings) if model is None else load_model(model)
        self._selection = initial_selection(self._model)

    @property
    def model(self) -> Model:
        """Return a snapshot of the live model."""
        return deepcopy(self._model)

    @property
    def selection(self) -> Selection:
        """Return the current selection."""
        return self._selection

    @property
    def can_undo(self) -> bool:
        """Whether a snapshot is available to restore."""
        return len(self._history) > 0

    @contextmanager
    def _edit(self, *, undoable: bool = False) -> Iterator[Model]:
        """Yield a draft that becomes the live model if no exception escapes."""
        draft = deepcopy(self._model)
        yield draft
        if undoable:
            self._history.push(self._model, self._selection)
        self._model = draft
        self._selection = repair_selection(draft, self._selection)

    def _select(self, **changes: str | None) -> None:
        self._selection = repair_selection(
            self._model,
            self._selection._replace(**changes),
        )

    # Lookups

    @staticmethod
    def _schema(model: Model, schema_id: str) -> Schema:
        for schema in model["schemas"]:
            if schema["id"] == schema_id:
                return schema
        raise UnknownReferenceError("schema", schema_id)

    @staticmethod
    def _table(model: Model, table_id: str) -> Table:
        for table in model["tables"]:
            if table["id"] == table_id:
                return table
        raise UnknownReferenceError("table", table_id)

    @staticmethod
    def _column(table: Table, column_id: str) -> Column:
        for column in table["columns"]:
            if column["id"] == column_id:
                return column
        raise UnknownReferenceError("column", column_id)

    @staticmethod
    def _foreign_key(table: Table, fk_id: str) -> ForeignKey:
        for fk in table["foreign_keys"]:
            if fk["id"] == fk_id:
                return fk
        raise UnknownReferenceError("foreign key", fk_id)

    @staticmethod
    def _type(model: Model, type_id: str) -> CustomType:
        for custom_type in model["types"]:
            if custom_type["id"] == type_id:
                return custom_type
        raise UnknownReferenceError("type", type_id)

    # Whole model

    def load(self, model: Model) -> None:
        """Replace the live model with a validated external model."""
        loaded = load_model(model)
        self._model = loaded
        self._selection = initial_selection(loaded)
        self._history.clear()
        logger.info("Loaded model with %d tables", len(loaded["tables"]))

    def reset(self) -> None:
        """Start over from an empty model."""
        self._model = new_model(self.settings)
        self._selection = initial_selection(self._model)
        self._history.clear()

    def undo(self) -> bool:
        """Restore the most recent snapshot. Returns ``False`` if none exists."""
        snapshot = self._history.pop()
        if snapshot is None:
            return False
        self._model = snapshot.model
        self._selection = repair_selection(snapshot.model, snapshot.selection)
        logger.info("Restored snapshot, %d remaining", len(self._history))
        return True

    # Selection

    def select_schema(self, schema_id: str | None) -> None:
        """Select a schema, or clear the schema selection."""
        if schema_id is not None:
            self._schema(self._model, schema_id)
        self._selection = self._selection._replace(schema_id=schema_id)

    def select_table(self, table_id: str | None) -> None:
        """Select a table and clear the column selection."""
        if table_id is not None:
            self._table(self._model, table_id)
        self._selection = self._selection._replace(table_id=table_id, column_id=None)

    def select_column(self, column_id: str | None) -> None:
        """Select a column of any table."""
        if column_id is not None and not any(
            column["id"] == column_id
            for table in self._model["tables"]
            for column in table["columns"]
        ):
            raise UnknownReferenceError("column", column_id)
        self._selection = self._selection._replace(column_id=column_id)

    # Schemas

    def add_schema(self, name: str) -> str:
        """Create a schema with a de-duplicated name and select it."""
        with self._edit() as draft:
            schema: Schema = {
                "id": new_id(),
                "name": ensure_unique_name(
                    name,
                    (item["name"] for item in draft["schemas"]),
                ),
            }
            draft["schemas"].append(schema)
        self._select(schema_id=schema["id"])
        logger.debug("Added schema %s", schema["name"])
        return schema["id"]

    def update_schema(self, schema_id: str, **patch: Unpack[SchemaPatch]) -> None:
        """Update schema fields, de-duplicating a new name."""
        patch = _check_patch(patch, SchemaPatch, "schema")
        with self._edit() as draft:
            schema = self._schema(draft, schema_id)
            if "name" in patch:
                patch["name"] = ensure_unique_name(
                    patch["name"],
                    (item["name"] for item in draft["schemas"] if item is not schema),
                )
            schema.update(patch)

    def remove_schema(self, schema_id: str) -> None:
        """Remove a schema with its tables and types; the last schema is kept."""
        self._schema(self._model, schema_id)
        if len(self._model["schemas"]) <= 1:
            logger.debug("Refusing to remove the last schema %s", schema_id)
            return

        with self._edit(undoable=True) as draft:
            removed = {t["id"] for t in draft["tables"] if t["schema_id"] == schema_id}
            draft["schemas"] = [s for s in draft["schemas"] if s["id"] != schema_id]
            draft["tables"] = [t for t in draft["tables"] if t["id"] not in removed]
            draft["types"] = [t for t in draft["types"] if t["schema_id"] != schema_id]
            drop_table_references(draft["tables"], removed)
        logger.debug("Removed schema %s and %d tables", schema_id, len(removed))

    # Tables

    def add_table(
        self,
        schema_id: str,
        name: str | None = None,
        position: Position | None = None,
    ) -> str:
        """Create a table with an identity primary key column and select it."""
        settings = self.settings
        with self._edit() as draft:
            self._schema(draft, schema_id)
            siblings = [
                t["name"] for t in draft["tables"] if t["schema_id"] == schema_id
            ]
            table: Table = {
                "id": new_id(),
                "schema_id": schema_id,
                "name": ensure_unique_name(
                    name or settings.default_table_name,
                    siblings,
                ),
                "columns": [
                    {
                        "id": new_id(),
                        "name": settings.primary_key_name,
                        "type": settings.primary_key_type,
                        "nullable": False,
                        "is_primary_key": True,
                        "is_unique": True,
                        "is_indexed": False,
                    },
                ],
                "foreign_keys": [],
            }
            if position is not None:
                table["position"] = deepcopy(position)
            draft["tables"].append(table)
        self._select(table_id=table["id"], column_id=None)
        logger.debug("Added table %s", table["name"])
        return table["id"]

    def update_table(self, table_id: str, **patch: Unpack[TablePatch]) -> None:
        """Update table fields; a new name is de-duplicated within its schema."""
        patch = _check_patch(patch, TablePatch, "table")
        with self._edit() as draft:
            table = self._table(draft, table_id)
            schema_id = patch.get("schema_id", table["schema_id"])
            self._schema(draft, schema_id)
            if "name" in patch or schema_id != table["schema_id"]:
                patch["name"] = ensure_unique_name(
                    patch.get("name", table["name"]),
                    (
                        item["name"]
                        for item in draft["tables"]
                        if item["schema_id"] == schema_id and item is not table
                    ),
                )
            table.update(patch)

    def remove_table(self, table_id: str) -> None:
        """Remove a table and every foreign key pointing at it. Undoable."""
        self._table(self._model, table_id)
        with self._edit(undoable=True) as draft:
            draft["tables"] = [t for t in draft["tables"] if t["id"] != table_id]
            drop_table_references(draft["tables"], {table_id})
        logger.debug("Removed table %s", table_id)

    def set_table_position(self, table_id: str, position: Position) -> None:
        """Move one table on the canvas."""
        with self._edit() as draft:
            self._table(draft, table_id)["position"] = deepcopy(position)

    def set_table_positions(self, positions: Mapping[str, Position]) -> None:
        """Move several tables at once; unknown ids are ignored."""
        with self._edit() as draft:
            for table in draft["tables"]:
                if table["id"] in positions:
                    table["position"] = deepcopy(positions[table["id"]])

    # Columns

    def add_column(
        self,
        table_id: str,
        name: str | None = None,
        *,
        column_type: str | None = None,
        nullable: bool = True,
    ) -> str:
        """Append a column with a de-duplicated name and select it."""
        with self._edit() as draft:
            table = self._table(draft, table_id)
            column: Column = {
                "id": new_id(),
                "name": ensure_unique_name(
                    name or self.settings.default_column_name,
                    (col["name"] for col in table["columns"]),
                    ignore_case=True,
                ),
                "type": column_type or self.settings.column_type,
                "nullable": nullable,
                "is_primary_key": False,
                "is_unique": False,
                "is_indexed": False,
            }
            table["columns"].append(column)
        self._select(table_id=table_id, column_id=column["id"])
        logger.debug("Added column %s.%s", table["name"], column["name"])
        return column["id"]

    def update_column(
        self,
        table_id: str,
        column_id: str,
        **patch: Unpack[ColumnPatch],
    ) -> None:
        """Update column fields; a new name is de-duplicated within the table."""
        patch = _check_patch(patch, ColumnPatch, "column")
        with self._edit() as draft:
            table = self._table(draft, table_id)
            column = self._column(table, column_id)
            if "name" in patch:
                patch["name"] = ensure_unique_name(
                    patch["name"],
                    (col["name"] for col in table["columns"] if col is not column),
                    ignore_case=True,
                )
            column.update(patch)

    def remove_column(self, table_id: str, column_id: str) -> None:
        """Remove a column and every foreign key using it. Undoable."""
        self._column(self._table(self._model, table_id), column_id)
        with self._edit(undoable=True) as draft:
            table = self._table(draft, table_id)
            table["columns"] = [c for c in table["columns"] if c["id"] != column_id]
            drop_column_references(draft["tables"], table, column_id)
        logger.debug("Removed column %s from table %s", column_id, table_id)

    def move_column(self, table_id: str, column_id: str, target_column_id: str) -> None:
        """Move a column to the position held by `target_column_id`."""
        table = self._table(self._model, table_id)
        ids = [column["id"] for column in table["columns"]]
        if column_id == target_column_id:
            return
        if column_id not in ids or target_column_id not in ids:
            return

        with self._edit() as draft:
            columns = self._table(draft, table_id)["columns"]
            moved = columns.pop(ids.index(column_id))
            columns.insert(ids.index(target_column_id), moved)

    # Foreign keys

    def _check_references(
        self,
        model: Model,
        table: Table,
        fk: ForeignKey | ForeignKeyPatch,
    ) -> Table:
        self._column(table, fk["from_column_id"])
        target = self._table(model, fk["to_table_id"])
        self._column(target, fk["to_column_id"])
        return target

    def add_foreign_key(
        self,
        table_id: str,
        *,
        from_column_id: str,
        to_table_id: str,
        to_column_id: str,
        name: str | None = None,
        on_delete: ReferentialAction | None = None,
        on_update: ReferentialAction | None = None,
        comment: str | None = None,
        start_cardinality: CardinalityHint | None = None,
        end_cardinality: CardinalityHint | None = None,
    ) -> str:
        """Add a foreign key to `table_id` and return its id.

        The constraint name is sanitized and de-duplicated against the other
        foreign keys of the table; without a name one is derived from the
        table, column and target names. Cardinality hints are normalized.
        """
        with self._edit() as draft:
            table = self._table(draft, table_id)
            fk: ForeignKey = {
                "id": new_id(),
                "name": "",
                "from_column_id": from_column_id,
                "to_table_id": to_table_id,
                "to_column_id": to_column_id,
            }
            target = self._check_references(draft, table, fk)
            fallback = fallback_constraint_name(fk["id"])
            if name is None:
                source = self._column(table, from_column_id)
                base = build_constraint_name(
                    [table["name"], source["name"], target["name"], "fk"],
                    fallback,
                )
            else:
                base = sanitize_constraint_name(name, fallback)
            fk["name"] = ensure_unique_constraint_name(
                base,
                (item["name"] for item in table["foreign_keys"]),
            )

            if on_delete:
                fk["on_delete"] = on_delete
            if on_update:
                fk["on_update"] = on_update
            if comment:
                fk["comment"] = comment
            if start := normalize_hint(start_cardinality):
                fk["start_cardinality"] = start
            if end := normalize_hint(end_cardinality):
                fk["end_cardinality"] = end
            table["foreign_keys"].append(fk)
        logger.debug("Added foreign key %s on table %s", fk["name"], table["name"])
        return fk["id"]

    def update_foreign_key(
        self,
        table_id: str,
        fk_id: str,
        **patch: Unpack[ForeignKeyPatch],
    ) -> None:
        """Update a foreign key, re-deriving its name and cardinality hints."""
        patch = _check_patch(patch, ForeignKeyPatch, "foreign key")
        with self._edit() as draft:
            table = self._table(draft, table_id)
            fk = self._foreign_key(table, fk_id)
            if "name" in patch:
                base = sanitize_constraint_name(patch["name"], fk["name"])
                patch["name"] = ensure_unique_constraint_name(
                    base,
                    (item["name"] for item in table["foreign_keys"] if item is not fk),
                )
            for key in ("start_cardinality", "end_cardinality"):
                if key in patch:
                    patch[key] = normalize_hint(patch[key])  # type: ignore[literal-required]
            fk.update(patch)  # type: ignore[typeddict-item]
            self._check_references(draft, table, fk)

    def remove_foreign_key(self, table_id: str, fk_id: str) -> None:
        """Remove a foreign key; nothing depends on it."""
        with self._edit() as draft:
            table = self._table(draft, table_id)
            table["foreign_keys"] = [
                fk for fk in table["foreign_keys"] if fk["id"] != fk_id
            ]

    def convert_foreign_key_to_many_to_many(self, table_id: str, fk_id: str) -> bool:
        """Replace a foreign key with a junction table and select it.

        Returns ``False`` without touching the model when the conversion is
        not possible.
        """
        result = convert_to_many_to_many(self._model, table_id, fk_id)
        if result is None:
            logger.debug("Cannot convert foreign key %s to many-to-many", fk_id)
            return False

        converted = result.model
        tables = {table["id"]: table for table in converted["tables"]}
        source = tables[result.source_id]
        target = tables[result.target_id]
        layout = junction_layout(
            source.get("position"),
            target.get("position"),
            self.settings.layout_spacing,
        )
        source["position"] = layout.source
        target["position"] = layout.target
        tables[result.junction_id]["position"] = layout.junction

        self._model = converted
        self._select(table_id=result.junction_id, column_id=result.left_column_id)
        logger.debug("Converted foreign key %s into %s", fk_id, result.junction_id)
        return True

    # Types

    def add_type(
        self,
        schema_id: str,
        name: str,
        values: list[str],
        comment: str | None = None,
    ) -> str:
        """Create an enum type with a name unique within its schema."""
        if not values or not all(values):
            msg = "Enum types need at least one non-empty value"
            raise ValueError(msg)

        with self._edit() as draft:
            self._schema(draft, schema_id)
            custom_type: CustomType = {
                "id": new_id(),
                "schema_id": schema_id,
                "name": ensure_unique_name(
                    name,
                    (t["name"] for t in draft["types"] if t["schema_id"] == schema_id),
                ),
                "kind": "enum",
                "values": list(values),
            }
            if comment:
                custom_type["comment"] = comment
            draft["types"].append(custom_type)
        logger.debug("Added enum type %s", custom_type["name"])
        return custom_type["id"]

    def update_type(self, type_id: str, **patch: Unpack[TypePatch]) -> None:
        """Update an enum type. Columns using the old name are not touched."""
        patch = _check_patch(patch, TypePatch, "type")
        if "values" in patch and not (patch["values"] and all(patch["values"])):
            msg = "Enum types need at least one non-empty value"
            raise ValueError(msg)

        with self._edit() as draft:
            custom_type = self._type(draft, type_id)
            if "name" in patch:
                patch["name"] = ensure_unique_name(
                    patch["name"],
                    (
                        t["name"]
                        for t in draft["types"]
                        if t["schema_id"] == custom_type["schema_id"]
                        and t is not custom_type
                    ),
                )
            custom_type.update(patch)

    def remove_type(self, type_id: str) -> None:
        """Remove an enum type. Columns using it keep their type name."""
        with self._edit() as draft:
            self._type(draft, type_id)
            draft["types"] = [t for t in draft["types"] if t["id"] != type_id]
