"""TypedDict schemas for the relational model edited by the workspace."""

from typing import Literal, NotRequired, TypedDict

type Id = str

# Binary multiplicity of one end of a relationship
type Cardinality = Literal["one", "many"]

# Richer vocabulary accepted from external producers (crow's foot notation)
type CardinalityHint = Literal[
    "one",
    "many",
    "one_and_only_one",
    "zero_or_one",
    "one_or_many",
    "zero_or_many",
]

type ReferentialAction = Literal[
    "NO ACTION",
    "RESTRICT",
    "CASCADE",
    "SET NULL",
    "SET DEFAULT",
]


class Position(TypedDict):
    """Canvas coordinates of a table."""

    x: float
    y: float


class Column(TypedDict):
    """Column owned by a single table."""

    id: Id
    name: str
    type: str
    nullable: bool
    default_value: NotRequired[str | None]
    is_primary_key: bool
    is_unique: bool
    is_indexed: bool
    comment: NotRequired[str | None]


class ForeignKey(TypedDict):
    """Named constraint binding a column of the owning table to another column."""

    id: Id
    name: str
    from_column_id: Id  # Column of the owning table
    to_table_id: Id
    to_column_id: Id
    on_delete: NotRequired[ReferentialAction | None]
    on_update: NotRequired[ReferentialAction | None]
    comment: NotRequired[str | None]
    # Stored overrides of inferred cardinality
    start_cardinality: NotRequired[CardinalityHint | None]
    end_cardinality: NotRequired[CardinalityHint | None]


class Table(TypedDict):
    """Table in a schema. Column order is the declared order."""

    id: Id
    schema_id: Id
    name: str
    comment: NotRequired[str | None]
    columns: list[Column]
    foreign_keys: list[ForeignKey]
    position: NotRequired[Position | None]


class Schema(TypedDict):
    """Named namespace grouping tables and types."""

    id: Id
    name: str
    comment: NotRequired[str | None]


class EnumType(TypedDict):
    """Enum type with its values in declaration order."""

    id: Id
    schema_id: Id
    name: str
    kind: Literal["enum"]
    values: list[str]
    comment: NotRequired[str | None]


# Only enums are supported as custom types for now
type CustomType = EnumType


class Model(TypedDict):
    """Root aggregate exchanged with every external collaborator."""

    version: Literal[1]
    schemas: list[Schema]
    tables: list[Table]
    types: list[CustomType]
