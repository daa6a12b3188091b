"""Relational model types, naming rules and import validation."""

from dbmodel.cardinality import (
    Kinds,
    infer_cardinality,
    normalize_cardinality,
    relationship_kinds,
)
from dbmodel.errors import ModelValidationError, Problem, UnknownReferenceError
from dbmodel.reflection import read_only_sqlite, sqlite_to_model
from dbmodel.validation import find_problems, load_model, parse_model, sanitize_model

__all__ = [
    "Kinds",
    "ModelValidationError",
    "Problem",
    "UnknownReferenceError",
    "find_problems",
    "infer_cardinality",
    "load_model",
    "normalize_cardinality",
    "parse_model",
    "read_only_sqlite",
    "relationship_kinds",
    "sanitize_model",
    "sqlite_to_model",
]
