"""Exceptions raised by the model packages."""

from collections.abc import Iterable
from typing import NamedTuple


class Problem(NamedTuple):
    """A single defect found in a model, located by a dotted path."""

    path: str
    message: str


class UnknownReferenceError(ValueError):
    """An operation referenced an entity id that does not exist."""

    def __init__(self, kind: str, entity_id: str | None) -> None:
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"Unknown {kind}: {entity_id}")


class ModelValidationError(ValueError):
    """An externally supplied model was rejected."""

    def __init__(self, problems: Iterable[Problem]) -> None:
        self.problems = tuple(problems)
        details = "; ".join(f"{path}: {message}" for path, message in self.problems)
        super().__init__(f"Invalid model: {details}")
