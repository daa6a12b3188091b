"""Identifier generation and name de-duplication helpers."""

import re
from collections.abc import Iterable
from uuid import uuid4

PLACEHOLDER_NAME = "unnamed"
DEFAULT_CONSTRAINT_NAME = "constraint"

# PostgreSQL truncates identifiers longer than this
MAX_IDENTIFIER_LENGTH = 63

CONSTRAINT_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_INVALID_CONSTRAINT_CHARS = re.compile(r"[^A-Za-z0-9_]+")
_REPEATED_UNDERSCORES = re.compile(r"_{2,}")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])|([A-Z])([A-Z][a-z])")
_WORD_SEPARATORS = re.compile(r"[\W_]+")


def new_id() -> str:
    """Generate an opaque identifier, unique for all practical purposes."""
    return str(uuid4())


def ensure_unique_name(
    base: str,
    existing_names: Iterable[str],
    *,
    ignore_case: bool = False,
) -> str:
    """Return `base`, or `base_N` with the smallest N >= 2 that does not collide.

    With `ignore_case` names differing only in case collide, the rule used for
    column names.
    """
    fold = str.lower if ignore_case else str
    name = base.strip() or PLACEHOLDER_NAME
    taken = {fold(existing) for existing in existing_names}
    if fold(name) not in taken:
        return name

    counter = 2
    while fold(f"{name}_{counter}") in taken:
        counter += 1
    return f"{name}_{counter}"


def _clean_constraint_name(candidate: str) -> str:
    cleaned = _INVALID_CONSTRAINT_CHARS.sub("_", candidate.strip())
    cleaned = _REPEATED_UNDERSCORES.sub("_", cleaned).strip("_")
    return cleaned[:MAX_IDENTIFIER_LENGTH].rstrip("_")


def is_valid_constraint_name(name: str) -> bool:
    """Check that a name is usable as an unquoted constraint identifier."""
    return (
        len(name) <= MAX_IDENTIFIER_LENGTH
        and CONSTRAINT_NAME_PATTERN.match(name) is not None
    )


def sanitize_constraint_name(candidate: str | None, fallback: str) -> str:
    """Normalize free text into a constraint name, or fall back.

    Runs of characters outside ``[A-Za-z0-9_]`` become a single underscore,
    leading and trailing underscores are dropped and the result is truncated
    to the identifier limit. When nothing valid remains the (equally cleaned)
    fallback is used instead, so the function is idempotent for every input.
    """
    cleaned = _clean_constraint_name(candidate or "")
    if is_valid_constraint_name(cleaned):
        return cleaned

    cleaned_fallback = _clean_constraint_name(fallback)
    if is_valid_constraint_name(cleaned_fallback):
        return cleaned_fallback
    return DEFAULT_CONSTRAINT_NAME


def ensure_unique_constraint_name(base: str, existing_names: Iterable[str]) -> str:
    """De-duplicate a constraint name against the names used in one table."""
    return ensure_unique_name(base, existing_names)


def to_snake_case(text: str) -> str:
    """Convert labels such as ``OrderItems`` or ``order items`` to ``order_items``.

    Returns an empty string only when `text` has no alphanumeric character.
    """
    split = _CAMEL_BOUNDARY.sub(r"\1\3_\2\4", text).lower()
    return _WORD_SEPARATORS.sub("_", split).strip("_")


def build_constraint_name(parts: Iterable[str], fallback: str) -> str:
    """Join snake-cased parts into a sanitized constraint name."""
    joined = "_".join(token for part in parts if (token := to_snake_case(part)))
    return sanitize_constraint_name(joined, fallback)
