"""Enum detection from CHECK constraints of reflected tables."""

import re

# Reusable regex components for better readability
IDENTIFIER = r"[\"'`\[]?(\w+)[\"'`\]]?"  # Identifier inside optional quotes
VALUE = r"'((?:[^']|'')*)'"  # Single quoted literal, quotes escaped by doubling
WHITESPACE = r"\s*"
OPEN_PAREN = r"\("
CLOSE_PAREN = r"\)"
IN = r"IN"
VALUES = r"((?:'(?:[^']|'')*'|[^)'])+)"

IN_PATTERN = re.compile(
    WHITESPACE.join((IDENTIFIER, IN, OPEN_PAREN, VALUES, CLOSE_PAREN)),
    re.IGNORECASE,
)


def detect_enum_values(constraint_text: str, column_name: str) -> list[str]:
    """Return the literal values of ``column IN ('a', 'b')`` for one column.

    Every IN clause of the constraint is inspected, so combined constraints
    such as ``a IN ('x') AND b IN ('y')`` resolve per column. Lists holding
    anything other than string literals are not enums.
    """
    for match in IN_PATTERN.finditer(constraint_text):
        if match[1] != column_name:
            continue
        values = [value.replace("''", "'") for value in re.findall(VALUE, match[2])]
        leftover = re.sub(VALUE, "", match[2]).replace(",", "").strip()
        return values if values and not leftover else []
    return []


def enum_type_name(table_name: str, column_name: str) -> str:
    """Name given to an enum type discovered on a column."""
    return f"{table_name}_{column_name}"
