"""DDL generation for the relational model."""

from ddl.generator import model_to_sql, quote_ident, quote_literal
from ddl.html_export import model_to_html, relationship_rows
from ddl.ordering import topological_order

__all__ = [
    "model_to_html",
    "model_to_sql",
    "quote_ident",
    "quote_literal",
    "relationship_rows",
    "topological_order",
]
