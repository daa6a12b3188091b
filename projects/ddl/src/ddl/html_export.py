"""HTML preview of a model and its generated DDL."""

from pathlib import Path
from typing import TypedDict

from dbmodel.cardinality import relationship_kinds
from dbmodel.types import Model
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ddl.generator import model_to_sql

TEMPLATE_DIR = Path(__file__).parent / "templates"


class RelationshipRow(TypedDict):
    """One foreign key as shown in the preview."""

    name: str
    source: str
    target: str
    start: str
    end: str


def relationship_rows(model: Model) -> list[RelationshipRow]:
    """Describe every resolvable foreign key with its effective cardinality."""
    tables = {table["id"]: table for table in model["tables"]}
    rows: list[RelationshipRow] = []
    for table in model["tables"]:
        columns = {column["id"]: column["name"] for column in table["columns"]}
        for fk in table["foreign_keys"]:
            target = tables.get(fk["to_table_id"])
            if target is None or fk["from_column_id"] not in columns:
                continue
            target_columns = {col["id"]: col["name"] for col in target["columns"]}
            if fk["to_column_id"] not in target_columns:
                continue
            kinds = relationship_kinds(model, table, fk)
            rows.append(
                {
                    "name": fk["name"],
                    "source": f"{table['name']}.{columns[fk['from_column_id']]}",
                    "target": f"{target['name']}.{target_columns[fk['to_column_id']]}",
                    "start": kinds.start,
                    "end": kinds.end,
                },
            )
    return rows


def model_to_html(model: Model, title: str = "Schema preview") -> str:
    """Render a standalone HTML page with tables, relationships and DDL."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("preview.html")
    schema_names = {schema["id"]: schema["name"] for schema in model["schemas"]}

    return template.render(
        title=title,
        schemas=model["schemas"],
        tables=model["tables"],
        types=model["types"],
        schema_names=schema_names,
        relationships=relationship_rows(model),
        sql=model_to_sql(model),
    )
