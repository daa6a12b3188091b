"""Dependency ordering of tables for DDL emission."""

from collections.abc import Callable, Sequence
from heapq import heappop, heappush

from dbmodel.types import Table

type SortKey = tuple[str, str, int]


def topological_order(
    tables: Sequence[Table],
    schema_name: Callable[[str], str],
) -> list[Table]:
    """Order tables so each one follows the tables it references.

    Kahn's algorithm with a ready queue ordered by ``(schema, table)`` name.
    Self references and references to unknown tables are not dependencies.
    Tables left over by a cycle are appended in ``(schema, table)`` order.
    The result depends only on the input, never on hashing or timing.
    """
    index_by_id = {table["id"]: index for index, table in enumerate(tables)}

    def key(index: int) -> SortKey:
        table = tables[index]
        return (schema_name(table["schema_id"]), table["name"], index)

    pending: dict[int, set[int]] = {}
    dependents: dict[int, set[int]] = {index: set() for index in range(len(tables))}
    for index, table in enumerate(tables):
        pending[index] = {
            index_by_id[fk["to_table_id"]]
            for fk in table["foreign_keys"]
            if fk["to_table_id"] in index_by_id and fk["to_table_id"] != table["id"]
        }
        for dependency in pending[index]:
            dependents[dependency].add(index)

    ready: list[SortKey] = []
    for index, dependencies in pending.items():
        if not dependencies:
            heappush(ready, key(index))

    ordered: list[int] = []
    while ready:
        *_, current = heappop(ready)
        ordered.append(current)
        for dependent in dependents[current]:
            pending[dependent].discard(current)
            if not pending[dependent]:
                heappush(ready, key(dependent))

    emitted = set(ordered)
    leftovers = sorted(
        (index for index in range(len(tables)) if index not in emitted),
        key=key,
    )
    return [tables[index] for index in (*ordered, *leftovers)]
