"""Placement of a junction table between the two tables it connects."""

from typing import NamedTuple

from dbmodel.types import Position


class JunctionLayout(NamedTuple):
    """Positions of source, junction and target on one horizontal lane."""

    source: Position
    junction: Position
    target: Position


def junction_layout(
    source: Position | None,
    target: Position | None,
    spacing: float,
) -> JunctionLayout:
    """Lay out source, junction and target left to right.

    With both positions known the junction is centered between them, and the
    pair is spread symmetrically around its midpoint when they sit closer than
    two spacings. A single known position anchors the other two tables.
    """
    lane = source["y"] if source else target["y"] if target else 0.0

    if source and target:
        center = (source["x"] + target["x"]) / 2
        if abs(target["x"] - source["x"]) < spacing * 2:
            source_x, target_x = center - spacing, center + spacing
        else:
            source_x, target_x = source["x"], target["x"]
        junction_x = (source_x + target_x) / 2
    elif source:
        source_x = source["x"]
        junction_x = source_x + spacing
        target_x = junction_x + spacing
    elif target:
        target_x = target["x"]
        junction_x = target_x - spacing
        source_x = junction_x - spacing
    else:
        source_x, junction_x, target_x = -spacing, 0.0, spacing

    return JunctionLayout(
        source={"x": source_x, "y": lane},
        junction={"x": junction_x, "y": lane},
        target={"x": target_x, "y": lane},
    )
