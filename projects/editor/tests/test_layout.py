"""Tests for junction table placement."""

from editor.layout import JunctionLayout, junction_layout

SPACING = 320.0


def test_no_known_positions() -> None:
    """Test the default lane around the origin."""
    assert junction_layout(None, None, SPACING) == JunctionLayout(
        source={"x": -320.0, "y": 0.0},
        junction={"x": 0.0, "y": 0.0},
        target={"x": 320.0, "y": 0.0},
    )


def test_far_apart_tables_keep_their_place() -> None:
    """Test that the junction is centered between distant tables."""
    layout = junction_layout({"x": 0.0, "y": 40.0}, {"x": 1000.0, "y": 90.0}, SPACING)
    assert layout.source == {"x": 0.0, "y": 40.0}
    assert layout.junction == {"x": 500.0, "y": 40.0}
    assert layout.target == {"x": 1000.0, "y": 40.0}


def test_close_tables_are_spread() -> None:
    """Test that tables closer than two spacings move apart symmetrically."""
    layout = junction_layout({"x": 0.0, "y": 10.0}, {"x": 100.0, "y": 50.0}, SPACING)
    assert layout.source == {"x": -270.0, "y": 10.0}
    assert layout.junction == {"x": 50.0, "y": 10.0}
    assert layout.target == {"x": 370.0, "y": 10.0}


def test_only_source_known() -> None:
    """Test that a known source anchors the lane to its right."""
    layout = junction_layout({"x": 100.0, "y": 5.0}, None, SPACING)
    assert [p["x"] for p in layout] == [100.0, 420.0, 740.0]
    assert {p["y"] for p in layout} == {5.0}


def test_only_target_known() -> None:
    """Test that a known target anchors the lane to its left."""
    layout = junction_layout(None, {"x": 500.0, "y": 7.0}, SPACING)
    assert [p["x"] for p in layout] == [-140.0, 180.0, 500.0]
    assert {p["y"] for p in layout} == {7.0}
