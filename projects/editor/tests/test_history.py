"""Tests for the bounded undo history."""

from dbmodel.types import Model
from editor.history import UndoHistory
from editor.selection import Selection


def make_model(name: str) -> Model:
    """Model with a single schema called `name`."""
    return {
        "version": 1,
        "schemas": [{"id": name, "name": name}],
        "tables": [],
        "types": [],
    }


def test_pop_returns_latest() -> None:
    """Test last-in first-out order."""
    history = UndoHistory(5)
    history.push(make_model("first"), Selection())
    history.push(make_model("second"), Selection(schema_id="second"))

    snapshot = history.pop()
    assert snapshot is not None
    assert snapshot.model["schemas"][0]["name"] == "second"
    assert snapshot.selection.schema_id == "second"
    assert len(history) == 1


def test_pop_empty() -> None:
    """Test that an empty history has nothing to restore."""
    assert UndoHistory(1).pop() is None


def test_oldest_snapshots_are_dropped() -> None:
    """Test that pushing past the depth forgets the oldest entry."""
    history = UndoHistory(2)
    for name in ("a", "b", "c"):
        history.push(make_model(name), Selection())

    assert len(history) == 2
    assert history.depth == 2
    newest, older = history.pop(), history.pop()
    assert newest is not None
    assert older is not None
    assert newest.model["schemas"][0]["name"] == "c"
    assert older.model["schemas"][0]["name"] == "b"
    assert history.pop() is None


def test_push_copies_model() -> None:
    """Test that later edits of the source do not reach the snapshot."""
    history = UndoHistory(1)
    model = make_model("original")
    history.push(model, Selection())
    model["schemas"][0]["name"] = "changed"

    snapshot = history.pop()
    assert snapshot is not None
    assert snapshot.model["schemas"][0]["name"] == "original"


def test_clear() -> None:
    """Test forgetting all snapshots."""
    history = UndoHistory(3)
    history.push(make_model("a"), Selection())
    history.clear()
    assert len(history) == 0
