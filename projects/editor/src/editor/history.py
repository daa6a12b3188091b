"""Bounded undo history of model snapshots."""

from collections import deque
from copy import deepcopy
from typing import NamedTuple

from dbmodel.types import Model

from editor.selection import Selection


class Snapshot(NamedTuple):
    """Pre-image of a destructive mutation."""

    model: Model
    selection: Selection


class UndoHistory:
    """Last-in first-out stack that forgets its oldest entries past `depth`."""

    def __init__(self, depth: int) -> None:
        """Create an empty history holding at most `depth` snapshots."""
        self._snapshots: deque[Snapshot] = deque(maxlen=depth)

    def __len__(self) -> int:
        """Return the number of stored snapshots."""
        return len(self._snapshots)

    @property
    def depth(self) -> int | None:
        """Return the maximum number of snapshots kept."""
        return self._snapshots.maxlen

    def push(self, model: Model, selection: Selection) -> None:
        """Store a private copy of the model so later edits cannot alias it."""
        self._snapshots.append(Snapshot(deepcopy(model), selection))

    def pop(self) -> Snapshot | None:
        """Remove and return the most recent snapshot, if any."""
        return self._snapshots.pop() if self._snapshots else None

    def clear(self) -> None:
        """Forget every snapshot."""
        self._snapshots.clear()
