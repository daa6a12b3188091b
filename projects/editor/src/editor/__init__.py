"""Mutation engine for the relational model."""

from editor.history import Snapshot, UndoHistory
from editor.layout import JunctionLayout, junction_layout
from editor.many_to_many import convert_to_many_to_many, pick_reference_column
from editor.selection import Selection
from editor.settings import EditorSettings, load_settings
from editor.store import ModelStore, new_model

__all__ = [
    "EditorSettings",
    "JunctionLayout",
    "ModelStore",
    "Selection",
    "Snapshot",
    "UndoHistory",
    "convert_to_many_to_many",
    "junction_layout",
    "load_settings",
    "new_model",
    "pick_reference_column",
]
