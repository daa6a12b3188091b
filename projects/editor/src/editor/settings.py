"""Editor settings loaded from the packaged defaults file."""

from pathlib import Path
from tomllib import load
from typing import NamedTuple


class EditorSettings(NamedTuple):
    """Tunable defaults of the model editor."""

    undo_depth: int = 20
    layout_spacing: float = 320.0
    default_schema_name: str = "public"
    default_table_name: str = "table"
    default_column_name: str = "column"
    column_type: str = "text"
    primary_key_name: str = "id"
    primary_key_type: str = "uuid"


SETTINGS_FILE = Path(__file__).parent / "defaults.toml"


def load_settings(settings_file: Path = SETTINGS_FILE) -> EditorSettings:
    """Load editor settings from a TOML file with an ``[editor]`` table."""
    with settings_file.open("rb") as f:
        values = load(f).get("editor", {})

    if unknown := set(values) - set(EditorSettings._fields):
        msg = f"Unknown editor settings: {', '.join(sorted(unknown))}"
        raise ValueError(msg)

    settings = EditorSettings(**values)
    if settings.undo_depth < 1:
        msg = f"Undo depth must be positive, got {settings.undo_depth}"
        raise ValueError(msg)
    return settings
