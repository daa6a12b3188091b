"""Tests for loading editor settings."""

from pathlib import Path

import pytest

from editor.settings import EditorSettings, load_settings


def test_packaged_defaults() -> None:
    """Test that the shipped defaults match the built-in values."""
    assert load_settings() == EditorSettings()
    assert load_settings().undo_depth == 20
    assert load_settings().layout_spacing == 320.0


def test_partial_override(tmp_path: Path) -> None:
    """Test that missing keys keep their defaults."""
    settings_file = tmp_path / "editor.toml"
    settings_file.write_text("[editor]\nundo_depth = 5\n", encoding="utf-8")
    settings = load_settings(settings_file)
    assert settings.undo_depth == 5
    assert settings.default_table_name == "table"


def test_missing_table_uses_defaults(tmp_path: Path) -> None:
    """Test that a file without an editor table is accepted."""
    settings_file = tmp_path / "empty.toml"
    settings_file.write_text("", encoding="utf-8")
    assert load_settings(settings_file) == EditorSettings()


def test_unknown_key(tmp_path: Path) -> None:
    """Test that typos in the settings file are reported."""
    settings_file = tmp_path / "editor.toml"
    settings_file.write_text("[editor]\nundo_dept = 5\n", encoding="utf-8")
    with pytest.raises(ValueError, match="undo_dept"):
        load_settings(settings_file)


def test_non_positive_undo_depth(tmp_path: Path) -> None:
    """Test that the history must hold at least one snapshot."""
    settings_file = tmp_path / "editor.toml"
    settings_file.write_text("[editor]\nundo_depth = 0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Undo depth"):
        load_settings(settings_file)
