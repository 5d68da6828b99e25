"""Sprite sheet file formats."""

from sheet_toolbox.formats.dmi import load_sprite_sheet, save_sprite_sheet

__all__ = ["load_sprite_sheet", "save_sprite_sheet"]
