"""Sprite masking operation — splits base states by the alpha of their mask states."""

from sheet_toolbox.operations.sprite_masking.operation import SpriteMaskingOperation

__all__ = ["SpriteMaskingOperation"]
