"""Tests for the sprite masking operation."""
