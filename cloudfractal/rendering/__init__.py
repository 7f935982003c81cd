"""Palette coloring and PNG export."""
