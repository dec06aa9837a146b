"""Rendering and path handling."""
