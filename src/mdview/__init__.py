"""mdview - Markdown viewer with live reload."""

__version__ = "0.1.1"
