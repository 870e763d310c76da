"""Helpers shared by the analysis passes."""

from .ast_helpers import get_line_number, get_node_text
from .rendering import render, render_declaration

__all__ = [
    "get_line_number",
    "get_node_text",
    "render",
    "render_declaration",
]
