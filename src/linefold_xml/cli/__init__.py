"""Command-line interface module for linefold-xml.

This module provides the ``linefold-xml`` tool for checking, re-formatting
and inspecting line-folded XML files.
"""

from .main import main

__all__ = ["main"]
