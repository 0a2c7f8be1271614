"""Command-line interface module for robust markup parsing.

This module provides the robust-markup tool for listing tokens, printing
document trees and reporting diagnostics for markup files.
"""

from .main import main

__all__ = ["main"]
