"""Tree building engine for robust markup parsing.

This module provides a tree builder that constructs a document tree from token
streams using an explicit open-element stack, plus text renderings of the
finished tree.

Key Components:
    TreeBuilder: Configured tree construction returning a ParseResult
    build: Convenience function returning only the root element
    Element: Element node owning its ordered children
    TextNode: Text node holding a run of character content
    ParseResult: Tree, tokens, diagnostics and metrics of one parse
"""

from .builder import (
    ROOT_TAG,
    Element,
    Node,
    ParseResult,
    TextNode,
    TreeBuilder,
    build,
)
from .printer import render_tokens, render_tree, serialize

__all__ = [
    "ROOT_TAG",
    "Element",
    "Node",
    "ParseResult",
    "TextNode",
    "TreeBuilder",
    "build",
    "render_tokens",
    "render_tree",
    "serialize",
]
