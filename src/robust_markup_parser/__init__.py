"""Robust Markup Parser.

A forgiving markup tokenizer and stack-based tree builder. Any input string,
however malformed, produces a token sequence and a document tree rooted at a
synthetic ``document`` element; structural problems are reported as
diagnostics instead of exceptions.

Progressive API Disclosure:
- Level 1: Simple functions - tokenize(), build(), parse_string(), parse_file()
- Level 2: Configured parser - MarkupParser class with ParserConfig
"""

__version__ = "0.1.0"
__author__ = "Robust Markup Parser Team"

# Progressive API disclosure - Level 1: Simple functions
from .tokenization import Token, TokenType, tokenize
from .tree import (
    Element,
    ParseResult,
    TextNode,
    build,
    render_tokens,
    render_tree,
    serialize,
)

# Progressive API disclosure - Level 2: Advanced configuration
from .api import MarkupParser, parse, parse_file, parse_string
from .shared.config import ParserConfig

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "tokenize",
    "build",
    "parse",
    "parse_string",
    "parse_file",

    # Level 2: Advanced parser class
    "MarkupParser",
    "ParserConfig",

    # Result objects and data structures
    "Token",
    "TokenType",
    "Element",
    "TextNode",
    "ParseResult",

    # Rendering
    "render_tokens",
    "render_tree",
    "serialize",
]
