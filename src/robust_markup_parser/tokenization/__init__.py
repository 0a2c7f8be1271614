"""Tokenization engine for robust markup parsing.

This module provides a never-fail tokenizer that converts markup strings into
start-tag, end-tag and text tokens.

Key Components:
    MarkupTokenizer: Configured tokenizer returning tokens plus diagnostics
    tokenize: Convenience function returning only the token list
    Token: A single token with its type, value and source position
    TokenType: Enumeration of token kinds
    TokenPosition: Position tracking for debugging and error reporting
"""

from .tokenizer import (
    MarkupTokenizer,
    Token,
    TokenizationResult,
    TokenizerState,
    TokenPosition,
    TokenType,
    tokenize,
    tokens_to_markup,
)

__all__ = [
    "MarkupTokenizer",
    "Token",
    "TokenizationResult",
    "TokenizerState",
    "TokenPosition",
    "TokenType",
    "tokenize",
    "tokens_to_markup",
]
